"""Mention sources and external API clients.

- Base: source interface, DTOs and matching helpers
- Reddit: app-only OAuth, API client, mention source
- Hacker News, Twitter/X (sample data), Google News, RSS/Atom feeds
"""

from insight_core.providers.base import (
    MentionItem,
    MentionSource,
    PaginatedResult,
    ProfileItemType,
    RedditProfileItem,
    RedditSearchItem,
    SourceError,
    match_keyword,
)

__all__ = [
    "MentionItem",
    "MentionSource",
    "PaginatedResult",
    "ProfileItemType",
    "RedditProfileItem",
    "RedditSearchItem",
    "SourceError",
    "match_keyword",
]
