"""Reddit integration.

This package contains:
- App-only OAuth token handling
- API client (search, public profiles)
- Mention source
"""

from insight_core.providers.reddit.auth import OAuthError, RedditAppTokenProvider
from insight_core.providers.reddit.client import (
    MAX_COMMENTS_PER_POST,
    MAX_PROFILE_ITEMS,
    RedditAPIError,
    RedditClient,
)
from insight_core.providers.reddit.source import RedditMentionSource

__all__ = [
    "MAX_COMMENTS_PER_POST",
    "MAX_PROFILE_ITEMS",
    "OAuthError",
    "RedditAPIError",
    "RedditAppTokenProvider",
    "RedditClient",
    "RedditMentionSource",
]
