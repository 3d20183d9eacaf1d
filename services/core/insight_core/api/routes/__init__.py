"""API routes."""

from insight_core.api.routes import (
    api_keys,
    audit,
    auth,
    contact,
    feeds,
    mentions,
    reddit,
    users,
    youtube,
)

__all__ = [
    "api_keys",
    "audit",
    "auth",
    "contact",
    "feeds",
    "mentions",
    "reddit",
    "users",
    "youtube",
]
