"""Builders for API-key-backed clients and the default source set."""

from typing import Optional

from sqlalchemy.orm import Session

from insight_core.config import Settings
from insight_core.domain.models import User
from insight_core.domain.services.api_keys import (
    GNEWS_API_KEY,
    REDDIT_CLIENT_ID,
    REDDIT_CLIENT_SECRET,
    REDDIT_USER_AGENT,
    ApiKeyService,
)
from insight_core.infrastructure.crypto import get_crypto_service
from insight_core.providers.base import MentionSource
from insight_core.providers.feeds import RssMentionSource
from insight_core.providers.google_news import GoogleNewsSource
from insight_core.providers.hackernews import HackerNewsSource
from insight_core.providers.reddit.auth import RedditAppTokenProvider
from insight_core.providers.reddit.client import RedditClient, parse_cutoff
from insight_core.providers.reddit.source import RedditMentionSource
from insight_core.providers.twitter import TwitterMockSource


def get_api_key_service(db: Session, settings: Settings) -> ApiKeyService:
    return ApiKeyService(db, get_crypto_service(settings.encryption_key))


def build_reddit_client(
    api_keys: ApiKeyService, settings: Settings
) -> RedditClient:
    """Reddit client using stored credentials, falling back to settings."""
    values = api_keys.get_key_values(
        REDDIT_CLIENT_ID, REDDIT_CLIENT_SECRET, REDDIT_USER_AGENT
    )
    token_provider = RedditAppTokenProvider(
        client_id=values[REDDIT_CLIENT_ID] or settings.provider_reddit_client_id,
        client_secret=values[REDDIT_CLIENT_SECRET]
        or settings.provider_reddit_client_secret,
        user_agent=values[REDDIT_USER_AGENT] or settings.provider_reddit_user_agent,
        timeout=settings.reddit_timeout_seconds,
    )
    return RedditClient(
        token_provider,
        timeout=settings.reddit_timeout_seconds,
        cutoff=parse_cutoff(settings.reddit_cutoff_date),
    )


def build_default_sources(
    user: User,
    api_keys: ApiKeyService,
    settings: Settings,
    reddit_client: Optional[RedditClient] = None,
) -> list[MentionSource]:
    """Sources queried for a user, in the order results take precedence."""
    sources: list[MentionSource] = [
        RedditMentionSource(reddit_client or build_reddit_client(api_keys, settings)),
        HackerNewsSource(timeout=settings.http_timeout_seconds),
        TwitterMockSource(),
        GoogleNewsSource(
            api_key=api_keys.get_key_value(GNEWS_API_KEY),
            timeout=settings.http_timeout_seconds,
        ),
    ]
    if user.assigned_rss_feed_urls:
        sources.append(
            RssMentionSource(
                list(user.assigned_rss_feed_urls),
                timeout=settings.feed_timeout_seconds,
            )
        )
    return sources
