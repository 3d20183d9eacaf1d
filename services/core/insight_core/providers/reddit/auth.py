"""Reddit app-only OAuth.

Read-only access (search, public profiles) uses the ``client_credentials``
grant. Tokens are cached per client ID until five minutes before they
expire, so consecutive flows in one process share a token.

Usage:
    provider = RedditAppTokenProvider(
        client_id="...",
        client_secret="...",
        user_agent="InsightStreamApp/1.0",
    )
    token = await provider.get_token()
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class OAuthError(Exception):
    """Raised when an app-only token cannot be obtained."""

    pass


@dataclass
class _CachedToken:
    access_token: str
    expires_at: float  # time.monotonic() deadline


# client_id -> token
_token_cache: dict[str, _CachedToken] = {}

# Refresh this many seconds before the token actually expires
EXPIRY_MARGIN_SECONDS = 300


def clear_token_cache() -> None:
    _token_cache.clear()


class RedditAppTokenProvider:
    """Issues and caches app-only Reddit access tokens."""

    TOKEN_URL = "https://www.reddit.com/api/v1/access_token"

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        user_agent: str,
        timeout: float = 15.0,
    ):
        """Initialize the token provider.

        Args:
            client_id: Reddit app client ID.
            client_secret: Reddit app client secret.
            user_agent: User-Agent for Reddit API requests.
            timeout: Request timeout in seconds.
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.user_agent = user_agent
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def invalidate(self) -> None:
        if self.client_id:
            _token_cache.pop(self.client_id, None)

    async def get_token(self) -> str:
        """Return a cached token or fetch a new one.

        Raises:
            OAuthError: If credentials are missing or Reddit rejects them.
        """
        if not self.configured:
            raise OAuthError("Reddit API credentials are not configured")

        cached = _token_cache.get(self.client_id)
        if cached is not None and cached.expires_at > time.monotonic():
            return cached.access_token

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data={"grant_type": "client_credentials"},
                    auth=(self.client_id, self.client_secret),
                    headers={"User-Agent": self.user_agent},
                )
        except httpx.HTTPError as e:
            raise OAuthError(f"Failed to reach Reddit token endpoint: {e}")

        if response.status_code != 200:
            raise OAuthError(
                f"Failed to obtain Reddit access token ({response.status_code}): "
                f"{response.text[:200]}"
            )

        data = response.json()
        access_token = data.get("access_token")
        if not access_token:
            raise OAuthError(
                f"Reddit token response missing access_token: {data.get('error', 'unknown error')}"
            )

        expires_in = int(data.get("expires_in", 3600))
        _token_cache[self.client_id] = _CachedToken(
            access_token=access_token,
            expires_at=time.monotonic() + max(expires_in - EXPIRY_MARGIN_SECONDS, 0),
        )
        logger.info("Obtained new Reddit app-only access token")
        return access_token
