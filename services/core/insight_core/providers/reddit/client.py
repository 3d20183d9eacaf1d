"""Reddit API client.

Read-only access to Reddit search and public user listings through the
app-only OAuth token, mapping responses to normalized DTOs.

Usage:
    client = RedditClient(token_provider, user_agent="InsightStreamApp/1.0")

    page = await client.search("fastapi", sort="new", limit=25)
    for item in page.items:
        print(item.id, item.sentiment)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from insight_core.infrastructure.sentiment import label_sentiment
from insight_core.providers.base import (
    PaginatedResult,
    ProfileItemType,
    RedditSearchItem,
    truncate,
)
from insight_core.providers.reddit.auth import OAuthError, RedditAppTokenProvider

logger = logging.getLogger(__name__)


# Items per listing request
DEFAULT_SEARCH_LIMIT = 25
MAX_COMMENTS_PER_POST = 10
MAX_PROFILE_ITEMS = 25

VALID_SORTS = {"relevance", "hot", "top", "new", "comments"}
VALID_TIME_FILTERS = {"hour", "day", "week", "month", "year", "all"}

DEFAULT_CUTOFF = datetime(2025, 6, 1, tzinfo=timezone.utc)


class RedditAPIError(Exception):
    """Raised when a Reddit API call fails."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


def parse_cutoff(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 cutoff, falling back to DEFAULT_CUTOFF."""
    if not value:
        return DEFAULT_CUTOFF
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Invalid Reddit cutoff date '{value}', using default")
        return DEFAULT_CUTOFF
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RedditClient:
    """Reddit API client over an app-only token."""

    BASE_URL = "https://oauth.reddit.com"
    WEB_URL = "https://www.reddit.com"

    def __init__(
        self,
        token_provider: RedditAppTokenProvider,
        user_agent: Optional[str] = None,
        timeout: float = 15.0,
        cutoff: Optional[datetime] = None,
    ):
        """Initialize the Reddit client.

        Args:
            token_provider: Issues app-only access tokens.
            user_agent: User-Agent string. Defaults to the provider's.
            timeout: Per-request timeout in seconds.
            cutoff: Search results created before this are dropped.
        """
        self.token_provider = token_provider
        self.user_agent = user_agent or token_provider.user_agent
        self.timeout = timeout
        self.cutoff = cutoff or DEFAULT_CUTOFF

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _get_headers(self) -> dict[str, str]:
        token = await self.token_provider.get_token()
        return {
            "Authorization": f"Bearer {token}",
            "User-Agent": self.user_agent,
        }

    async def _api_request(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        retry_on_401: bool = True,
    ) -> httpx.Response:
        """GET an API endpoint, refreshing the token once on 401.

        Args:
            endpoint: API path, e.g. "/search".
            params: Query parameters.
            retry_on_401: Whether to retry with a fresh token on 401.

        Returns:
            The HTTP response.

        Raises:
            OAuthError: If no token can be obtained.
            RedditAPIError: On transport failure.
        """
        url = f"{self.BASE_URL}{endpoint}"
        query = {"raw_json": 1, **(params or {})}
        headers = await self._get_headers()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=headers, params=query)
        except httpx.HTTPError as e:
            raise RedditAPIError(f"Reddit request to {endpoint} failed: {e}")

        if response.status_code == 401 and retry_on_401:
            self.token_provider.invalidate()
            return await self._api_request(endpoint, params, retry_on_401=False)

        return response

    # =========================================================================
    # MAPPERS
    # =========================================================================

    def _parse_timestamp(self, ts: Optional[float]) -> datetime:
        if ts is None:
            return datetime.now(timezone.utc)
        return datetime.fromtimestamp(float(ts), tz=timezone.utc)

    def _permalink_url(self, permalink: Optional[str]) -> str:
        if not permalink:
            return self.WEB_URL
        return f"{self.WEB_URL}{permalink}"

    def _subreddit_label(self, data: dict[str, Any]) -> str:
        prefixed = data.get("subreddit_name_prefixed")
        if prefixed:
            return prefixed
        name = data.get("subreddit")
        return f"r/{name}" if name else "r/unknown"

    def _map_post(self, data: dict[str, Any]) -> RedditSearchItem:
        title = data.get("title") or ""
        selftext = data.get("selftext") or ""
        raw_url = data.get("url") or ""
        url = raw_url if raw_url.startswith("http") else self._permalink_url(data.get("permalink"))

        return RedditSearchItem(
            id=data.get("name") or f"t3_{data.get('id', '')}",
            platform="Reddit",
            author=data.get("author") or "[deleted]",
            timestamp=self._parse_timestamp(data.get("created_utc")),
            text=selftext,
            url=url,
            subreddit=self._subreddit_label(data),
            item_type=ProfileItemType.POST,
            score=int(data.get("score") or 0),
            sentiment=label_sentiment(f"{title} {selftext}"),
            title=title,
            num_comments=int(data.get("num_comments") or 0),
        )

    def _map_comment(
        self, data: dict[str, Any], post_title: Optional[str] = None
    ) -> RedditSearchItem:
        body = data.get("body") or ""
        return RedditSearchItem(
            id=data.get("name") or f"t1_{data.get('id', '')}",
            platform="Reddit",
            author=data.get("author") or "[deleted]",
            timestamp=self._parse_timestamp(data.get("created_utc")),
            text=body,
            url=self._permalink_url(data.get("permalink")),
            subreddit=self._subreddit_label(data),
            item_type=ProfileItemType.COMMENT,
            score=int(data.get("score") or 0),
            sentiment=label_sentiment(body),
            title=post_title,
        )

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def fetch_post_comments(
        self, post_id: str, post_title: Optional[str] = None, limit: int = MAX_COMMENTS_PER_POST
    ) -> list[RedditSearchItem]:
        """Fetch newest top-level comments of a post.

        Non-200 responses and malformed bodies yield an empty list.
        """
        article = post_id[3:] if post_id.startswith("t3_") else post_id
        response = await self._api_request(
            f"/comments/{article}",
            {"sort": "new", "limit": limit, "depth": 1},
        )
        if response.status_code != 200:
            logger.warning(
                f"Failed to fetch comments for {post_id} ({response.status_code})"
            )
            return []

        try:
            listings = response.json()
        except ValueError as e:
            logger.warning(f"Invalid JSON in comments for {post_id}: {e}")
            return []
        if not isinstance(listings, list) or len(listings) < 2:
            return []

        comments = []
        for child in listings[1].get("data", {}).get("children", []):
            if child.get("kind") != "t1":
                continue
            comments.append(self._map_comment(child.get("data", {}), post_title))
            if len(comments) >= limit:
                break
        return comments

    async def search(
        self,
        q: str,
        sort: str = "new",
        t: str = "all",
        subreddit: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
        after: Optional[str] = None,
        include_comments: bool = True,
    ) -> PaginatedResult[RedditSearchItem]:
        """Search posts (and their newest comments) for a query.

        Items older than the cutoff are dropped and the rest are sorted
        newest first. Failures are reported in ``error`` instead of raised.

        Args:
            q: Search query.
            sort: relevance, hot, top, new or comments.
            t: Time filter for top/relevance sorts.
            subreddit: Restrict the search to one subreddit.
            limit: Maximum posts per page.
            after: Cursor from a previous page.
            include_comments: Also fetch comments for each post.

        Returns:
            PaginatedResult of RedditSearchItem with Reddit's ``after`` cursor.
        """
        if not q or not q.strip():
            return PaginatedResult(error="Search query must not be empty")

        params: dict[str, Any] = {
            "q": q.strip(),
            "sort": sort if sort in VALID_SORTS else "new",
            "t": t if t in VALID_TIME_FILTERS else "all",
            "limit": max(1, min(limit, 100)),
            "type": "link",
            "include_over_18": "on",
        }
        if after:
            params["after"] = after

        endpoint = "/search"
        if subreddit:
            endpoint = f"/r/{subreddit.strip().removeprefix('r/')}/search"
            params["restrict_sr"] = "on"

        try:
            response = await self._api_request(endpoint, params)
        except (OAuthError, RedditAPIError) as e:
            logger.error(f"Reddit search failed for '{q}': {e}")
            return PaginatedResult(error=str(e))

        if response.status_code != 200:
            message = f"Reddit search failed ({response.status_code})"
            logger.error(f"{message} for '{q}'")
            return PaginatedResult(error=message)

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from Reddit search for '{q}': {e}")
            return PaginatedResult(error="Reddit search returned an invalid response")
        if not isinstance(payload, dict):
            return PaginatedResult(error="Reddit search returned an invalid response")

        listing = payload.get("data") or {}
        items: list[RedditSearchItem] = []

        for child in listing.get("children", []):
            if child.get("kind") != "t3":
                continue
            post = self._map_post(child.get("data", {}))
            items.append(post)

            if include_comments:
                try:
                    items.extend(await self.fetch_post_comments(post.id, post.title))
                except (OAuthError, RedditAPIError) as e:
                    logger.warning(f"Skipping comments for {post.id}: {e}")

        items = [item for item in items if item.timestamp >= self.cutoff]
        items.sort(key=lambda item: item.timestamp, reverse=True)

        return PaginatedResult(items=items, next_cursor=listing.get("after"))

    # =========================================================================
    # PUBLIC PROFILES
    # =========================================================================

    async def fetch_user_about(self, username: str) -> httpx.Response:
        return await self._api_request(f"/user/{username}/about")

    async def fetch_user_listing(
        self, username: str, kind: str, limit: int = MAX_PROFILE_ITEMS
    ) -> httpx.Response:
        """Fetch a user's ``submitted`` or ``comments`` listing, newest first."""
        return await self._api_request(
            f"/user/{username}/{kind}", {"sort": "new", "limit": limit}
        )
