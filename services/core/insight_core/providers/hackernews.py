"""Hacker News mention source (Algolia search API)."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from insight_core.domain.models import Platform
from insight_core.providers.base import (
    MentionItem,
    MentionSource,
    SourceError,
    match_keyword,
    strip_html,
    truncate,
)

logger = logging.getLogger(__name__)

HITS_PER_KEYWORD = 20


class HackerNewsSource(MentionSource):
    """Searches HN stories and comments for each keyword."""

    name = "hackernews"

    SEARCH_URL = "https://hn.algolia.com/api/v1/search"
    ITEM_URL = "https://news.ycombinator.com/item?id={id}"

    def __init__(self, timeout: float = 15.0, hits_per_keyword: int = HITS_PER_KEYWORD):
        self.timeout = timeout
        self.hits_per_keyword = hits_per_keyword

    def _map_hit(self, hit: dict[str, Any], keywords: list[str]) -> Optional[MentionItem]:
        object_id = hit.get("objectID")
        if not object_id:
            return None

        is_comment = "comment" in hit.get("_tags", [])
        title = hit.get("title") or hit.get("story_title") or ""
        text = strip_html(hit.get("comment_text") or hit.get("story_text"))

        matched = match_keyword(keywords, title, text)
        if matched is None:
            return None

        if is_comment:
            title = f"Comment on: {title}" if title else "Hacker News comment"
            url = self.ITEM_URL.format(id=object_id)
        else:
            url = hit.get("url") or self.ITEM_URL.format(id=object_id)

        created = hit.get("created_at_i")
        timestamp = (
            datetime.fromtimestamp(created, tz=timezone.utc)
            if created
            else datetime.now(timezone.utc)
        )

        return MentionItem(
            id=f"hackernews_{object_id}",
            platform=Platform.HACKER_NEWS,
            source=f"Hacker News ({hit.get('author') or 'unknown'})",
            title=title,
            excerpt=truncate(text or title),
            url=url,
            timestamp=timestamp,
            matched_keyword=matched,
        )

    async def _search_keyword(
        self, client: httpx.AsyncClient, keyword: str
    ) -> list[dict[str, Any]]:
        try:
            response = await client.get(
                self.SEARCH_URL,
                params={
                    "query": keyword,
                    "tags": "(story,comment)",
                    "hitsPerPage": self.hits_per_keyword,
                },
            )
        except httpx.HTTPError as e:
            raise SourceError(f"Hacker News request failed: {e}")

        if response.status_code != 200:
            raise SourceError(
                f"Hacker News search failed ({response.status_code})",
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise SourceError(f"Hacker News returned invalid JSON: {e}")
        return payload.get("hits", []) if isinstance(payload, dict) else []

    async def fetch_mentions(self, keywords: list[str]) -> list[MentionItem]:
        """Query Algolia once per keyword.

        A failed keyword is skipped and listed in ``warnings``.

        Raises:
            SourceError: If every keyword search failed.
        """
        mentions: list[MentionItem] = []
        failures: list[str] = []
        self.warnings = ()

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for keyword in keywords:
                try:
                    hits = await self._search_keyword(client, keyword)
                except SourceError as e:
                    failures.append(f"'{keyword}': {e}")
                    continue

                for hit in hits:
                    item = self._map_hit(hit, keywords)
                    if item is not None:
                        mentions.append(item)

        if failures and len(failures) == len(keywords):
            raise SourceError("Hacker News search failed: " + "; ".join(failures))
        if failures:
            logger.warning(f"Hacker News search partially failed: {'; '.join(failures)}")
            self.warnings = tuple(
                f"Hacker News search failed for {failure}" for failure in failures
            )

        logger.debug(f"Hacker News returned {len(mentions)} matching hits")
        return mentions
