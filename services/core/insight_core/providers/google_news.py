"""Google News mention source.

Queries the GNews API when an API key is stored. Without one, a fixed
sample of articles is filtered instead.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from insight_core.domain.models import Platform
from insight_core.providers.base import (
    MentionItem,
    MentionSource,
    SourceError,
    match_keyword,
    stable_hash,
    truncate,
)

logger = logging.getLogger(__name__)

MAX_ARTICLES = 10

MOCK_ARTICLES = [
    {
        "title": "Technology firms double down on AI infrastructure spending",
        "description": "Analysts expect capital expenditure on data centers to keep climbing.",
        "url": "https://news.example.com/tech/ai-infrastructure-spending",
        "source": "Example Tech Daily",
        "age_hours": 3,
    },
    {
        "title": "Startup funding rebounds as investors return to early-stage deals",
        "description": "Seed and Series A rounds grew for the second straight quarter.",
        "url": "https://news.example.com/business/startup-funding-rebounds",
        "source": "Example Business Wire",
        "age_hours": 8,
    },
    {
        "title": "Regulators outline new rules for consumer finance apps",
        "description": "The proposal targets fee disclosure and data portability.",
        "url": "https://news.example.com/finance/consumer-finance-rules",
        "source": "Example Finance Times",
        "age_hours": 26,
    },
]


def _parse_iso(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class GoogleNewsSource(MentionSource):
    """News articles matching the keywords."""

    name = "googlenews"

    SEARCH_URL = "https://gnews.io/api/v4/search"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 15.0):
        self.api_key = api_key
        self.timeout = timeout

    def _to_mention(
        self,
        title: str,
        description: str,
        url: str,
        source: str,
        timestamp: datetime,
        keywords: list[str],
    ) -> Optional[MentionItem]:
        matched = match_keyword(keywords, title, description)
        if matched is None:
            return None
        return MentionItem(
            id=f"googlenews_{stable_hash(url or title)}",
            platform=Platform.GOOGLE_NEWS,
            source=source or "Google News",
            title=title,
            excerpt=truncate(description or title),
            url=url or "#",
            timestamp=timestamp,
            matched_keyword=matched,
        )

    def _mock_mentions(self, keywords: list[str]) -> list[MentionItem]:
        now = datetime.now(timezone.utc)
        mentions = []
        for article in MOCK_ARTICLES:
            item = self._to_mention(
                article["title"],
                article["description"],
                article["url"],
                article["source"],
                now - timedelta(hours=article["age_hours"]),
                keywords,
            )
            if item is not None:
                mentions.append(item)
        return mentions

    async def fetch_mentions(self, keywords: list[str]) -> list[MentionItem]:
        """Search GNews for any of the keywords, or filter the sample.

        Raises:
            SourceError: If the GNews request fails.
        """
        if not self.api_key:
            return self._mock_mentions(keywords)

        query = " OR ".join(f'"{kw}"' if " " in kw else kw for kw in keywords)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.SEARCH_URL,
                    params={
                        "q": query,
                        "lang": "en",
                        "max": MAX_ARTICLES,
                        "apikey": self.api_key,
                    },
                )
        except httpx.HTTPError as e:
            raise SourceError(f"Google News request failed: {e}")

        if response.status_code != 200:
            raise SourceError(
                f"Google News search failed ({response.status_code})",
                response.status_code,
            )

        mentions = []
        articles: list[dict[str, Any]] = response.json().get("articles", [])
        for article in articles:
            item = self._to_mention(
                article.get("title") or "",
                article.get("description") or article.get("content") or "",
                article.get("url") or "",
                (article.get("source") or {}).get("name", ""),
                _parse_iso(article.get("publishedAt")),
                keywords,
            )
            if item is not None:
                mentions.append(item)
        return mentions
