"""Twitter/X mention source.

No API access is wired up; a fixed sample of tweets stands in and goes
through the same keyword filter as the real sources.
"""

from datetime import datetime, timedelta, timezone

from insight_core.domain.models import Platform
from insight_core.providers.base import MentionItem, MentionSource, match_keyword

MOCK_TWEETS = [
    {
        "id": "1790000000000000001",
        "author": "@techinsider",
        "text": "New AI startup raises $40M to build developer tooling. Technology moves fast.",
        "age_hours": 2,
    },
    {
        "id": "1790000000000000002",
        "author": "@marketwatcher",
        "text": "Finance teams are quietly rebuilding reporting on open-source data stacks.",
        "age_hours": 5,
    },
    {
        "id": "1790000000000000003",
        "author": "@founderdaily",
        "text": "Innovation is not a department. Every startup learns this the hard way.",
        "age_hours": 9,
    },
    {
        "id": "1790000000000000004",
        "author": "@devnotes",
        "text": "Shipping a Python service this week: FastAPI, SQLAlchemy, Celery. Boring tech wins.",
        "age_hours": 20,
    },
]


class TwitterMockSource(MentionSource):
    """Filters a fixed tweet sample by keyword."""

    name = "twitter"

    async def fetch_mentions(self, keywords: list[str]) -> list[MentionItem]:
        now = datetime.now(timezone.utc)
        mentions = []
        for tweet in MOCK_TWEETS:
            matched = match_keyword(keywords, tweet["text"])
            if matched is None:
                continue
            mentions.append(
                MentionItem(
                    id=f"twitter_{tweet['id']}",
                    platform=Platform.TWITTER,
                    source=tweet["author"],
                    title=f"Tweet by {tweet['author']}",
                    excerpt=tweet["text"],
                    url=f"https://twitter.com/{tweet['author'].lstrip('@')}/status/{tweet['id']}",
                    timestamp=now - timedelta(hours=tweet["age_hours"]),
                    matched_keyword=matched,
                )
            )
        return mentions
