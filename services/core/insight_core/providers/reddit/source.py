"""Reddit as a mention source."""

import logging

from insight_core.domain.models import Platform
from insight_core.providers.base import (
    MentionItem,
    MentionSource,
    SourceError,
    match_keyword,
    truncate,
)
from insight_core.providers.reddit.client import RedditClient

logger = logging.getLogger(__name__)

# Posts requested per keyword
POSTS_PER_KEYWORD = 10


class RedditMentionSource(MentionSource):
    """Searches Reddit posts for each keyword."""

    name = "reddit"

    def __init__(self, client: RedditClient, per_keyword: int = POSTS_PER_KEYWORD):
        self.client = client
        self.per_keyword = per_keyword

    async def fetch_mentions(self, keywords: list[str]) -> list[MentionItem]:
        """Search each keyword and keep posts whose title or body matches.

        Keywords whose search failed are listed in ``warnings``.

        Raises:
            SourceError: If every keyword search failed.
        """
        mentions: list[MentionItem] = []
        failures: list[str] = []
        self.warnings = ()

        for keyword in keywords:
            page = await self.client.search(
                keyword, sort="new", limit=self.per_keyword, include_comments=False
            )
            if page.error:
                failures.append(f"'{keyword}': {page.error}")
                continue

            for item in page.items:
                matched = match_keyword(keywords, item.title, item.text)
                if matched is None:
                    continue
                mentions.append(
                    MentionItem(
                        id=f"reddit_{item.id}",
                        platform=Platform.REDDIT,
                        source=item.subreddit,
                        title=item.title or truncate(item.text, 120),
                        excerpt=truncate(item.text or item.title),
                        url=item.url,
                        timestamp=item.timestamp,
                        matched_keyword=matched,
                    )
                )

        if failures and len(failures) == len(keywords):
            raise SourceError("Reddit search failed: " + "; ".join(failures))
        if failures:
            logger.warning(f"Reddit search partially failed: {'; '.join(failures)}")
            self.warnings = tuple(f"Reddit search failed for {failure}" for failure in failures)

        return mentions
