"""RSS/Atom feeds: proxy fetch, JSON parsing and a mention source.

Feeds are fetched with httpx and parsed with feedparser. Entry IDs come
from the feed's ``id``/``guid`` or the link, and summaries are reduced to
plain text.
"""

import calendar
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

import feedparser
import httpx

from insight_core.domain.models import Platform
from insight_core.providers.base import (
    MentionItem,
    MentionSource,
    SourceError,
    match_keyword,
    stable_hash,
    strip_html,
    truncate,
)

logger = logging.getLogger(__name__)

FEED_USER_AGENT = "InsightStreamFeedFetcher/1.0"
FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml;q=0.9, */*;q=0.8"


class FeedError(Exception):
    """Raised when a feed cannot be fetched or parsed."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class FeedEntry:
    id: str
    title: str
    link: str
    summary: str
    author: Optional[str] = None
    published: Optional[str] = None  # ISO-8601


@dataclass
class ParsedFeed:
    title: str
    link: Optional[str]
    entries: list[FeedEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def is_valid_feed_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _entry_datetime(entry: Any) -> Optional[datetime]:
    for key in ("published_parsed", "updated_parsed"):
        value = entry.get(key)
        if value:
            return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    return None


async def fetch_feed_xml(url: str, timeout: float = 10.0) -> tuple[str, str]:
    """Fetch raw feed XML.

    Returns:
        (body, content_type)

    Raises:
        FeedError: If the URL is invalid, unreachable or returns non-2xx.
    """
    if not is_valid_feed_url(url):
        raise FeedError("Feed URL must be an absolute http(s) URL", 400)

    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(
                url,
                headers={"User-Agent": FEED_USER_AGENT, "Accept": FEED_ACCEPT},
            )
    except httpx.HTTPError as e:
        raise FeedError(f"Failed to fetch feed: {e}")

    if response.status_code < 200 or response.status_code >= 300:
        raise FeedError(
            f"Failed to fetch feed ({response.status_code})", response.status_code
        )

    content_type = response.headers.get("content-type", "application/xml")
    return response.text, content_type


def parse_feed(xml: str) -> ParsedFeed:
    """Parse RSS/Atom XML into a ParsedFeed.

    Raises:
        FeedError: If the document is not a feed at all.
    """
    parsed = feedparser.parse(xml)
    if parsed.bozo and not parsed.entries and not parsed.feed:
        raise FeedError(f"Failed to parse feed: {parsed.get('bozo_exception')}")

    entries = []
    for entry in parsed.entries:
        link = entry.get("link") or ""
        entry_id = entry.get("id") or entry.get("guid") or link
        if not entry_id:
            entry_id = stable_hash(entry.get("title", ""))
        published = _entry_datetime(entry)
        entries.append(
            FeedEntry(
                id=entry_id,
                title=strip_html(entry.get("title")) or "Untitled",
                link=link,
                summary=strip_html(entry.get("summary") or entry.get("description")),
                author=entry.get("author"),
                published=published.isoformat() if published else None,
            )
        )

    return ParsedFeed(
        title=parsed.feed.get("title", ""),
        link=parsed.feed.get("link"),
        entries=entries,
    )


class RssMentionSource(MentionSource):
    """Matches entries of the user's assigned feeds against keywords."""

    name = "rss"

    def __init__(self, feed_urls: list[str], timeout: float = 10.0):
        self.feed_urls = feed_urls
        self.timeout = timeout

    async def fetch_mentions(self, keywords: list[str]) -> list[MentionItem]:
        """Fetch every feed; a failing feed is skipped and listed in ``warnings``.

        Raises:
            SourceError: If every assigned feed failed.
        """
        mentions: list[MentionItem] = []
        failures: list[str] = []
        self.warnings = ()

        for url in self.feed_urls:
            try:
                xml, _ = await fetch_feed_xml(url, timeout=self.timeout)
                feed = parse_feed(xml)
            except FeedError as e:
                failures.append(f"{url}: {e}")
                continue

            source = feed.title or urlparse(url).netloc
            for entry in feed.entries:
                matched = match_keyword(keywords, entry.title, entry.summary)
                if matched is None:
                    continue
                timestamp = (
                    datetime.fromisoformat(entry.published)
                    if entry.published
                    else datetime.now(timezone.utc)
                )
                mentions.append(
                    MentionItem(
                        id=f"rss_{stable_hash(entry.id)}",
                        platform=Platform.RSS,
                        source=source,
                        title=entry.title,
                        excerpt=truncate(entry.summary or entry.title),
                        url=entry.link or url,
                        timestamp=timestamp,
                        matched_keyword=matched,
                    )
                )

        if failures and len(failures) == len(self.feed_urls):
            raise SourceError("All RSS feeds failed: " + "; ".join(failures))
        for failure in failures:
            logger.warning(f"Skipping RSS feed {failure}")
        self.warnings = tuple(f"RSS feed {failure}" for failure in failures)

        return mentions
