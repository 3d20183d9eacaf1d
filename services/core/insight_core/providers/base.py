"""Base source interface and DTOs.

Every mention source (Reddit, Hacker News, Twitter/X, Google News, RSS)
implements MentionSource and yields normalized MentionItem objects whose
``id`` is the deterministic ``platform_nativeId`` key used for
deduplication.

Usage:
    class HackerNewsSource(MentionSource):
        name = "hackernews"

        async def fetch_mentions(self, keywords):
            ...
"""

import hashlib
import html
import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Iterable, Optional, TypeVar


# =============================================================================
# ENUMS
# =============================================================================


class ProfileItemType(str, Enum):
    """Type of item fetched from a Reddit profile."""

    POST = "Post"
    COMMENT = "Comment"


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


@dataclass
class MentionItem:
    """Normalized keyword match from any source."""

    id: str
    platform: str
    source: str
    title: str
    excerpt: str
    url: str
    timestamp: datetime
    matched_keyword: str
    sentiment: str = "unknown"


@dataclass
class RedditSearchItem:
    """A Reddit post or comment returned by the search proxy."""

    id: str  # fullname, t3_ or t1_
    platform: str
    author: str
    timestamp: datetime
    text: str
    url: str
    subreddit: str
    item_type: ProfileItemType
    score: int = 0
    sentiment: str = "unknown"
    title: Optional[str] = None
    num_comments: Optional[int] = None
    matched_keyword: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["item_type"] = self.item_type.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class RedditProfileItem:
    """A post or comment from an analyzed Reddit profile."""

    id: str
    title_or_content: str
    subreddit: str
    timestamp: str  # ISO-8601
    score: int
    url: str
    type: ProfileItemType
    num_comments: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data


T = TypeVar("T")


@dataclass
class PaginatedResult(Generic[T]):
    """Page of results with a provider cursor for the next page."""

    items: list[T] = field(default_factory=list)
    next_cursor: Optional[str] = None
    error: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


# =============================================================================
# HELPERS
# =============================================================================


def match_keyword(keywords: Iterable[str], *texts: Optional[str]) -> Optional[str]:
    """Return the first keyword found in any text (case-insensitive substring)."""
    haystack = " ".join(text for text in texts if text).lower()
    if not haystack:
        return None
    for keyword in keywords:
        if keyword and keyword.lower() in haystack:
            return keyword
    return None


def stable_hash(value: str, length: int = 16) -> str:
    """Short deterministic hash for sources without a native ID."""
    return hashlib.sha1(value.encode("utf-8")).hexdigest()[:length]


_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: Optional[str]) -> str:
    """Drop tags and unescape entities."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", html.unescape(_TAG_RE.sub(" ", text))).strip()


def truncate(text: Optional[str], limit: int = 300) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


# =============================================================================
# SOURCE INTERFACE
# =============================================================================


class SourceError(Exception):
    """Raised when a mention source cannot be queried."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class MentionSource(ABC):
    """A platform that can be searched for keyword mentions."""

    #: Short identifier used in log fields and error messages
    name: str = "source"

    #: Non-fatal failures from the last fetch_mentions call, such as one
    #: keyword or feed out of several
    warnings: tuple[str, ...] = ()

    @abstractmethod
    async def fetch_mentions(self, keywords: list[str]) -> list[MentionItem]:
        """Search the platform for the given keywords.

        Failures that still leave results are reported through
        ``warnings`` instead of raised.

        Args:
            keywords: Keywords to match, in priority order.

        Returns:
            Mentions that matched at least one keyword.

        Raises:
            SourceError: If the platform cannot be queried.
        """
        ...
