"""Feed proxy schemas."""

from typing import Optional

from pydantic import BaseModel


class FeedEntryResponse(BaseModel):
    """One parsed feed entry."""

    id: str
    title: str
    link: str
    summary: str
    published: Optional[str] = None  # ISO-8601
    author: Optional[str] = None


class ParsedFeedResponse(BaseModel):
    """A feed parsed to JSON."""

    title: str
    link: Optional[str] = None
    entries: list[FeedEntryResponse]
