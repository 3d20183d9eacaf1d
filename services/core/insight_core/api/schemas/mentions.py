"""Mention schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class MentionResponse(BaseModel):
    """One stored mention."""

    id: str
    platform: str
    source: str
    title: str
    excerpt: str
    url: str
    timestamp: datetime
    matched_keyword: str
    sentiment: str
    fetched_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MentionListResponse(BaseModel):
    """Response body for listing mentions."""

    mentions: list[MentionResponse]
    total: int


class RefreshMentionsRequest(BaseModel):
    """Request body for a refresh. Only admins may target another user."""

    user_id: Optional[str] = None


class RefreshMentionsResponse(BaseModel):
    """Summary of one gathering pass."""

    total_mentions_fetched: int
    new_mentions_stored: int
    errors: list[str]


class RefreshQueuedResponse(BaseModel):
    """A refresh handed to the worker."""

    job_id: str
    user_id: str
    status: str = "queued"


class RefreshJobStatusResponse(BaseModel):
    """Status of a queued refresh."""

    job_id: str
    status: str
    result: Optional[dict] = None
