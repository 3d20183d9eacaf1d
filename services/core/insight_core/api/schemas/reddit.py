"""Reddit search and profile analysis schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class RedditSearchItemResponse(BaseModel):
    """A post or comment returned by the search proxy."""

    id: str
    platform: str
    author: str
    timestamp: datetime
    text: str
    url: str
    subreddit: str
    item_type: str
    score: int = 0
    sentiment: str = "unknown"
    title: Optional[str] = None
    num_comments: Optional[int] = None
    matched_keyword: Optional[str] = None


class RedditSearchResponse(BaseModel):
    """Response body for the Reddit search proxy."""

    items: list[RedditSearchItemResponse]
    next_after: Optional[str] = None
    error: Optional[str] = None


class AnalyzeProfileRequest(BaseModel):
    """Request body for analyzing a Reddit account."""

    username: str = Field(..., min_length=1, max_length=64)


class RedditProfileResponse(BaseModel):
    """Stored analysis of an external Reddit account."""

    username: str
    account_created: Optional[datetime] = None
    total_post_karma: int = 0
    total_comment_karma: int = 0
    subreddits_posted_in: list[str] = Field(default_factory=list)
    total_posts_fetched_this_run: int = 0
    total_comments_fetched_this_run: int = 0
    fetched_posts_details: list[dict[str, Any]] = Field(default_factory=list)
    fetched_comments_details: list[dict[str, Any]] = Field(default_factory=list)
    is_placeholder: bool = False
    suspension_status: Optional[str] = None
    error: Optional[str] = None
    added_at: Optional[datetime] = None
    last_refreshed_at: Optional[datetime] = None
    last_error_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RedditProfileListResponse(BaseModel):
    """Response body for listing tracked Reddit accounts."""

    profiles: list[RedditProfileResponse]
    total: int


class AnalysisQueuedResponse(BaseModel):
    """An analysis handed to the worker."""

    job_id: str
    username: str
    status: str = "queued"
