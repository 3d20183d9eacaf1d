"""YouTube video tracker schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class YoutubeVideoCreate(BaseModel):
    """Request body for assigning one video."""

    url: str = Field(..., min_length=1)
    assigned_to_user_id: str = Field(..., min_length=1)


class YoutubeVideoBatchCreate(BaseModel):
    """Request body for assigning several videos at once."""

    urls: list[str] = Field(..., min_length=1)
    assigned_to_user_id: str = Field(..., min_length=1)


class YoutubeVideoResponse(BaseModel):
    """A tracked video."""

    id: str
    url: str
    title: str
    thumbnail_url: str
    like_count: int
    comment_count: int
    share_count: int
    channel_title: str
    assigned_to_user_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class YoutubeVideoListResponse(BaseModel):
    videos: list[YoutubeVideoResponse]
    total: int


class YoutubeVideoBatchResponse(BaseModel):
    """Outcome of a batch assignment."""

    success_count: int
    error_count: int
    errors: list[str]
    videos: list[YoutubeVideoResponse]
