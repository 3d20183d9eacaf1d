"""User management schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Request body for creating a user."""

    name: str = Field(..., min_length=1, max_length=128)
    email: str = Field(..., min_length=3, max_length=255)
    role: Literal["admin", "user"] = "user"
    password: Optional[str] = Field(None, min_length=6)
    assigned_keywords: list[str] = Field(default_factory=list)


class UserResponse(BaseModel):
    """Full user record as seen by admins and the user themselves."""

    id: str
    name: str
    email: str
    role: str
    assigned_keywords: list[str] = Field(default_factory=list)
    assigned_youtube_urls: list[str] = Field(default_factory=list)
    assigned_rss_feed_urls: list[str] = Field(default_factory=list)
    profile_picture_url: Optional[str] = None
    created_at: datetime
    password_last_reset_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Response body for listing users."""

    users: list[UserResponse]
    total: int


class KeywordsUpdate(BaseModel):
    """Replace a user's keyword list."""

    keywords: list[str]


class RssFeedsUpdate(BaseModel):
    """Replace a user's RSS feed list."""

    feed_urls: list[str]


class YoutubeUrlRequest(BaseModel):
    """Assign or remove one YouTube video."""

    url: str = Field(..., min_length=1)
