"""Domain models for Insight Stream.

One table per persisted collection: users, their gathered mentions, analyzed
external Reddit profiles, tracked YouTube videos, stored third-party API keys
and the short-lived account recovery records.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================


class UserRole(str):
    """User role values."""

    ADMIN = "admin"
    USER = "user"

    ALL = (ADMIN, USER)


class Sentiment(str):
    """Mention sentiment values."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    UNKNOWN = "unknown"

    ALL = (POSITIVE, NEGATIVE, NEUTRAL, UNKNOWN)


class Platform(str):
    """Display names of the platforms mentions are gathered from."""

    REDDIT = "Reddit"
    HACKER_NEWS = "Hacker News"
    TWITTER = "Twitter/X"
    GOOGLE_NEWS = "Google News"
    RSS = "RSS Feed"
    UNKNOWN = "Unknown"


# =============================================================================
# USERS AND SESSIONS
# =============================================================================


class User(Base):
    """Dashboard user. Admins assign keywords, feeds and videos to users."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(
        Enum(*UserRole.ALL, name="user_role_enum"),
        nullable=False,
        default=UserRole.USER,
    )
    assigned_keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    assigned_youtube_urls: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list
    )
    assigned_rss_feed_urls: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list
    )
    profile_picture_url: Mapped[Optional[str]] = mapped_column(
        String(512), nullable=True
    )
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    password_last_reset_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    sessions: Mapped[list["Session"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Session(Base):
    """Server-side session store."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="sessions")


# =============================================================================
# MENTIONS
# =============================================================================


class Mention(Base):
    """A keyword match found on an external platform, stored per user.

    ``id`` is the platform-prefixed native ID (``reddit_t3_abc``,
    ``hackernews_123``) so the same item gathered twice maps to one row.
    """

    __tablename__ = "global_mentions"

    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id"), primary_key=True
    )
    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    source: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    url: Mapped[str] = mapped_column(String(2048), nullable=False, default="#")
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    matched_keyword: Mapped[str] = mapped_column(String(255), nullable=False)
    sentiment: Mapped[str] = mapped_column(
        String(16), nullable=False, default=Sentiment.UNKNOWN
    )
    fetched_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_mentions_user_ts", "user_id", "timestamp"),
    )


# =============================================================================
# EXTERNAL REDDIT PROFILES
# =============================================================================


class ExternalRedditUserAnalysis(Base):
    """Snapshot of a public Reddit account a dashboard user is tracking.

    Rows start as placeholders (username registered, nothing fetched) and are
    overwritten in full on every analysis run.
    """

    __tablename__ = "analyzed_reddit_profiles"

    app_user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id"), primary_key=True
    )
    username: Mapped[str] = mapped_column(String(64), primary_key=True)

    account_created: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )
    total_post_karma: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_comment_karma: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    subreddits_posted_in: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list
    )
    total_posts_fetched_this_run: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    total_comments_fetched_this_run: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    fetched_posts_details: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list
    )
    fetched_comments_details: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list
    )

    is_placeholder: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    suspension_status: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True
    )
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    added_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    last_refreshed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )
    last_error_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )


# =============================================================================
# YOUTUBE VIDEOS
# =============================================================================


class YoutubeVideo(Base):
    """A YouTube video an admin assigned to a user for tracking.

    Title, thumbnail, channel and engagement counts start as placeholders
    until real video metadata is filled in.
    """

    __tablename__ = "youtube_videos"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    assigned_to_user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id"), nullable=False
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    thumbnail_url: Mapped[str] = mapped_column(String(512), nullable=False)
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    share_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    channel_title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_youtube_videos_user_created", "assigned_to_user_id", "created_at"),
    )


# =============================================================================
# API KEYS
# =============================================================================


class ApiKey(Base):
    """Third-party credential managed from the admin panel.

    ``service_name`` is the lookup key used by flows (``Reddit Client ID``,
    ``GEMINI_API_KEY``). ``key_value`` holds a Fernet token when an
    encryption key is configured.
    """

    __tablename__ = "api_keys"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    service_name: Mapped[str] = mapped_column(String(128), nullable=False)
    key_value: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    added_by_user_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_api_keys_service", "service_name"),
    )


# =============================================================================
# ACCOUNT RECOVERY
# =============================================================================


class OtpRequest(Base):
    """Six-digit one-time password emailed for password recovery."""

    __tablename__ = "otp_requests"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    otp: Mapped[str] = mapped_column(String(6), nullable=False)
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_otp_email", "email", "otp"),
    )


class PasswordResetToken(Base):
    """Emailed reset link token. Only the SHA-256 of the token is stored."""

    __tablename__ = "password_reset_tokens"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


# =============================================================================
# AUDIT
# =============================================================================


class AuditLog(Base):
    """Append-only audit log of admin and account actions."""

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    ts: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    actor: Mapped[str] = mapped_column(
        Enum("user", "system", name="audit_actor_enum"), nullable=False
    )
    action_type: Mapped[str] = mapped_column(String(128), nullable=False)
    entity_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    request_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    result: Mapped[str] = mapped_column(
        Enum("ok", "error", name="audit_result_enum"), nullable=False
    )
    error_detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_audit_ts", "ts"),
        Index("idx_audit_action", "action_type"),
    )


__all__ = [
    "ApiKey",
    "AuditLog",
    "Base",
    "ExternalRedditUserAnalysis",
    "Mention",
    "OtpRequest",
    "PasswordResetToken",
    "Platform",
    "Sentiment",
    "Session",
    "User",
    "UserRole",
    "YoutubeVideo",
    "as_utc",
    "utcnow",
]
