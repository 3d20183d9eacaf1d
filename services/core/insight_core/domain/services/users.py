"""User management service.

Admins create users and assign what each user tracks: keywords (drive
mention gathering), YouTube video URLs and RSS/Atom feed URLs.

Usage:
    service = UserService(db=session)

    user = service.add_user(name="Ada", email="ada@example.com", role="user")
    service.update_user_keywords(user.id, ["python", "fastapi"])
    service.assign_youtube_url(user.id, "https://youtu.be/dQw4w9WgXcQ")
"""

import re
import uuid
from typing import Iterable, Optional
from urllib.parse import parse_qs, urlparse

from sqlalchemy.orm import Session

from insight_core.domain.models import User, UserRole, utcnow
from insight_core.domain.services.auth import MIN_PASSWORD_LENGTH, hash_password


# =============================================================================
# EXCEPTIONS
# =============================================================================


class UserError(Exception):
    """Exception raised for invalid user operations."""

    pass


class UserNotFoundError(UserError):
    """Exception raised when a user is not found."""

    pass


# =============================================================================
# CONSTANTS
# =============================================================================


DEFAULT_ADMIN_KEYWORDS = ["technology", "AI", "startup", "innovation", "finance"]

AVATAR_PLACEHOLDER_URL = "https://placehold.co/100x100.png?text={initial}"

_YOUTUBE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}


def normalize_string_list(values: Iterable[str]) -> list[str]:
    """Trim, drop blanks and de-duplicate while keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        cleaned = (value or "").strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result


def extract_youtube_video_id(url: str) -> Optional[str]:
    """Extract the 11-character video ID from any common YouTube URL form.

    Handles ``watch?v=``, ``youtu.be/``, ``/shorts/``, ``/embed/`` and
    ``/live/`` URLs. Returns None when no valid ID is present.
    """
    if not url:
        return None

    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").lower()
    candidate: Optional[str] = None

    if host == "youtu.be":
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif host in _YOUTUBE_HOSTS:
        if parsed.path == "/watch":
            candidate = parse_qs(parsed.query).get("v", [None])[0]
        else:
            parts = [p for p in parsed.path.split("/") if p]
            if len(parts) >= 2 and parts[0] in ("shorts", "embed", "live", "v"):
                candidate = parts[1]

    if candidate and _YOUTUBE_ID_RE.match(candidate):
        return candidate
    return None


def canonical_youtube_url(url: str) -> Optional[str]:
    video_id = extract_youtube_video_id(url)
    if video_id is None:
        return None
    return f"https://www.youtube.com/watch?v={video_id}"


def _is_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# =============================================================================
# SERVICE
# =============================================================================


class UserService:
    """Service for user CRUD and assignments."""

    def __init__(self, db: Session):
        """Initialize the user service.

        Args:
            db: SQLAlchemy database session.
        """
        self.db = db

    # -------------------------------------------------------------------------
    # Create / read
    # -------------------------------------------------------------------------

    def add_user(
        self,
        name: str,
        email: str,
        role: str = UserRole.USER,
        password: Optional[str] = None,
        assigned_keywords: Optional[list[str]] = None,
    ) -> User:
        """Create a user.

        Admins without explicit keywords get DEFAULT_ADMIN_KEYWORDS.

        Args:
            name: Display name.
            email: Unique email address (stored lowercased).
            role: "admin" or "user".
            password: Optional initial password.
            assigned_keywords: Optional initial keyword list.

        Returns:
            The created User.

        Raises:
            UserError: If the email is taken or an argument is invalid.
        """
        name = (name or "").strip()
        email = (email or "").strip().lower()

        if not name:
            raise UserError("Name is required.")
        if not email or "@" not in email:
            raise UserError("A valid email is required.")
        if role not in UserRole.ALL:
            raise UserError(f"role must be one of {UserRole.ALL}, got '{role}'")
        if password is not None and len(password) < MIN_PASSWORD_LENGTH:
            raise UserError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
            )

        if self.get_user_by_email(email) is not None:
            raise UserError("Email already exists.")

        keywords = normalize_string_list(assigned_keywords or [])
        if not keywords and role == UserRole.ADMIN:
            keywords = list(DEFAULT_ADMIN_KEYWORDS)

        user = User(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            role=role,
            assigned_keywords=keywords,
            assigned_youtube_urls=[],
            assigned_rss_feed_urls=[],
            profile_picture_url=AVATAR_PLACEHOLDER_URL.format(initial=name[0].upper()),
            password_hash=hash_password(password) if password else None,
            created_at=utcnow(),
        )
        self.db.add(user)
        self.db.flush()
        return user

    def list_users(self) -> list[User]:
        return self.db.query(User).order_by(User.created_at.desc()).all()

    def list_users_with_keywords(self) -> list[User]:
        """Users that have at least one keyword to gather mentions for."""
        return [user for user in self.list_users() if user.assigned_keywords]

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_user_or_raise(self, user_id: str) -> User:
        """Get a user by ID.

        Raises:
            UserNotFoundError: If no user has this ID.
        """
        user = self.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User with ID {user_id} not found.")
        return user

    # -------------------------------------------------------------------------
    # Assignments
    # -------------------------------------------------------------------------

    def update_user_keywords(self, user_id: str, keywords: list[str]) -> User:
        user = self.get_user_or_raise(user_id)
        user.assigned_keywords = normalize_string_list(keywords)
        self.db.flush()
        return user

    def update_user_rss_feed_urls(self, user_id: str, feed_urls: list[str]) -> User:
        """Replace a user's RSS/Atom feed list.

        Raises:
            UserNotFoundError: If the user does not exist.
            UserError: If any URL is not an absolute http(s) URL.
        """
        user = self.get_user_or_raise(user_id)
        cleaned = normalize_string_list(feed_urls)
        invalid = [url for url in cleaned if not _is_http_url(url)]
        if invalid:
            raise UserError(f"Invalid feed URL(s): {', '.join(invalid)}")
        user.assigned_rss_feed_urls = cleaned
        self.db.flush()
        return user

    def assign_youtube_url(self, user_id: str, url: str) -> User:
        """Add a YouTube video to a user, stored in canonical watch form.

        Raises:
            UserNotFoundError: If the user does not exist.
            UserError: If the URL is not a recognizable YouTube video URL.
        """
        user = self.get_user_or_raise(user_id)
        canonical = canonical_youtube_url(url)
        if canonical is None:
            raise UserError(f"Invalid YouTube URL: {url}")

        if canonical not in user.assigned_youtube_urls:
            # Reassign so the JSON column is marked dirty
            user.assigned_youtube_urls = [*user.assigned_youtube_urls, canonical]
            self.db.flush()
        return user

    def remove_youtube_url(self, user_id: str, url: str) -> User:
        user = self.get_user_or_raise(user_id)
        canonical = canonical_youtube_url(url) or url.strip()
        user.assigned_youtube_urls = [
            existing for existing in user.assigned_youtube_urls if existing != canonical
        ]
        self.db.flush()
        return user

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------

    def update_user_password(self, user_id: str, new_password: str) -> User:
        """Set a new password and stamp password_last_reset_at.

        Raises:
            UserNotFoundError: If the user does not exist.
            UserError: If the password is too short.
        """
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise UserError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
            )
        user = self.get_user_or_raise(user_id)
        user.password_hash = hash_password(new_password)
        user.password_last_reset_at = utcnow()
        self.db.flush()
        return user


__all__ = [
    "DEFAULT_ADMIN_KEYWORDS",
    "UserError",
    "UserNotFoundError",
    "UserService",
    "canonical_youtube_url",
    "extract_youtube_video_id",
    "normalize_string_list",
]
