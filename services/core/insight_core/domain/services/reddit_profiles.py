"""Persistence for analyzed external Reddit profiles.

Each dashboard user keeps a list of public Reddit usernames. A username is
first registered as a placeholder and filled in by the analysis flow.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from insight_core.domain.models import ExternalRedditUserAnalysis, utcnow


class RedditProfileNotFoundError(Exception):
    """Raised when an analyzed profile does not exist."""

    pass


def normalize_reddit_username(username: str) -> str:
    """Strip whitespace and a leading ``u/`` or ``/u/`` prefix."""
    username = (username or "").strip()
    for prefix in ("/u/", "u/"):
        if username.lower().startswith(prefix):
            username = username[len(prefix):]
    return username.strip("/")


class RedditProfileService:
    """Service for analyzed Reddit profile records."""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(
        self, app_user_id: str, username: str
    ) -> Optional[ExternalRedditUserAnalysis]:
        return self.db.get(
            ExternalRedditUserAnalysis,
            (app_user_id, normalize_reddit_username(username)),
        )

    def get_profile_or_raise(
        self, app_user_id: str, username: str
    ) -> ExternalRedditUserAnalysis:
        """Get an analyzed profile.

        Raises:
            RedditProfileNotFoundError: If the username is not tracked.
        """
        profile = self.get_profile(app_user_id, username)
        if profile is None:
            raise RedditProfileNotFoundError(
                f"Reddit user u/{username} is not tracked"
            )
        return profile

    def list_profiles(self, app_user_id: str) -> list[ExternalRedditUserAnalysis]:
        return (
            self.db.query(ExternalRedditUserAnalysis)
            .filter(ExternalRedditUserAnalysis.app_user_id == app_user_id)
            .order_by(ExternalRedditUserAnalysis.added_at.desc())
            .all()
        )

    def add_placeholder(
        self, app_user_id: str, username: str
    ) -> ExternalRedditUserAnalysis:
        """Register a username for later analysis.

        An already-tracked username is returned unchanged.

        Raises:
            ValueError: If the username is blank.
        """
        username = normalize_reddit_username(username)
        if not username:
            raise ValueError("username must not be empty")

        existing = self.get_profile(app_user_id, username)
        if existing is not None:
            return existing

        profile = ExternalRedditUserAnalysis(
            app_user_id=app_user_id,
            username=username,
            is_placeholder=True,
            added_at=utcnow(),
            subreddits_posted_in=[],
            fetched_posts_details=[],
            fetched_comments_details=[],
        )
        self.db.add(profile)
        self.db.flush()
        return profile

    def save_analysis(
        self,
        app_user_id: str,
        username: str,
        analysis: dict[str, Any],
    ) -> ExternalRedditUserAnalysis:
        """Overwrite a profile with a completed analysis and commit.

        Args:
            app_user_id: Owning dashboard user.
            username: Reddit username.
            analysis: Column values produced by the analysis flow.

        Returns:
            The stored profile.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: If the write fails.
        """
        username = normalize_reddit_username(username)
        profile = self.get_profile(app_user_id, username)
        if profile is None:
            profile = ExternalRedditUserAnalysis(
                app_user_id=app_user_id, username=username, added_at=utcnow()
            )
            self.db.add(profile)

        for column, value in analysis.items():
            setattr(profile, column, value)
        profile.is_placeholder = False
        profile.error = None

        self.db.commit()
        return profile

    def record_error(
        self,
        app_user_id: str,
        username: str,
        error: str,
        suspension_status: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> Optional[ExternalRedditUserAnalysis]:
        """Stamp a failed analysis on an existing profile, if tracked."""
        profile = self.get_profile(app_user_id, username)
        if profile is None:
            return None

        profile.error = error
        profile.last_error_at = at or utcnow()
        if suspension_status:
            profile.suspension_status = suspension_status
        self.db.commit()
        return profile

    def delete_profile(self, app_user_id: str, username: str) -> bool:
        deleted = (
            self.db.query(ExternalRedditUserAnalysis)
            .filter(
                ExternalRedditUserAnalysis.app_user_id == app_user_id,
                ExternalRedditUserAnalysis.username
                == normalize_reddit_username(username),
            )
            .delete()
        )
        return deleted > 0
