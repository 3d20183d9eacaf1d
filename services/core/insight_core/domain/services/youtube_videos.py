"""YouTube video tracker store.

Admins assign videos to users one at a time or in batches. Each video is
stored in canonical watch form with placeholder metadata.

Usage:
    service = YoutubeVideoService(db=session)

    video = service.add_video("https://youtu.be/dQw4w9WgXcQ", user.id)
    videos = service.list_videos(user.id)
"""

import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from insight_core.domain.models import User, YoutubeVideo, utcnow
from insight_core.domain.services.mentions import BatchWriteResult
from insight_core.domain.services.users import (
    UserError,
    UserNotFoundError,
    canonical_youtube_url,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================


PLACEHOLDER_THUMBNAIL_URL = "https://placehold.co/320x180.png"
PLACEHOLDER_CHANNEL_TITLE = "N/A"

# Filter value meaning "no specific user"
ALL_USERS = "all"


def placeholder_title(url: str) -> str:
    return f"Video: {url[:40]}..."


class YoutubeVideoService:
    """Service for assigning and listing tracked YouTube videos."""

    def __init__(self, db: Session):
        """Initialize the YouTube video service.

        Args:
            db: SQLAlchemy database session.
        """
        self.db = db

    def _new_video(self, url: str, assigned_to_user_id: str) -> YoutubeVideo:
        canonical = canonical_youtube_url(url)
        if canonical is None:
            raise UserError(f"Invalid YouTube URL: {url}")
        return YoutubeVideo(
            id=uuid.uuid4().hex,
            assigned_to_user_id=assigned_to_user_id,
            url=canonical,
            title=placeholder_title(canonical),
            thumbnail_url=PLACEHOLDER_THUMBNAIL_URL,
            like_count=0,
            comment_count=0,
            share_count=0,
            channel_title=PLACEHOLDER_CHANNEL_TITLE,
            created_at=utcnow(),
        )

    def _require_user(self, user_id: str) -> None:
        if not user_id or not user_id.strip():
            raise UserError("assigned_to_user_id cannot be empty.")
        if self.db.get(User, user_id) is None:
            raise UserNotFoundError(f"User with ID {user_id} not found.")

    def add_video(self, url: str, assigned_to_user_id: str) -> YoutubeVideo:
        """Assign one video to a user.

        Raises:
            UserNotFoundError: If the user does not exist.
            UserError: If the user ID is blank or the URL is not a YouTube
                video URL.
        """
        self._require_user(assigned_to_user_id)
        video = self._new_video(url, assigned_to_user_id)
        self.db.add(video)
        self.db.flush()
        logger.info(f"YouTube video {video.url} assigned to user {assigned_to_user_id}")
        return video

    def add_videos_batch(
        self, urls: Iterable[str], assigned_to_user_id: str
    ) -> BatchWriteResult:
        """Assign several videos to a user in a single commit.

        Invalid URLs are skipped and reported. A failing commit rolls the
        whole batch back and is reported rather than raised.

        Raises:
            UserNotFoundError: If the user does not exist.
            UserError: If the user ID is blank.
        """
        self._require_user(assigned_to_user_id)
        result = BatchWriteResult()
        videos: list[YoutubeVideo] = []

        for url in urls:
            try:
                videos.append(self._new_video(url, assigned_to_user_id))
            except UserError as e:
                result.error_count += 1
                result.errors.append(str(e))

        if not videos:
            return result

        pending = [video.id for video in videos]
        try:
            self.db.add_all(videos)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"YouTube video batch failed for user {assigned_to_user_id}: {e}",
                exc_info=True,
            )
            result.error_count += len(pending)
            result.errors.append(f"Batch Commit Failed: {e}")
            return result

        result.success_count = len(pending)
        result.stored_ids = pending
        return result

    def list_videos(self, user_id: Optional[str]) -> list[YoutubeVideo]:
        """Videos assigned to a user, newest first.

        A missing user ID or ``"all"`` returns nothing; listing across every
        user is not supported.
        """
        if not user_id or user_id == ALL_USERS:
            return []
        return (
            self.db.query(YoutubeVideo)
            .filter(YoutubeVideo.assigned_to_user_id == user_id)
            .order_by(YoutubeVideo.created_at.desc())
            .all()
        )

    def get_videos_by_ids(self, video_ids: list[str]) -> list[YoutubeVideo]:
        if not video_ids:
            return []
        return (
            self.db.query(YoutubeVideo)
            .filter(YoutubeVideo.id.in_(video_ids))
            .order_by(YoutubeVideo.created_at.desc())
            .all()
        )
