"""Unit tests for YoutubeVideoService."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from insight_core.domain.models import YoutubeVideo
from insight_core.domain.services.users import UserError, UserNotFoundError
from insight_core.domain.services.youtube_videos import (
    PLACEHOLDER_CHANNEL_TITLE,
    PLACEHOLDER_THUMBNAIL_URL,
    YoutubeVideoService,
    placeholder_title,
)

WATCH_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
OTHER_URL = "https://www.youtube.com/watch?v=9bZkp7q19f0"


class TestAddVideo:
    """Tests for YoutubeVideoService.add_video."""

    def test_stores_canonical_url_with_placeholders(self, db_session, regular_user):
        video = YoutubeVideoService(db_session).add_video(
            "https://youtu.be/dQw4w9WgXcQ", regular_user.id
        )

        assert video.url == WATCH_URL
        assert video.title == placeholder_title(WATCH_URL)
        assert video.title.startswith("Video: https://www.youtube.com/watch?v=dQ")
        assert video.thumbnail_url == PLACEHOLDER_THUMBNAIL_URL
        assert video.channel_title == PLACEHOLDER_CHANNEL_TITLE
        assert (video.like_count, video.comment_count, video.share_count) == (0, 0, 0)
        assert video.assigned_to_user_id == regular_user.id

    def test_invalid_url(self, db_session, regular_user):
        with pytest.raises(UserError, match="Invalid YouTube URL"):
            YoutubeVideoService(db_session).add_video("https://vimeo.com/1", regular_user.id)

    def test_blank_user(self, db_session):
        with pytest.raises(UserError, match="cannot be empty"):
            YoutubeVideoService(db_session).add_video(WATCH_URL, " ")

    def test_unknown_user(self, db_session):
        with pytest.raises(UserNotFoundError):
            YoutubeVideoService(db_session).add_video(WATCH_URL, "missing")


class TestAddVideosBatch:
    """Tests for YoutubeVideoService.add_videos_batch."""

    def test_stores_valid_and_reports_invalid(self, db_session, regular_user):
        result = YoutubeVideoService(db_session).add_videos_batch(
            [WATCH_URL, "not a url", OTHER_URL], regular_user.id
        )

        assert result.success_count == 2
        assert result.error_count == 1
        assert result.errors == ["Invalid YouTube URL: not a url"]
        assert len(result.stored_ids) == 2
        assert db_session.query(YoutubeVideo).count() == 2

    def test_failed_commit_is_reported(self, db_session, regular_user):
        service = YoutubeVideoService(db_session)

        with patch.object(db_session, "commit", side_effect=SQLAlchemyError("disk full")):
            result = service.add_videos_batch([WATCH_URL, OTHER_URL], regular_user.id)

        assert result.success_count == 0
        assert result.error_count == 2
        assert result.errors == ["Batch Commit Failed: disk full"]
        assert service.list_videos(regular_user.id) == []

    def test_unknown_user(self, db_session):
        with pytest.raises(UserNotFoundError):
            YoutubeVideoService(db_session).add_videos_batch([WATCH_URL], "missing")


class TestListVideos:
    """Tests for YoutubeVideoService.list_videos."""

    def test_newest_first_and_scoped_per_user(self, db_session, make_user):
        owner = make_user()
        other = make_user()
        service = YoutubeVideoService(db_session)
        older = service.add_video(WATCH_URL, owner.id)
        newer = service.add_video(OTHER_URL, owner.id)
        service.add_video(WATCH_URL, other.id)
        base = datetime(2025, 10, 1, tzinfo=timezone.utc)
        older.created_at = base
        newer.created_at = base + timedelta(hours=1)
        db_session.commit()

        videos = service.list_videos(owner.id)

        assert [v.id for v in videos] == [newer.id, older.id]

    @pytest.mark.parametrize("user_id", [None, "", "all"])
    def test_without_specific_user_returns_nothing(self, db_session, regular_user, user_id):
        service = YoutubeVideoService(db_session)
        service.add_video(WATCH_URL, regular_user.id)

        assert service.list_videos(user_id) == []
