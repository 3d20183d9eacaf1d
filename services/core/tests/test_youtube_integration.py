"""Integration tests for the YouTube video tracker endpoints."""

import pytest
from httpx import AsyncClient

from insight_core.domain.services.audit import AuditService
from insight_core.domain.services.youtube_videos import YoutubeVideoService

WATCH_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


class TestAddVideo:
    """Integration tests for POST /youtube/videos."""

    @pytest.mark.asyncio
    async def test_admin_assigns_video(
        self, admin_client: AsyncClient, regular_user, db_session
    ):
        """Test an assigned video is returned with placeholder metadata and audited."""
        response = await admin_client.post(
            "/youtube/videos",
            json={"url": "https://youtu.be/dQw4w9WgXcQ", "assigned_to_user_id": regular_user.id},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["url"] == WATCH_URL
        assert data["channel_title"] == "N/A"
        assert data["like_count"] == 0
        assert data["assigned_to_user_id"] == regular_user.id
        entries = AuditService(db_session).list_entries(action_type="youtube.videos.add")
        assert [entry.entity_id for entry in entries] == [data["id"]]

    @pytest.mark.asyncio
    async def test_requires_admin(self, user_client: AsyncClient, regular_user):
        """Test regular users cannot assign videos."""
        response = await user_client.post(
            "/youtube/videos",
            json={"url": WATCH_URL, "assigned_to_user_id": regular_user.id},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_invalid_url_returns_400(self, admin_client: AsyncClient, regular_user):
        response = await admin_client.post(
            "/youtube/videos",
            json={"url": "https://example.com/video", "assigned_to_user_id": regular_user.id},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_user_returns_404(self, admin_client: AsyncClient):
        response = await admin_client.post(
            "/youtube/videos",
            json={"url": WATCH_URL, "assigned_to_user_id": "missing"},
        )

        assert response.status_code == 404


class TestAddVideosBatch:
    """Integration tests for POST /youtube/videos/batch."""

    @pytest.mark.asyncio
    async def test_batch_reports_invalid_urls(self, admin_client: AsyncClient, regular_user):
        """Test valid URLs are stored while invalid ones are listed."""
        response = await admin_client.post(
            "/youtube/videos/batch",
            json={
                "urls": [WATCH_URL, "https://youtu.be/bad"],
                "assigned_to_user_id": regular_user.id,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success_count"] == 1
        assert data["error_count"] == 1
        assert data["errors"] == ["Invalid YouTube URL: https://youtu.be/bad"]
        assert [v["url"] for v in data["videos"]] == [WATCH_URL]


class TestListVideos:
    """Integration tests for GET /youtube/videos."""

    @pytest.mark.asyncio
    async def test_user_sees_own_videos(
        self, user_client: AsyncClient, regular_user, db_session
    ):
        YoutubeVideoService(db_session).add_video(WATCH_URL, regular_user.id)
        db_session.commit()

        response = await user_client.get("/youtube/videos")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["videos"][0]["url"] == WATCH_URL

    @pytest.mark.asyncio
    async def test_user_cannot_list_others(self, user_client: AsyncClient, admin_user):
        response = await user_client.get("/youtube/videos", params={"user_id": admin_user.id})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_lists_any_user(
        self, admin_client: AsyncClient, regular_user, db_session
    ):
        YoutubeVideoService(db_session).add_video(WATCH_URL, regular_user.id)
        db_session.commit()

        response = await admin_client.get("/youtube/videos", params={"user_id": regular_user.id})

        assert response.status_code == 200
        assert response.json()["total"] == 1
