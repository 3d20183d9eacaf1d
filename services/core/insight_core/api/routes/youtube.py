"""YouTube video tracker routes.

- GET /youtube/videos?user_id= - Videos assigned to a user (admin, or self)
- POST /youtube/videos - Assign one video to a user (admin)
- POST /youtube/videos/batch - Assign several videos to a user (admin)
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from insight_core.api.deps import AdminUser, CurrentUser, DBSession
from insight_core.api.schemas.youtube import (
    YoutubeVideoBatchCreate,
    YoutubeVideoBatchResponse,
    YoutubeVideoCreate,
    YoutubeVideoListResponse,
    YoutubeVideoResponse,
)
from insight_core.domain.services.audit import AuditService
from insight_core.domain.services.users import UserError, UserNotFoundError
from insight_core.domain.services.youtube_videos import YoutubeVideoService

router = APIRouter(prefix="/youtube/videos", tags=["youtube"])


def _user_error(e: UserError) -> HTTPException:
    if isinstance(e, UserNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=YoutubeVideoListResponse)
async def list_videos(
    current_user: CurrentUser,
    db: DBSession,
    user_id: Optional[str] = Query(None, description="Owner; defaults to the caller"),
) -> YoutubeVideoListResponse:
    """List videos assigned to a user, newest first."""
    target = user_id or current_user.id
    if target != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )

    videos = YoutubeVideoService(db).list_videos(target)
    return YoutubeVideoListResponse(
        videos=[YoutubeVideoResponse.model_validate(v) for v in videos],
        total=len(videos),
    )


@router.post(
    "", response_model=YoutubeVideoResponse, status_code=status.HTTP_201_CREATED
)
async def add_video(
    request: YoutubeVideoCreate, admin: AdminUser, db: DBSession
) -> YoutubeVideoResponse:
    """Assign a video to a user."""
    try:
        video = YoutubeVideoService(db).add_video(request.url, request.assigned_to_user_id)
    except UserError as e:
        raise _user_error(e)

    AuditService(db).record(
        "youtube.videos.add",
        entity_type="youtube_video",
        entity_id=video.id,
        request_json={"url": video.url, "user_id": video.assigned_to_user_id},
    )
    return YoutubeVideoResponse.model_validate(video)


@router.post("/batch", response_model=YoutubeVideoBatchResponse)
async def add_videos_batch(
    request: YoutubeVideoBatchCreate, admin: AdminUser, db: DBSession
) -> YoutubeVideoBatchResponse:
    """Assign several videos to a user. Invalid URLs are reported, not fatal."""
    service = YoutubeVideoService(db)
    try:
        result = service.add_videos_batch(request.urls, request.assigned_to_user_id)
    except UserError as e:
        raise _user_error(e)

    AuditService(db).record(
        "youtube.videos.batch_add",
        result="error" if result.error_count and not result.success_count else "ok",
        entity_type="user",
        entity_id=request.assigned_to_user_id,
        request_json={"urls": request.urls},
        error_detail="; ".join(result.errors) or None,
    )
    videos = service.get_videos_by_ids(result.stored_ids)
    return YoutubeVideoBatchResponse(
        success_count=result.success_count,
        error_count=result.error_count,
        errors=result.errors,
        videos=[YoutubeVideoResponse.model_validate(v) for v in videos],
    )
