"""Mention API routes.

Provides endpoints for:
- GET /mentions - The current user's stored mentions, newest first
- POST /mentions/refresh - Run a gathering pass (inline or on the worker)
- GET /mentions/refresh/{job_id} - Status of a queued pass
"""

from typing import Optional, Union

from celery import Celery
from celery.result import AsyncResult
from fastapi import APIRouter, HTTPException, Query, status

from insight_core.api.deps import CurrentUser, DBSession, SettingsDep
from insight_core.api.schemas.mentions import (
    MentionListResponse,
    MentionResponse,
    RefreshJobStatusResponse,
    RefreshMentionsRequest,
    RefreshMentionsResponse,
    RefreshQueuedResponse,
)
from insight_core.config import get_settings
from insight_core.domain.flows.gather_mentions import gather_global_mentions
from insight_core.domain.services.audit import AuditService
from insight_core.domain.services.mentions import (
    DEFAULT_MENTIONS_LIMIT,
    MentionService,
)

router = APIRouter(prefix="/mentions", tags=["mentions"])


def get_celery_app() -> Celery:
    """Get a Celery app instance."""
    settings = get_settings()
    return Celery(broker=settings.celery_broker_url, backend=settings.celery_result_backend)


@router.get("", response_model=MentionListResponse)
async def list_mentions(
    current_user: CurrentUser,
    db: DBSession,
    limit: int = Query(
        DEFAULT_MENTIONS_LIMIT, ge=1, le=DEFAULT_MENTIONS_LIMIT, description="Maximum mentions"
    ),
) -> MentionListResponse:
    """List the current user's mentions, newest first."""
    mentions = MentionService(db).get_mentions_for_user(current_user.id, limit=limit)
    return MentionListResponse(
        mentions=[MentionResponse.model_validate(m) for m in mentions],
        total=len(mentions),
    )


@router.post(
    "/refresh",
    response_model=Union[RefreshMentionsResponse, RefreshQueuedResponse],
)
async def refresh_mentions(
    current_user: CurrentUser,
    db: DBSession,
    settings: SettingsDep,
    request: Optional[RefreshMentionsRequest] = None,
    background: bool = Query(False, description="Queue the pass on the worker"),
):
    """Gather mentions for the current user, or any user for admins.

    Source and sentiment failures are reported in ``errors`` with a 200;
    the pass itself never fails the request.
    """
    user_id = current_user.id
    if request is not None and request.user_id and request.user_id != current_user.id:
        if not current_user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can refresh mentions for other users",
            )
        user_id = request.user_id

    audit = AuditService(db)

    if background:
        task = get_celery_app().send_task(
            "mentions.refresh_user",
            kwargs={"user_id": user_id},
            queue="mentions",
        )
        audit.record(
            "mentions.refresh.queue",
            entity_type="user",
            entity_id=user_id,
            request_json={"job_id": task.id},
        )
        db.commit()
        return RefreshQueuedResponse(job_id=task.id, user_id=user_id)

    result = await gather_global_mentions(db, user_id, settings=settings)
    audit.record(
        "mentions.refresh",
        result="error" if result.errors and not result.total_mentions_fetched else "ok",
        entity_type="user",
        entity_id=user_id,
        request_json=result.to_dict(),
    )
    return RefreshMentionsResponse(**result.to_dict())


@router.get("/refresh/{job_id}", response_model=RefreshJobStatusResponse)
async def get_refresh_status(
    job_id: str,
    current_user: CurrentUser,
) -> RefreshJobStatusResponse:
    """Check the status of a queued refresh."""
    result = AsyncResult(job_id, app=get_celery_app())

    if not result.ready():
        return RefreshJobStatusResponse(job_id=job_id, status="pending")
    if result.successful():
        return RefreshJobStatusResponse(
            job_id=job_id, status="success", result=result.result
        )
    return RefreshJobStatusResponse(
        job_id=job_id, status="failure", result={"error": str(result.result)}
    )
