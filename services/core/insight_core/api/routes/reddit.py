"""Reddit API routes.

Provides endpoints for:
- GET /reddit/search - Search proxy with per-item sentiment
- POST /reddit/analyze - Analyze an external Reddit account
- GET /reddit/profiles - Accounts tracked by the current user
- POST /reddit/profiles - Track an account without analyzing it yet
- GET /reddit/profiles/{username} - One tracked account
- DELETE /reddit/profiles/{username} - Stop tracking an account
"""

from typing import Annotated, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status

from insight_core.api.deps import CurrentUser, DBSession, SettingsDep
from insight_core.api.routes.mentions import get_celery_app
from insight_core.api.schemas.api_keys import DeleteResponse
from insight_core.api.schemas.reddit import (
    AnalysisQueuedResponse,
    AnalyzeProfileRequest,
    RedditProfileListResponse,
    RedditProfileResponse,
    RedditSearchItemResponse,
    RedditSearchResponse,
)
from insight_core.domain.flows.clients import build_reddit_client, get_api_key_service
from insight_core.domain.flows.reddit_analysis import (
    RedditAnalysisError,
    analyze_external_reddit_user,
)
from insight_core.domain.services.audit import AuditService
from insight_core.domain.services.reddit_profiles import (
    RedditProfileNotFoundError,
    RedditProfileService,
)
from insight_core.providers.reddit.client import (
    DEFAULT_SEARCH_LIMIT,
    VALID_SORTS,
    VALID_TIME_FILTERS,
    RedditClient,
)

router = APIRouter(prefix="/reddit", tags=["reddit"])


def get_reddit_client(db: DBSession, settings: SettingsDep) -> RedditClient:
    """Get a Reddit client using stored credentials."""
    return build_reddit_client(get_api_key_service(db, settings), settings)


RedditClientDep = Annotated[RedditClient, Depends(get_reddit_client)]


@router.get("/search", response_model=RedditSearchResponse)
async def search_reddit(
    current_user: CurrentUser,
    client: RedditClientDep,
    q: str = Query(..., min_length=1, description="Search query"),
    sort: str = Query("new", description="relevance, hot, top, new or comments"),
    t: str = Query("all", description="hour, day, week, month, year or all"),
    subreddit: Optional[str] = Query(None, description="Restrict to a subreddit"),
    limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1, le=100),
    after: Optional[str] = Query(None, description="Cursor from a previous page"),
) -> RedditSearchResponse:
    """Search Reddit posts and their newest comments.

    Provider failures are returned in ``error`` with an empty item list.
    """
    if sort not in VALID_SORTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"sort must be one of {sorted(VALID_SORTS)}",
        )
    if t not in VALID_TIME_FILTERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"t must be one of {sorted(VALID_TIME_FILTERS)}",
        )

    page = await client.search(
        q, sort=sort, t=t, subreddit=subreddit, limit=limit, after=after
    )
    return RedditSearchResponse(
        items=[RedditSearchItemResponse(**item.to_dict()) for item in page.items],
        next_after=page.next_cursor,
        error=page.error,
    )


@router.post(
    "/analyze",
    response_model=Union[RedditProfileResponse, AnalysisQueuedResponse],
)
async def analyze_profile(
    request: AnalyzeProfileRequest,
    current_user: CurrentUser,
    db: DBSession,
    settings: SettingsDep,
    client: RedditClientDep,
    background: bool = Query(False, description="Queue the analysis on the worker"),
):
    """Fetch and store a snapshot of a public Reddit account."""
    audit = AuditService(db)

    if background:
        task = get_celery_app().send_task(
            "reddit.analyze_profile",
            kwargs={"username": request.username, "app_user_id": current_user.id},
            queue="reddit",
        )
        audit.record(
            "reddit.analyze.queue",
            entity_type="reddit_profile",
            entity_id=request.username,
            request_json={"job_id": task.id},
        )
        db.commit()
        return AnalysisQueuedResponse(job_id=task.id, username=request.username)

    try:
        analysis = await analyze_external_reddit_user(
            db,
            request.username,
            app_user_id=current_user.id,
            client=client,
            settings=settings,
        )
    except RedditAnalysisError as e:
        audit.record(
            "reddit.analyze",
            result="error",
            entity_type="reddit_profile",
            entity_id=request.username,
            error_detail=str(e),
        )
        db.commit()
        code = (
            status.HTTP_404_NOT_FOUND
            if e.status_code == 404
            else status.HTTP_502_BAD_GATEWAY
            if e.status_code
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        raise HTTPException(status_code=code, detail=str(e))

    if analysis.error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=analysis.error)

    audit.record(
        "reddit.analyze",
        entity_type="reddit_profile",
        entity_id=analysis.username,
    )
    profile = RedditProfileService(db).get_profile(current_user.id, analysis.username)
    return RedditProfileResponse.model_validate(profile)


@router.get("/profiles", response_model=RedditProfileListResponse)
async def list_profiles(
    current_user: CurrentUser, db: DBSession
) -> RedditProfileListResponse:
    """List Reddit accounts tracked by the current user."""
    profiles = RedditProfileService(db).list_profiles(current_user.id)
    return RedditProfileListResponse(
        profiles=[RedditProfileResponse.model_validate(p) for p in profiles],
        total=len(profiles),
    )


@router.post(
    "/profiles",
    response_model=RedditProfileResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_profile(
    request: AnalyzeProfileRequest, current_user: CurrentUser, db: DBSession
) -> RedditProfileResponse:
    """Track an account as a placeholder until it is analyzed."""
    try:
        profile = RedditProfileService(db).add_placeholder(
            current_user.id, request.username
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return RedditProfileResponse.model_validate(profile)


@router.get("/profiles/{username}", response_model=RedditProfileResponse)
async def get_profile(
    username: str, current_user: CurrentUser, db: DBSession
) -> RedditProfileResponse:
    """Get one tracked account."""
    try:
        profile = RedditProfileService(db).get_profile_or_raise(current_user.id, username)
    except RedditProfileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return RedditProfileResponse.model_validate(profile)


@router.delete("/profiles/{username}", response_model=DeleteResponse)
async def delete_profile(
    username: str, current_user: CurrentUser, db: DBSession
) -> DeleteResponse:
    """Stop tracking an account."""
    if not RedditProfileService(db).delete_profile(current_user.id, username):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Reddit profile u/{username} not found",
        )
    return DeleteResponse()
