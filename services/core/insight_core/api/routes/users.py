"""User management API routes.

Provides endpoints for:
- GET /users - List users (admin)
- POST /users - Create a user (admin)
- GET /users/{id} - Get one user (admin or self)
- PUT /users/{id}/keywords - Replace assigned keywords (admin)
- PUT /users/{id}/rss-feeds - Replace assigned feeds (admin)
- POST /users/{id}/youtube-urls - Assign a YouTube video (admin)
- DELETE /users/{id}/youtube-urls - Remove a YouTube video (admin)
"""

from fastapi import APIRouter, HTTPException, status

from insight_core.api.deps import AdminUser, CurrentUser, DBSession
from insight_core.api.schemas.users import (
    KeywordsUpdate,
    RssFeedsUpdate,
    UserCreate,
    UserListResponse,
    UserResponse,
    YoutubeUrlRequest,
)
from insight_core.domain.services.audit import AuditService
from insight_core.domain.services.users import (
    UserError,
    UserNotFoundError,
    UserService,
)

router = APIRouter(prefix="/users", tags=["users"])


def _user_error(e: UserError) -> HTTPException:
    if isinstance(e, UserNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=UserListResponse)
async def list_users(admin: AdminUser, db: DBSession) -> UserListResponse:
    """List all users, newest first."""
    users = UserService(db).list_users()
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=len(users),
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreate, admin: AdminUser, db: DBSession
) -> UserResponse:
    """Create a user. Admins without keywords get the default set."""
    audit = AuditService(db)
    try:
        user = UserService(db).add_user(
            name=request.name,
            email=request.email,
            role=request.role,
            password=request.password,
            assigned_keywords=request.assigned_keywords,
        )
    except UserError as e:
        audit.record(
            "users.create",
            result="error",
            request_json={"email": request.email, "role": request.role},
            error_detail=str(e),
        )
        db.commit()
        raise _user_error(e)

    audit.record(
        "users.create",
        entity_type="user",
        entity_id=user.id,
        request_json={"email": user.email, "role": user.role},
    )
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str, current_user: CurrentUser, db: DBSession
) -> UserResponse:
    """Get a user. Non-admins may only read themselves."""
    if not current_user.is_admin and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to view this user",
        )
    try:
        user = UserService(db).get_user_or_raise(user_id)
    except UserError as e:
        raise _user_error(e)
    return UserResponse.model_validate(user)


@router.put("/{user_id}/keywords", response_model=UserResponse)
async def update_keywords(
    user_id: str, request: KeywordsUpdate, admin: AdminUser, db: DBSession
) -> UserResponse:
    """Replace a user's keywords."""
    try:
        user = UserService(db).update_user_keywords(user_id, request.keywords)
    except UserError as e:
        raise _user_error(e)

    AuditService(db).record(
        "users.keywords.update",
        entity_type="user",
        entity_id=user.id,
        request_json={"keywords": user.assigned_keywords},
    )
    return UserResponse.model_validate(user)


@router.put("/{user_id}/rss-feeds", response_model=UserResponse)
async def update_rss_feeds(
    user_id: str, request: RssFeedsUpdate, admin: AdminUser, db: DBSession
) -> UserResponse:
    """Replace a user's RSS/Atom feeds."""
    try:
        user = UserService(db).update_user_rss_feed_urls(user_id, request.feed_urls)
    except UserError as e:
        raise _user_error(e)

    AuditService(db).record(
        "users.rss_feeds.update",
        entity_type="user",
        entity_id=user.id,
        request_json={"feed_urls": user.assigned_rss_feed_urls},
    )
    return UserResponse.model_validate(user)


@router.post("/{user_id}/youtube-urls", response_model=UserResponse)
async def assign_youtube_url(
    user_id: str, request: YoutubeUrlRequest, admin: AdminUser, db: DBSession
) -> UserResponse:
    """Assign a YouTube video to a user."""
    try:
        user = UserService(db).assign_youtube_url(user_id, request.url)
    except UserError as e:
        raise _user_error(e)

    AuditService(db).record(
        "users.youtube.assign",
        entity_type="user",
        entity_id=user.id,
        request_json={"url": request.url},
    )
    return UserResponse.model_validate(user)


@router.delete("/{user_id}/youtube-urls", response_model=UserResponse)
async def remove_youtube_url(
    user_id: str, request: YoutubeUrlRequest, admin: AdminUser, db: DBSession
) -> UserResponse:
    """Remove a YouTube video from a user."""
    try:
        user = UserService(db).remove_youtube_url(user_id, request.url)
    except UserError as e:
        raise _user_error(e)

    AuditService(db).record(
        "users.youtube.remove",
        entity_type="user",
        entity_id=user.id,
        request_json={"url": request.url},
    )
    return UserResponse.model_validate(user)
