"""API schemas."""

from insight_core.api.schemas.api_keys import (
    ApiKeyCreate,
    ApiKeyListResponse,
    ApiKeyResponse,
    DeleteResponse,
)
from insight_core.api.schemas.audit import AuditEntryResponse, AuditListResponse
from insight_core.api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MessageResponse,
    UserInfo,
)
from insight_core.api.schemas.mentions import (
    MentionListResponse,
    MentionResponse,
    RefreshMentionsResponse,
)
from insight_core.api.schemas.reddit import (
    RedditProfileResponse,
    RedditSearchResponse,
)
from insight_core.api.schemas.users import UserCreate, UserListResponse, UserResponse

__all__ = [
    # API key schemas
    "ApiKeyCreate",
    "ApiKeyListResponse",
    "ApiKeyResponse",
    "DeleteResponse",
    # Audit schemas
    "AuditEntryResponse",
    "AuditListResponse",
    # Auth schemas
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "MessageResponse",
    "UserInfo",
    # Mention schemas
    "MentionListResponse",
    "MentionResponse",
    "RefreshMentionsResponse",
    # Reddit schemas
    "RedditProfileResponse",
    "RedditSearchResponse",
    # User schemas
    "UserCreate",
    "UserListResponse",
    "UserResponse",
]
