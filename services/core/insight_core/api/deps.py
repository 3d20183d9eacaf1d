"""API dependencies for dependency injection."""

from typing import Annotated, Optional

from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy.orm import Session

from insight_core.config import Settings, get_settings
from insight_core.domain.models import User
from insight_core.domain.services.auth import AuthService
from insight_core.domain.services.mailer import Mailer
from insight_core.infra.db import get_sync_session_factory


def get_db() -> Session:
    """Get a database session."""
    session_factory = get_sync_session_factory()
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_auth_service(db: Annotated[Session, Depends(get_db)]) -> AuthService:
    """Get the authentication service."""
    return AuthService(db)


def get_mailer(settings: Annotated[Settings, Depends(get_settings)]) -> Mailer:
    """Get the SMTP mailer."""
    return Mailer.from_settings(settings)


def get_session_id(session: Annotated[Optional[str], Cookie()] = None) -> Optional[str]:
    """Get the session ID from cookie."""
    return session


def get_current_user_optional(
    session_id: Annotated[Optional[str], Depends(get_session_id)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> Optional[User]:
    """Get the current user if authenticated, None otherwise."""
    if not session_id:
        return None
    return auth_service.validate_session(session_id)


def get_current_user(
    user: Annotated[Optional[User], Depends(get_current_user_optional)],
) -> User:
    """Get the current authenticated user.

    Raises:
        HTTPException: If user is not authenticated.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Cookie"},
        )
    return user


def require_admin(user: Annotated[User, Depends(get_current_user)]) -> User:
    """Get the current user, requiring the admin role.

    Raises:
        HTTPException: 403 if the user is not an admin.
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


# Type aliases for cleaner route signatures
DBSession = Annotated[Session, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentUserOptional = Annotated[Optional[User], Depends(get_current_user_optional)]
AdminUser = Annotated[User, Depends(require_admin)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
SessionId = Annotated[Optional[str], Depends(get_session_id)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
MailerDep = Annotated[Mailer, Depends(get_mailer)]
