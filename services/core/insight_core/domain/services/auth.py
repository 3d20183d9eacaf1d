"""Authentication service for Insight Stream.

Provides password hashing, session management, and login by email.
Uses Argon2 for password hashing.
"""

import uuid
from datetime import timedelta
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from sqlalchemy.orm import Session as DBSession

from insight_core.domain.models import Session, User, as_utc, utcnow

_password_hasher = PasswordHasher(
    time_cost=3,
    memory_cost=65536,  # 64MB
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

# Minimum password length accepted by reset and OTP flows
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash a password using Argon2."""
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Verify a password against its hash.

    Users created without a password (admin-provisioned accounts that have
    not completed a reset yet) never verify.
    """
    if not password or not password_hash:
        return False

    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: DBSession):
        """Initialize the auth service.

        Args:
            db: SQLAlchemy database session.
        """
        self.db = db

    def create_session(self, user_id: str, expire_hours: int = 24 * 7) -> str:
        """Create a new session for a user.

        Args:
            user_id: The ID of the user to create a session for.
            expire_hours: Hours until the session expires (default: 1 week).

        Returns:
            The session ID (UUID string).
        """
        session_id = str(uuid.uuid4())
        now = utcnow()

        self.db.add(
            Session(
                id=session_id,
                user_id=user_id,
                created_at=now,
                expires_at=now + timedelta(hours=expire_hours),
            )
        )
        return session_id

    def validate_session(self, session_id: str) -> Optional[User]:
        """Validate a session and return the associated user.

        Args:
            session_id: The session ID to validate.

        Returns:
            The User if session is valid, None otherwise.
        """
        if not session_id:
            return None

        session = self.db.query(Session).filter_by(id=session_id).first()
        if session is None:
            return None

        if as_utc(session.expires_at) < utcnow():
            return None

        return self.db.query(User).filter_by(id=session.user_id).first()

    def invalidate_session(self, session_id: str) -> None:
        self.db.query(Session).filter_by(id=session_id).delete()

    def invalidate_all_user_sessions(self, user_id: str) -> None:
        """Drop every session of a user, e.g. after a password reset."""
        self.db.query(Session).filter_by(user_id=user_id).delete()

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate a user by email and password.

        Args:
            email: The account email (case-insensitive).
            password: The password to verify.

        Returns:
            The User if authentication succeeds, None otherwise.
        """
        user = (
            self.db.query(User)
            .filter(User.email == email.strip().lower())
            .first()
        )
        if user is None:
            return None

        if not verify_password(password, user.password_hash):
            return None

        user.last_login_at = utcnow()
        return user

    def cleanup_expired_sessions(self) -> int:
        """Remove all expired sessions.

        Returns:
            The number of sessions removed.
        """
        return self.db.query(Session).filter(Session.expires_at < utcnow()).delete()
