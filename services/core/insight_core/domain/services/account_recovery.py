"""Password recovery via emailed reset links and one-time passwords.

Two independent paths:
1. Reset link: a random token is emailed, only its SHA-256 is stored, and
   the token is exchanged for a new password within the expiry window.
2. OTP: a 6-digit code is emailed and verified together with the email
   address and the new password.

Both mark their record used on success and drop all of the user's sessions.
"""

import hashlib
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from insight_core.domain.models import (
    OtpRequest,
    PasswordResetToken,
    User,
    as_utc,
    utcnow,
)
from insight_core.domain.services.auth import AuthService
from insight_core.domain.services.users import UserService


# =============================================================================
# EXCEPTIONS
# =============================================================================


class RecoveryError(Exception):
    """Raised when a reset token or OTP cannot be redeemed."""

    pass


# =============================================================================
# CONSTANTS
# =============================================================================


GENERIC_RESET_MESSAGE = (
    "If an account with this email exists, a password reset link has been sent."
)
GENERIC_OTP_MESSAGE = (
    "If an account with this email exists, a one-time password has been sent."
)

INVALID_RESET_TOKEN = "Invalid or expired password reset token."
INVALID_OTP = "Invalid or expired OTP. Please try again or request a new one."
EXPIRED_OTP = "OTP has expired. Please request a new one."
USED_OTP = "This OTP has already been used. Please request a new one."

RESET_TOKEN_BYTES = 32
OTP_DIGITS = 6


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_otp() -> str:
    return f"{secrets.randbelow(10 ** OTP_DIGITS):0{OTP_DIGITS}d}"


class AccountRecoveryService:
    """Service for reset-link and OTP password recovery."""

    def __init__(
        self,
        db: Session,
        reset_expire_minutes: int = 60,
        otp_expire_minutes: int = 10,
    ):
        """Initialize the recovery service.

        Args:
            db: SQLAlchemy database session.
            reset_expire_minutes: Lifetime of a reset link.
            otp_expire_minutes: Lifetime of an OTP.
        """
        self.db = db
        self.reset_expire_minutes = reset_expire_minutes
        self.otp_expire_minutes = otp_expire_minutes
        self.users = UserService(db)

    # -------------------------------------------------------------------------
    # Reset link
    # -------------------------------------------------------------------------

    def create_reset_token(self, email: str) -> Optional[tuple[User, str]]:
        """Issue a reset token for the account with this email.

        Returns:
            (user, raw_token) or None if no account matches. The raw token
            is never stored and must be emailed by the caller.
        """
        user = self.users.get_user_by_email(email)
        if user is None:
            return None

        token = secrets.token_hex(RESET_TOKEN_BYTES)
        now = utcnow()
        self.db.add(
            PasswordResetToken(
                user_id=user.id,
                token_hash=hash_token(token),
                created_at=now,
                expires_at=now + timedelta(minutes=self.reset_expire_minutes),
                used=False,
            )
        )
        self.db.flush()
        return user, token

    def reset_password_with_token(self, token: str, new_password: str) -> User:
        """Redeem a reset token.

        Raises:
            RecoveryError: If the token is unknown, used or expired.
            UserError: If the new password is invalid.
        """
        record = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.token_hash == hash_token(token or ""))
            .first()
        )
        if record is None or record.used or as_utc(record.expires_at) < utcnow():
            raise RecoveryError(INVALID_RESET_TOKEN)

        user = self.users.update_user_password(record.user_id, new_password)
        record.used = True
        AuthService(self.db).invalidate_all_user_sessions(user.id)
        self.db.flush()
        return user

    # -------------------------------------------------------------------------
    # OTP
    # -------------------------------------------------------------------------

    def create_otp(self, email: str) -> Optional[tuple[User, str]]:
        """Issue a 6-digit OTP for the account with this email.

        Returns:
            (user, otp) or None if no account matches.
        """
        user = self.users.get_user_by_email(email)
        if user is None:
            return None

        otp = generate_otp()
        now = utcnow()
        self.db.add(
            OtpRequest(
                email=user.email,
                otp=otp,
                user_id=user.id,
                created_at=now,
                expires_at=now + timedelta(minutes=self.otp_expire_minutes),
                used=False,
            )
        )
        self.db.flush()
        return user, otp

    def verify_otp_and_reset_password(
        self, email: str, otp: str, new_password: str
    ) -> User:
        """Check an OTP and, if valid, set the new password.

        Raises:
            RecoveryError: With a distinct message for an unknown, expired
                or already used OTP.
            UserError: If the new password is invalid.
        """
        record = (
            self.db.query(OtpRequest)
            .filter(
                OtpRequest.email == (email or "").strip().lower(),
                OtpRequest.otp == (otp or "").strip(),
            )
            .order_by(OtpRequest.created_at.desc(), OtpRequest.id.desc())
            .first()
        )
        if record is None:
            raise RecoveryError(INVALID_OTP)
        if record.used:
            raise RecoveryError(USED_OTP)
        if as_utc(record.expires_at) < utcnow():
            raise RecoveryError(EXPIRED_OTP)

        user = self.users.update_user_password(record.user_id, new_password)
        record.used = True
        record.used_at = utcnow()
        AuthService(self.db).invalidate_all_user_sessions(user.id)
        self.db.flush()
        return user

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def cleanup_expired(self) -> dict[str, int]:
        """Delete expired or used recovery records.

        Returns:
            Counts of deleted OTPs and reset tokens.
        """
        now = utcnow()
        otps = (
            self.db.query(OtpRequest)
            .filter((OtpRequest.expires_at < now) | (OtpRequest.used.is_(True)))
            .delete(synchronize_session=False)
        )
        tokens = (
            self.db.query(PasswordResetToken)
            .filter(
                (PasswordResetToken.expires_at < now)
                | (PasswordResetToken.used.is_(True))
            )
            .delete(synchronize_session=False)
        )
        return {"otps_deleted": otps, "reset_tokens_deleted": tokens}
