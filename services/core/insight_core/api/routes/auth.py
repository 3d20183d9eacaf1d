"""Authentication and account recovery API routes.

Recovery endpoints answer with the same generic message whether or not the
email belongs to an account, and mail delivery failures are only logged.
"""

from fastapi import APIRouter, HTTPException, Response, status

from insight_core.api.deps import (
    AuthServiceDep,
    CurrentUser,
    DBSession,
    MailerDep,
    SessionId,
    SettingsDep,
)
from insight_core.api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MessageResponse,
    OtpRequest,
    PasswordResetRequest,
    ResetPasswordRequest,
    UserInfo,
    VerifyOtpRequest,
)
from insight_core.domain.services.account_recovery import (
    GENERIC_OTP_MESSAGE,
    GENERIC_RESET_MESSAGE,
    AccountRecoveryService,
    RecoveryError,
)
from insight_core.domain.services.audit import AuditService
from insight_core.domain.services.mailer import MailerError
from insight_core.domain.services.users import UserError
from insight_core.observability.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _recovery_service(db, settings) -> AccountRecoveryService:
    return AccountRecoveryService(
        db,
        reset_expire_minutes=settings.password_reset_expire_minutes,
        otp_expire_minutes=settings.otp_expire_minutes,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    auth_service: AuthServiceDep,
    db: DBSession,
    settings: SettingsDep,
) -> LoginResponse:
    """Authenticate user and create session.

    Sets a session cookie on successful authentication.
    """
    audit = AuditService(db)
    user = auth_service.authenticate_user(request.email, request.password)

    if user is None:
        audit.record(
            "auth.login",
            result="error",
            request_json={"email": request.email},
            error_detail="Invalid email or password",
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    session_id = auth_service.create_session(
        user.id,
        expire_hours=settings.session_expire_hours,
    )
    db.flush()

    audit.record(
        "auth.login",
        request_json={"email": request.email},
        entity_type="user",
        entity_id=user.id,
    )

    response.set_cookie(
        key="session",
        value=session_id,
        httponly=True,
        secure=True,  # Requires HTTPS
        samesite="lax",
        max_age=settings.session_expire_hours * 3600,
    )

    return LoginResponse(
        success=True,
        user=UserInfo.model_validate(user),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    session_id: SessionId,
    auth_service: AuthServiceDep,
    current_user: CurrentUser,
    db: DBSession,
) -> LogoutResponse:
    """Invalidate current session and clear cookie."""
    if session_id:
        auth_service.invalidate_session(session_id)

    AuditService(db).record("auth.logout", entity_type="user", entity_id=current_user.id)

    response.delete_cookie(
        key="session",
        httponly=True,
        secure=True,
        samesite="lax",
    )

    return LogoutResponse()


@router.get("/me", response_model=UserInfo)
async def get_current_user_info(
    current_user: CurrentUser,
) -> UserInfo:
    """Get information about the currently authenticated user."""
    return UserInfo.model_validate(current_user)


# =============================================================================
# Account recovery
# =============================================================================


@router.post("/request-password-reset", response_model=MessageResponse)
async def request_password_reset(
    request: PasswordResetRequest,
    db: DBSession,
    settings: SettingsDep,
    mailer: MailerDep,
) -> MessageResponse:
    """Email a password reset link if the account exists."""
    issued = _recovery_service(db, settings).create_reset_token(request.email)
    if issued is None:
        log.info("Password reset requested for unknown email")
        return MessageResponse(message=GENERIC_RESET_MESSAGE)

    user, token = issued
    db.commit()
    AuditService(db).record(
        "auth.password_reset_requested", entity_type="user", entity_id=user.id
    )

    reset_link = f"{settings.app_url.rstrip('/')}/reset-password?token={token}"
    try:
        await mailer.send_async(
            to=user.email,
            subject="Password Reset Request - Insight Stream",
            text=(
                "A password reset was requested for your Insight Stream account.\n\n"
                f"Reset your password within {settings.password_reset_expire_minutes} "
                f"minutes using this link:\n{reset_link}\n\n"
                "If you did not request this, you can ignore this email."
            ),
            html=(
                "<p>A password reset was requested for your Insight Stream account.</p>"
                f'<p><a href="{reset_link}">Reset Password</a></p>'
                f"<p>The link is valid for {settings.password_reset_expire_minutes} minutes.</p>"
            ),
        )
    except MailerError as e:
        log.error("Password reset email failed", user_id=user.id, error=str(e))

    return MessageResponse(message=GENERIC_RESET_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    db: DBSession,
    settings: SettingsDep,
) -> MessageResponse:
    """Exchange a reset token for a new password."""
    try:
        user = _recovery_service(db, settings).reset_password_with_token(
            request.token, request.new_password
        )
    except (RecoveryError, UserError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService(db).record("auth.password_reset", entity_type="user", entity_id=user.id)
    return MessageResponse(message="Password has been reset successfully.")


@router.post("/request-otp", response_model=MessageResponse)
async def request_otp(
    request: OtpRequest,
    db: DBSession,
    settings: SettingsDep,
    mailer: MailerDep,
) -> MessageResponse:
    """Email a one-time password if the account exists."""
    issued = _recovery_service(db, settings).create_otp(request.email)
    if issued is None:
        log.info("OTP requested for unknown email")
        return MessageResponse(message=GENERIC_OTP_MESSAGE)

    user, otp = issued
    db.commit()

    try:
        await mailer.send_async(
            to=user.email,
            subject="Your Insight Stream verification code",
            text=(
                f"Your one-time password is {otp}.\n\n"
                f"It expires in {settings.otp_expire_minutes} minutes."
            ),
        )
    except MailerError as e:
        log.error("OTP email failed", user_id=user.id, error=str(e))

    return MessageResponse(message=GENERIC_OTP_MESSAGE)


@router.post("/verify-otp-and-reset-password", response_model=MessageResponse)
async def verify_otp_and_reset_password(
    request: VerifyOtpRequest,
    db: DBSession,
    settings: SettingsDep,
) -> MessageResponse:
    """Check an OTP and set the new password."""
    try:
        user = _recovery_service(db, settings).verify_otp_and_reset_password(
            request.email, request.otp, request.new_password
        )
    except (RecoveryError, UserError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService(db).record(
        "auth.password_reset_otp", entity_type="user", entity_id=user.id
    )
    return MessageResponse(message="Password has been reset successfully.")
