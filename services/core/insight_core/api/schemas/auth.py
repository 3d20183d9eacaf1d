"""Authentication and account recovery schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Request body for login endpoint."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Response body for successful login."""

    success: bool = True
    user: "UserInfo"


class LogoutResponse(BaseModel):
    """Response body for successful logout."""

    success: bool = True
    message: str = "Logged out successfully"


class UserInfo(BaseModel):
    """Public user information (no sensitive data)."""

    id: str
    name: str
    email: str
    role: str
    profile_picture_url: Optional[str] = None
    created_at: datetime
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PasswordResetRequest(BaseModel):
    """Request body for requesting a reset link."""

    email: str = Field(..., min_length=3, max_length=255)


class ResetPasswordRequest(BaseModel):
    """Request body for redeeming a reset link."""

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, description="Minimum 6 characters")


class OtpRequest(BaseModel):
    """Request body for requesting a one-time password."""

    email: str = Field(..., min_length=3, max_length=255)


class VerifyOtpRequest(BaseModel):
    """Request body for resetting a password with an OTP."""

    email: str = Field(..., min_length=3, max_length=255)
    otp: str = Field(..., pattern=r"^\d{6}$", description="6-digit code")
    new_password: str = Field(..., min_length=6, description="Minimum 6 characters")


class MessageResponse(BaseModel):
    """Generic success response."""

    success: bool = True
    message: str


# Update forward references
LoginResponse.model_rebuild()
