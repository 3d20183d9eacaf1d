"""API key schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ApiKeyCreate(BaseModel):
    """Request body for storing a third-party credential."""

    service_name: str = Field(..., min_length=1, max_length=128)
    key_value: str = Field(..., min_length=1)
    description: Optional[str] = None


class ApiKeyResponse(BaseModel):
    """Stored credential with its value masked."""

    id: str
    service_name: str
    masked_value: str
    description: Optional[str] = None
    added_by_user_id: Optional[str] = None
    created_at: datetime


class ApiKeyListResponse(BaseModel):
    """Response body for listing credentials."""

    api_keys: list[ApiKeyResponse]
    total: int


class DeleteResponse(BaseModel):
    """Response body for deletions."""

    success: bool = True
    message: str = "Deleted successfully"
