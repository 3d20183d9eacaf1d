"""Audit log schemas for request/response validation."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class AuditEntryResponse(BaseModel):
    """Response body for an audit entry."""

    id: int
    ts: datetime
    actor: str
    action_type: str
    result: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    request_json: Optional[dict[str, Any]] = None
    error_detail: Optional[str] = None

    class Config:
        from_attributes = True


class AuditListResponse(BaseModel):
    """Response body for listing audit entries."""

    entries: list[AuditEntryResponse]
    total: int
    limit: int
