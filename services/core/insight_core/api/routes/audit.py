"""Audit log API routes."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from insight_core.api.deps import AdminUser, DBSession
from insight_core.api.schemas.audit import AuditEntryResponse, AuditListResponse
from insight_core.domain.services.audit import AuditService

router = APIRouter(prefix="/audit", tags=["audit"])


def get_audit_service(db: DBSession) -> AuditService:
    """Get the audit service."""
    return AuditService(db)


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]


@router.get("", response_model=AuditListResponse)
async def list_audit_entries(
    admin: AdminUser,
    audit_service: AuditServiceDep,
    action_type: Optional[str] = Query(None, description="Filter by action type"),
    limit: int = Query(50, ge=1, le=100, description="Number of entries to return"),
):
    """List audit log entries, newest first."""
    entries = audit_service.list_entries(action_type=action_type, limit=limit)
    return AuditListResponse(
        entries=[AuditEntryResponse.model_validate(e) for e in entries],
        total=len(entries),
        limit=limit,
    )
