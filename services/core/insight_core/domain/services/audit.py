"""Audit log service for Insight Stream.

Entries are append-only. Routes record admin changes (user creation,
keyword assignment, API keys) and account events (login, password reset).
"""

from typing import Optional

from sqlalchemy.orm import Session as DBSession

from insight_core.domain.models import AuditLog, utcnow

# Valid values for audit fields
VALID_ACTORS = {"user", "system"}
VALID_RESULTS = {"ok", "error"}


class AuditService:
    """Service for audit log operations."""

    def __init__(self, db: DBSession):
        self.db = db

    def record(
        self,
        action_type: str,
        result: str = "ok",
        actor: str = "user",
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        request_json: Optional[dict] = None,
        error_detail: Optional[str] = None,
    ) -> AuditLog:
        """Append an audit entry.

        Args:
            action_type: Dotted action name (e.g., "users.create").
            result: "ok" or "error".
            actor: "user" or "system".
            entity_type: Optional type of the affected entity.
            entity_id: Optional ID of the affected entity.
            request_json: Optional request payload (never include secrets).
            error_detail: Optional error description.

        Returns:
            The created AuditLog entry.

        Raises:
            ValueError: If actor or result is invalid.
        """
        if actor not in VALID_ACTORS:
            raise ValueError(f"actor must be one of {VALID_ACTORS}, got '{actor}'")
        if result not in VALID_RESULTS:
            raise ValueError(f"result must be one of {VALID_RESULTS}, got '{result}'")

        entry = AuditLog(
            ts=utcnow(),
            actor=actor,
            action_type=action_type,
            result=result,
            entity_type=entity_type,
            entity_id=entity_id,
            request_json=request_json,
            error_detail=error_detail,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_entries(
        self, action_type: Optional[str] = None, limit: int = 100
    ) -> list[AuditLog]:
        """Most recent entries first, optionally filtered by action type."""
        query = self.db.query(AuditLog)
        if action_type:
            query = query.filter(AuditLog.action_type == action_type)
        return query.order_by(AuditLog.ts.desc(), AuditLog.id.desc()).limit(limit).all()
