"""Maintenance tasks for expiring short-lived records."""

from datetime import datetime, timezone

from insight_worker.celery_app import app
from insight_worker.tasks.db import get_db_session


def _now_utc() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


@app.task(name="maintenance.cleanup_expired_tokens", bind=True, max_retries=3)
def cleanup_expired_tokens(self) -> dict:
    """Delete expired sessions and expired or used recovery records.

    Returns:
        Dict with status, deleted counts and timestamps.
    """
    started_at = _now_utc()
    db = None

    try:
        from insight_core.domain.services.account_recovery import AccountRecoveryService
        from insight_core.domain.services.auth import AuthService

        db = get_db_session()
        counts = AccountRecoveryService(db).cleanup_expired()
        counts["sessions_deleted"] = AuthService(db).cleanup_expired_sessions()
        db.commit()

        completed_at = _now_utc()

        return {
            "status": "success",
            **counts,
            "started_at": started_at.isoformat(),
            "completed_at": completed_at.isoformat(),
            "duration_seconds": int((completed_at - started_at).total_seconds()),
        }

    except Exception as exc:
        if db:
            db.rollback()

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))

        return {
            "status": "failed",
            "error": str(exc),
            "started_at": started_at.isoformat(),
            "completed_at": _now_utc().isoformat(),
        }

    finally:
        if db:
            db.close()
