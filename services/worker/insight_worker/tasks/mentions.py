"""Mention gathering tasks.

Provides background processing for:
1. Queueing a gathering pass for every user with keywords (periodic)
2. Running the gathering pass for a single user
"""

import asyncio
import logging

from insight_worker.celery_app import app
from insight_worker.tasks.db import get_db_session

logger = logging.getLogger(__name__)


@app.task(
    bind=True,
    name="mentions.refresh_all_users",
    max_retries=2,
    default_retry_delay=60,
)
def refresh_all_users(self) -> dict:
    """Queue a refresh for every user that has keywords assigned.

    Returns:
        dict: Summary with queued user count and task IDs.
    """
    db = None

    try:
        db = get_db_session()

        from insight_core.domain.services.users import UserService

        users = UserService(db).list_users_with_keywords()

        if not users:
            logger.info("No users with keywords to refresh")
            return {
                "status": "success",
                "message": "No users with keywords",
                "queued": 0,
            }

        logger.info(f"Queueing mention refresh for {len(users)} users")

        task_ids = []
        for user in users:
            task = refresh_user.delay(user_id=user.id)
            task_ids.append({"user_id": user.id, "task_id": task.id})
            logger.debug(f"Queued mention refresh for user {user.id}: {task.id}")

        return {
            "status": "success",
            "queued": len(task_ids),
            "tasks": task_ids,
        }

    except Exception as exc:
        logger.error(f"Failed to queue mention refreshes: {str(exc)}", exc_info=True)

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=60)
        return {
            "status": "failed",
            "error": str(exc),
        }

    finally:
        if db:
            db.close()


@app.task(
    bind=True,
    name="mentions.refresh_user",
    max_retries=3,
    default_retry_delay=120,
)
def refresh_user(self, user_id: str) -> dict:
    """Run one mention gathering pass for a user.

    Source and sentiment failures are part of the result, not task
    failures; only an unusable database triggers a retry.

    Args:
        user_id: ID of the user to gather mentions for.

    Returns:
        dict: Task result with fetched/stored counts and errors.
    """
    db = None

    try:
        db = get_db_session()

        from insight_core.domain.flows.gather_mentions import gather_global_mentions

        result = asyncio.run(gather_global_mentions(db, user_id))

        logger.info(
            f"Mention refresh for user {user_id}: "
            f"{result.total_mentions_fetched} fetched, "
            f"{result.new_mentions_stored} new, {len(result.errors)} errors"
        )

        return {
            "status": "success" if not result.errors else "partial",
            "user_id": user_id,
            **result.to_dict(),
        }

    except Exception as exc:
        logger.error(f"Mention refresh failed for user {user_id}: {exc}", exc_info=True)

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=120)
        return {
            "status": "failed",
            "user_id": user_id,
            "error": str(exc),
        }

    finally:
        if db:
            db.close()
