"""External Reddit profile analysis tasks."""

import asyncio
import logging
from typing import Optional

from insight_worker.celery_app import app
from insight_worker.tasks.db import get_db_session

logger = logging.getLogger(__name__)


@app.task(
    bind=True,
    name="reddit.analyze_profile",
    max_retries=2,
    default_retry_delay=60,
)
def analyze_profile(self, username: str, app_user_id: Optional[str] = None) -> dict:
    """Analyze a public Reddit account and store it for a dashboard user.

    A profile that Reddit reports as missing is not retried.

    Args:
        username: Reddit username.
        app_user_id: Dashboard user the analysis belongs to.

    Returns:
        dict: Task result with the fetched counts.
    """
    db = None

    try:
        db = get_db_session()

        from insight_core.domain.flows.reddit_analysis import (
            RedditAnalysisError,
            analyze_external_reddit_user,
        )

        try:
            analysis = asyncio.run(
                analyze_external_reddit_user(db, username, app_user_id=app_user_id)
            )
        except RedditAnalysisError as e:
            if e.status_code in (403, 404):
                logger.warning(f"Reddit profile u/{username} unavailable: {e}")
                return {
                    "status": "error",
                    "username": username,
                    "error": str(e),
                }
            raise

        if analysis.error:
            return {
                "status": "error",
                "username": username,
                "error": analysis.error,
            }

        return {
            "status": "success",
            "username": analysis.username,
            "posts_fetched": analysis.total_posts_fetched_this_run,
            "comments_fetched": analysis.total_comments_fetched_this_run,
            "subreddits": len(analysis.subreddits_posted_in),
        }

    except Exception as exc:
        logger.error(f"Reddit analysis failed for u/{username}: {exc}", exc_info=True)

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=60)
        return {
            "status": "failed",
            "username": username,
            "error": str(exc),
        }

    finally:
        if db:
            db.close()
