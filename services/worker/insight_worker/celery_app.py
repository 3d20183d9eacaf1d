"""Celery application configuration for the Insight Stream worker."""

import os

from celery import Celery
from celery.schedules import crontab

# Celery configuration from environment
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/2")
MENTIONS_REFRESH_INTERVAL_SECONDS = float(
    os.getenv("MENTIONS_REFRESH_INTERVAL_SECONDS", "3600")
)

app = Celery(
    "insight_worker",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    include=[
        "insight_worker.tasks.maintenance",
        "insight_worker.tasks.mentions",
        "insight_worker.tasks.reddit",
    ],
)

# Celery configuration
app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Time limits (seconds)
    task_soft_time_limit=300,  # 5 minutes
    task_time_limit=600,  # 10 minutes
    # Retry settings
    task_default_retry_delay=60,  # 1 minute
    # Queue routing
    task_routes={
        "maintenance.*": {"queue": "maintenance"},
        "mentions.*": {"queue": "mentions"},
        "reddit.*": {"queue": "reddit"},
    },
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
)

# Beat schedule for periodic tasks
app.conf.beat_schedule = {
    # Gather mentions for every user with keywords
    "mentions-refresh-periodic": {
        "task": "mentions.refresh_all_users",
        "schedule": MENTIONS_REFRESH_INTERVAL_SECONDS,
        "args": (),
    },
    # Daily cleanup of expired sessions, OTPs and reset tokens at 3 AM UTC
    "daily-token-cleanup": {
        "task": "maintenance.cleanup_expired_tokens",
        "schedule": crontab(hour=3, minute=0),
        "args": (),
    },
}


if __name__ == "__main__":
    app.start()
