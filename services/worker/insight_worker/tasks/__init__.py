"""Insight Stream Worker Tasks."""

# Import all tasks to register them with Celery
from insight_worker.tasks import maintenance  # noqa: F401
from insight_worker.tasks import mentions  # noqa: F401
from insight_worker.tasks import reddit  # noqa: F401
