"""
Celery application initialization.

Creates the Celery app used to run batch comparisons in the background
and a health_check task to verify the broker and result backend.

Architecture Note:
- Part of Application Layer (orchestration)
- Uses environment variables for configuration (.env loaded here)
- No business logic - pure infrastructure setup
"""

import os
from datetime import datetime

from celery import Celery
from dotenv import load_dotenv

load_dotenv()

celery_app = Celery(
    "catalog_matcher",
    broker=os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0"),
    backend=os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/1"),
)

celery_app.conf.update(
    task_track_started=True,
    # Batch runs are long; the checkpoint makes a killed run resumable
    task_time_limit=int(os.environ.get("BATCH_TASK_TIME_LIMIT", "86400")),
    task_soft_time_limit=int(os.environ.get("BATCH_TASK_SOFT_TIME_LIMIT", "86100")),
    worker_prefetch_multiplier=1,
    result_expires=3600,
)

celery_app.autodiscover_tasks(["src.application.tasks"], related_name="comparison_tasks")


@celery_app.task(name="health_check")
def health_check() -> dict:
    """
    Simple health check task to verify the Celery-Redis connection.

    Returns:
        dict: status, message, timestamp and worker hostname
    """
    return {
        "status": "ok",
        "message": "Celery worker is healthy",
        "timestamp": datetime.now().isoformat(),
        "worker": (
            celery_app.current_task.request.hostname
            if celery_app.current_task
            else "unknown"
        ),
    }
