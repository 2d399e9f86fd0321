"""
Celery Tasks

Responsibility:
    Asynchronous task definitions for long-running operations.
    Progress tracking in Redis.

Contains:
    - celery_app.py - Celery configuration and health_check
    - comparison_tasks.py - Background batch comparison

Does NOT contain:
    - Business logic (delegates to Domain services)
    - Synchronous operations (use Application services instead)
"""

from .celery_app import celery_app, health_check
from .comparison_tasks import run_batch_comparison

__all__ = ["celery_app", "health_check", "run_batch_comparison"]
