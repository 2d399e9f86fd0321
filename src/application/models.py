"""
Shared Application Models

Responsibility:
    Contains shared models used across Application Layer.
    Prevents circular dependencies and code duplication.

Architecture Notes:
    - Part of Application Layer (Shared)
    - Used by Commands, Queries, Services and Tasks
    - Enums and common DTOs that don't belong to specific modules

Contains:
    - JobStatus: Lifecycle of a batch comparison run
    - ScenarioMatch: Batch report scenario tag
"""

from enum import Enum


class JobStatus(str, Enum):
    """
    Status of a batch comparison run (CLI or Celery task).

    Attributes:
        QUEUED: Run accepted and waiting in the Celery queue
        PROCESSING: Run in progress
        COMPLETED: Every internal record processed; checkpoint deleted
        FAILED: Fatal error; checkpoint preserved for resume
        CANCELLED: Stopped on request; checkpoint flushed for resume

    Usage:
        >>> from src.application.models import JobStatus
        >>> JobStatus.COMPLETED.value
        'completed'
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ScenarioMatch(str, Enum):
    """
    How a batch report row was matched.

    Attributes:
        IDENTIFIER_EXACT: Engine short-circuited on equal zero-padded identifiers
        FEATURE_SCORED: Matched through weighted feature scoring
    """

    IDENTIFIER_EXACT = "IDENTIFIER_EXACT"
    FEATURE_SCORED = "FEATURE_SCORED"
