"""
Application Services

Responsibility:
    Orchestration services that coordinate domain services and
    infrastructure components through ports.

Contains:
    - match_service.py: Decision persistence use cases
    - candidate_lookup_service.py: Interactive candidate lookup
    - batch_comparison.py: Resumable bulk catalog comparison

Does NOT contain:
    - Domain business logic (use Domain services)
    - Direct infrastructure calls (use dependency injection)
"""

from src.application.services.batch_comparison import (
    REPORT_COLUMNS,
    BatchComparisonDriver,
    BatchComparisonSettings,
    BatchRunSummary,
)
from src.application.services.candidate_lookup_service import (
    CandidateLookupResult,
    CandidateLookupService,
)
from src.application.services.match_service import MatchService

__all__ = [
    "REPORT_COLUMNS",
    "BatchComparisonDriver",
    "BatchComparisonSettings",
    "BatchRunSummary",
    "CandidateLookupResult",
    "CandidateLookupService",
    "MatchService",
]
