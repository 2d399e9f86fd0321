"""
API Routers Package

Contains all FastAPI routers grouped by functionality.

Architecture Notes:
    - Part of API Layer (Presentation)
    - Routers are thin wrappers around Application Layer services
    - All routers follow dependency injection pattern (src/api/dependencies.py)

Available Routers:
    - candidates_router: Interactive candidate lookup
    - matches_router: Match record lifecycle
    - decision_log_router: Recent engine decisions
"""

from .candidates import router as candidates_router
from .decision_log import router as decision_log_router
from .matches import router as matches_router

__all__ = ["candidates_router", "matches_router", "decision_log_router"]
