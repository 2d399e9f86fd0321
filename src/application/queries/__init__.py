"""
Application Queries (CQRS read side)

Contains:
    - list_matches.py: ListMatchesQuery, MatchListResult, ListMatchesQueryHandler
"""

from src.application.queries.list_matches import (
    ListMatchesQuery,
    ListMatchesQueryHandler,
    MatchListResult,
)

__all__ = ["ListMatchesQuery", "ListMatchesQueryHandler", "MatchListResult"]
