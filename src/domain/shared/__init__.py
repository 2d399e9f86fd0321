"""
Shared Domain Module

Shared domain concepts used across subdomains.

This module exports:
    - DomainException: Base exception for all domain errors
    - Specific errors raised by product matching (conflict, not found, ...)
"""

from .exceptions import (
    CatalogLoadError,
    CheckpointError,
    DomainException,
    InvalidCatalogRecordError,
    InvalidMatchTransitionError,
    MatchConflictError,
    MatchNotFoundError,
    SourceNotFoundError,
)

__all__ = [
    "DomainException",
    "InvalidCatalogRecordError",
    "MatchConflictError",
    "MatchNotFoundError",
    "InvalidMatchTransitionError",
    "SourceNotFoundError",
    "CatalogLoadError",
    "CheckpointError",
]
