"""
Persistence Infrastructure Module

Data persistence implementations (Redis, repositories).

Exports:
    From redis:
        - BatchProgressTracker

    From repositories:
        - InMemoryMatchRecordRepository
        - RedisMatchRecordRepository
        - InMemorySourceRegistry
"""

from .redis import BatchProgressTracker
from .repositories import (
    InMemoryMatchRecordRepository,
    InMemorySourceRegistry,
    RedisMatchRecordRepository,
)

__all__ = [
    "BatchProgressTracker",
    "InMemoryMatchRecordRepository",
    "RedisMatchRecordRepository",
    "InMemorySourceRegistry",
]
