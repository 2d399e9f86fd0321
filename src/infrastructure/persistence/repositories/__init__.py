"""
Repository Implementations Module

Concrete implementations of Domain repository interfaces.

Exports:
    - InMemoryMatchRecordRepository: Process-local match record storage
    - RedisMatchRecordRepository: Redis-based match record storage
    - InMemorySourceRegistry: Source lookup by id and code
"""

from .in_memory_match_repository import InMemoryMatchRecordRepository
from .redis_match_repository import RedisMatchRecordRepository
from .source_registry import InMemorySourceRegistry

__all__ = [
    "InMemoryMatchRecordRepository",
    "RedisMatchRecordRepository",
    "InMemorySourceRegistry",
]
