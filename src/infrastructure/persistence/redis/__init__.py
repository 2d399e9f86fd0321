"""
Redis Infrastructure Module

Redis-based connection pooling and batch progress tracking.

Exports:
    - BatchProgressTracker: Track batch comparison progress in Redis
    - RedisSettings: Connection settings from the environment
    - get_redis_client: Get Redis client with connection pooling
    - health_check: Check Redis health with PING test
    - close_connections: Close all Redis connections
"""

from .connection import RedisSettings, close_connections, get_redis_client, health_check
from .progress_tracker import BatchProgressTracker

__all__ = [
    "BatchProgressTracker",
    "RedisSettings",
    "get_redis_client",
    "health_check",
    "close_connections",
]
