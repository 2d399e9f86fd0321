"""
Redis Connection Pool Management.

Shared connection pools for the Redis-backed match repository and the batch
progress tracker, with PING health checks and connect retries.

Architecture Notes:
    - Infrastructure Layer (external dependency on Redis)
    - One pool per (host, port, db), created lazily under a lock
    - Environment-based configuration via RedisSettings.from_env()

Business Rules:
    - Max connections: 10 (REDIS_MAX_CONNECTIONS)
    - Socket timeout: 5s (REDIS_TIMEOUT)
    - Connect retries: 3 (REDIS_RETRY_ATTEMPTS), backoff 1s, 2s, 4s
    - Decode responses: True (strings, not bytes)

Error Handling:
    - ConnectionError / TimeoutError: retried with exponential backoff
    - RedisError raised once retries are exhausted
    - health_check() never raises, returns False instead
"""

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Optional

from redis import ConnectionPool, Redis
from redis.exceptions import ConnectionError, RedisError, TimeoutError

logger = logging.getLogger(__name__)

_pools: dict[tuple[str, int, int], ConnectionPool] = {}
_pool_lock = threading.Lock()

BACKOFF_BASE_SECONDS = 1


@dataclass(frozen=True)
class RedisSettings:
    """
    Connection settings.

    Examples:
        >>> settings = RedisSettings.from_env({"REDIS_HOST": "redis", "REDIS_DB": "2"})
        >>> settings.host, settings.port, settings.db
        ('redis', 6379, 2)
    """

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    max_connections: int = 10
    timeout: int = 5
    retry_attempts: int = 3

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "RedisSettings":
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("REDIS_HOST", "localhost"),
            port=int(env.get("REDIS_PORT", "6379")),
            db=int(env.get("REDIS_DB", "0")),
            password=env.get("REDIS_PASSWORD") or None,
            max_connections=int(env.get("REDIS_MAX_CONNECTIONS", "10")),
            timeout=int(env.get("REDIS_TIMEOUT", "5")),
            retry_attempts=max(1, int(env.get("REDIS_RETRY_ATTEMPTS", "3"))),
        )

    @property
    def pool_key(self) -> tuple[str, int, int]:
        return (self.host, self.port, self.db)


def _get_pool(settings: RedisSettings) -> ConnectionPool:
    pool = _pools.get(settings.pool_key)
    if pool is None:
        with _pool_lock:
            # Double-checked: another thread may have created it
            pool = _pools.get(settings.pool_key)
            if pool is None:
                logger.info(
                    f"Creating Redis connection pool: host={settings.host}, "
                    f"port={settings.port}, db={settings.db}, "
                    f"max_connections={settings.max_connections}, timeout={settings.timeout}s"
                )
                pool = ConnectionPool(
                    host=settings.host,
                    port=settings.port,
                    db=settings.db,
                    password=settings.password,
                    max_connections=settings.max_connections,
                    socket_timeout=settings.timeout,
                    socket_connect_timeout=settings.timeout,
                    socket_keepalive=True,
                    decode_responses=True,
                )
                _pools[settings.pool_key] = pool
    return pool


def get_redis_client(settings: Optional[RedisSettings] = None) -> Redis:
    """
    Pooled Redis client, verified with PING.

    Args:
        settings: Connection settings (default: RedisSettings.from_env())

    Raises:
        RedisError: If PING fails after all retry attempts
    """
    settings = settings or RedisSettings.from_env()
    client = Redis(connection_pool=_get_pool(settings))

    last_error: Optional[Exception] = None
    for attempt in range(settings.retry_attempts):
        try:
            client.ping()
            logger.debug(f"Redis connection established (attempt {attempt + 1})")
            return client
        except (ConnectionError, TimeoutError) as e:
            last_error = e
            if attempt < settings.retry_attempts - 1:
                delay = BACKOFF_BASE_SECONDS * (2**attempt)
                logger.warning(
                    f"Redis connection failed (attempt {attempt + 1}/"
                    f"{settings.retry_attempts}): {e}. Retrying in {delay}s..."
                )
                time.sleep(delay)
            else:
                logger.error(
                    f"Redis connection failed after {settings.retry_attempts} attempts: {e}"
                )

    raise RedisError(
        f"Failed to connect to Redis after {settings.retry_attempts} attempts. "
        f"Last error: {last_error}"
    )


def health_check(settings: Optional[RedisSettings] = None) -> bool:
    """True when Redis answers PING; never raises."""
    try:
        if get_redis_client(settings).ping():
            logger.debug("Redis health check: OK")
            return True
        logger.warning("Redis health check: PING returned False")
        return False
    except RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return False


def close_connections() -> None:
    """Disconnect and forget every pool (safe to call repeatedly)."""
    with _pool_lock:
        if not _pools:
            logger.debug("No Redis connection pools to close")
            return
        for key, pool in list(_pools.items()):
            try:
                pool.disconnect()
            except RedisError as e:
                logger.error(f"Error closing Redis connection pool {key}: {e}")
        _pools.clear()
        logger.info("Redis connection pools closed")
