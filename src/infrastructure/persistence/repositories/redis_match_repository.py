"""
Redis Match Record Repository

Durable implementation of MatchRecordRepositoryProtocol on Redis.

Responsibility:
    - Store MatchRecord entities as JSON
    - Enforce "one active match per pair" with a compare-and-swap on a
      per-pair active key (WATCH/MULTI/EXEC)
    - Filtered listing ordered by created_at descending

Storage Strategy:
    - "match:record:{id}" -> JSON MatchRecord.to_dict()
    - "match:active:{pair_key}" -> id of the active (matched) record
    - "match:pair:{pair_key}" -> SET of record ids for the pair
    - "match:index" -> ZSET of record ids scored by created_at timestamp
    - No TTL: match records are permanent (never physically deleted)

Architecture Notes:
    - Infrastructure Layer (implements Domain interface)
    - Redis client injected or built from RedisSettings
    - RedisError propagates to the caller (API maps it to 500)
"""

import json
import logging
from typing import Optional

from redis import Redis
from redis.exceptions import WatchError

from src.domain.product_matching.entities.match_record import MatchRecord
from src.domain.product_matching.repositories.match_record_repository import (
    DEFAULT_LIST_LIMIT,
    MatchRecordFilter,
)
from src.domain.product_matching.value_objects.match_pair import MatchPair
from src.domain.shared.exceptions import MatchConflictError
from src.infrastructure.persistence.redis.connection import RedisSettings, get_redis_client

logger = logging.getLogger(__name__)

INDEX_KEY = "match:index"
_MGET_CHUNK = 500


class RedisMatchRecordRepository:
    """
    Redis-based implementation of MatchRecordRepositoryProtocol.

    Examples:
        >>> repo = RedisMatchRecordRepository()
        >>> record = await repo.save(MatchRecord(
        ...     local_product_id="P-1", external_product_key="B00X", source_id="s1"))
        >>> (await repo.find_active(record.pair)).id == record.id
        True
    """

    def __init__(
        self, redis: Optional[Redis] = None, settings: Optional[RedisSettings] = None
    ) -> None:
        self.redis: Redis = redis or get_redis_client(settings)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @staticmethod
    def _record_key(record_id: str) -> str:
        return f"match:record:{record_id}"

    @staticmethod
    def _active_key(pair_key: str) -> str:
        return f"match:active:{pair_key}"

    @staticmethod
    def _pair_key(pair_key: str) -> str:
        return f"match:pair:{pair_key}"

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save(self, record: MatchRecord) -> MatchRecord:
        """
        Insert or update a record.

        Raises:
            MatchConflictError: Another record of the pair is active
        """
        pair_key = record.pair.key
        if record.is_active():
            self._claim_active(record, pair_key)
        else:
            self._release_active(record.id, pair_key)

        pipe = self.redis.pipeline()
        pipe.set(self._record_key(record.id), json.dumps(record.to_dict()))
        pipe.sadd(self._pair_key(pair_key), record.id)
        pipe.zadd(INDEX_KEY, {record.id: record.created_at.timestamp()})
        pipe.execute()

        logger.debug(f"Saved match record {record.id} ({record.status.value})")
        return record

    def _claim_active(self, record: MatchRecord, pair_key: str) -> None:
        active_key = self._active_key(pair_key)
        with self.redis.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(active_key)
                    holder = pipe.get(active_key)
                    if holder and holder != record.id and self._is_active(holder):
                        pipe.unwatch()
                        raise MatchConflictError(
                            "Match already exists between these products", record.pair
                        )
                    pipe.multi()
                    pipe.set(active_key, record.id)
                    pipe.execute()
                    return
                except WatchError:
                    logger.debug(f"Active key {active_key} changed, retrying claim")

    def _release_active(self, record_id: str, pair_key: str) -> None:
        active_key = self._active_key(pair_key)
        with self.redis.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(active_key)
                    if pipe.get(active_key) != record_id:
                        pipe.unwatch()
                        return
                    pipe.multi()
                    pipe.delete(active_key)
                    pipe.execute()
                    return
                except WatchError:
                    logger.debug(f"Active key {active_key} changed, retrying release")

    def _is_active(self, record_id: str) -> bool:
        record = self._load(record_id)
        return record is not None and record.is_active()

    def _load(self, record_id: str) -> Optional[MatchRecord]:
        data = self.redis.get(self._record_key(record_id))
        return MatchRecord.from_dict(json.loads(data)) if data else None

    def _load_many(self, ids: list[str]) -> list[MatchRecord]:
        records: list[MatchRecord] = []
        for start in range(0, len(ids), _MGET_CHUNK):
            chunk = ids[start : start + _MGET_CHUNK]
            values = self.redis.mget([self._record_key(i) for i in chunk])
            records.extend(MatchRecord.from_dict(json.loads(v)) for v in values if v)
        return records

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, record_id: str) -> Optional[MatchRecord]:
        return self._load(record_id)

    async def find_active(self, pair: MatchPair) -> Optional[MatchRecord]:
        record_id = self.redis.get(self._active_key(pair.key))
        if not record_id:
            return None
        record = self._load(record_id)
        return record if record is not None and record.is_active() else None

    async def find_latest(self, pair: MatchPair) -> Optional[MatchRecord]:
        ids = list(self.redis.smembers(self._pair_key(pair.key)))
        records = self._load_many(ids)
        if not records:
            return None
        return max(records, key=lambda r: r.updated_at)

    async def list(
        self,
        filters: MatchRecordFilter,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> tuple[list[MatchRecord], int]:
        ids = self.redis.zrevrange(INDEX_KEY, 0, -1)
        matching = [r for r in self._load_many(ids) if filters.matches(r)]
        return matching[offset : offset + limit], len(matching)
