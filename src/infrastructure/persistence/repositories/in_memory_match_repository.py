"""
In-Memory Match Record Repository

Process-local implementation of MatchRecordRepositoryProtocol, used by the
API when no Redis is configured and by tests.

Architecture Notes:
    - Infrastructure Layer (implements Domain interface)
    - Records are copied on the way in and out, so callers never share
      mutable state with the store
    - A threading.Lock makes the active-pair check and the write atomic
"""

import logging
import threading
from typing import Optional

from src.domain.product_matching.entities.match_record import MatchRecord
from src.domain.product_matching.repositories.match_record_repository import (
    DEFAULT_LIST_LIMIT,
    MatchRecordFilter,
)
from src.domain.product_matching.value_objects.match_pair import MatchPair
from src.domain.shared.exceptions import MatchConflictError

logger = logging.getLogger(__name__)


def _copy(record: MatchRecord) -> MatchRecord:
    return MatchRecord.from_dict(record.to_dict())


class InMemoryMatchRecordRepository:
    """
    Dictionary-backed match record storage.

    Examples:
        >>> repo = InMemoryMatchRecordRepository()
        >>> await repo.save(MatchRecord(local_product_id="P-1",
        ...                             external_product_key="B00X", source_id="s1"))
        >>> len(repo)
        1
    """

    def __init__(self) -> None:
        self._records: dict[str, MatchRecord] = {}
        self._active: dict[str, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    async def save(self, record: MatchRecord) -> MatchRecord:
        pair_key = record.pair.key
        with self._lock:
            holder = self._active.get(pair_key)
            if record.is_active():
                if holder is not None and holder != record.id:
                    raise MatchConflictError(
                        "Match already exists between these products", record.pair
                    )
                self._active[pair_key] = record.id
            elif holder == record.id:
                del self._active[pair_key]
            self._records[record.id] = _copy(record)

        logger.debug(f"Saved match record {record.id} ({record.status.value})")
        return record

    async def get_by_id(self, record_id: str) -> Optional[MatchRecord]:
        with self._lock:
            record = self._records.get(record_id)
        return _copy(record) if record else None

    async def find_active(self, pair: MatchPair) -> Optional[MatchRecord]:
        with self._lock:
            record_id = self._active.get(pair.key)
            record = self._records.get(record_id) if record_id else None
        return _copy(record) if record else None

    async def find_latest(self, pair: MatchPair) -> Optional[MatchRecord]:
        with self._lock:
            candidates = [r for r in self._records.values() if r.pair.key == pair.key]
        if not candidates:
            return None
        return _copy(max(candidates, key=lambda r: r.updated_at))

    async def list(
        self,
        filters: MatchRecordFilter,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> tuple[list[MatchRecord], int]:
        with self._lock:
            matching = [r for r in self._records.values() if filters.matches(r)]
        matching.sort(key=lambda r: r.created_at, reverse=True)
        page = matching[offset : offset + limit]
        return [_copy(r) for r in page], len(matching)
