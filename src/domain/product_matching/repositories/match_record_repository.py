"""
MatchRecordRepository Interface

Repository contract for durable match decisions.

Responsibility:
    - Define the persistence contract for MatchRecord
    - Enforce the "one active match per pair" invariant at the storage layer
    - Provide filtered, paginated listing

Architecture Notes:
    - Protocol-based interface (structural typing)
    - Async methods (storage may be remote)
    - Implementations in Infrastructure layer (in-memory, Redis)

Concurrency:
    save() must perform the uniqueness check and the write atomically
    (unique constraint or compare-and-swap). A check in the service
    followed by a plain insert is race-prone under concurrent writers.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from src.domain.product_matching.entities.match_record import MatchRecord, MatchStatus
from src.domain.product_matching.value_objects.match_pair import MatchPair

DEFAULT_LIST_LIMIT = 50


@dataclass(frozen=True)
class MatchRecordFilter:
    """
    Listing filter; None fields do not filter.

    Examples:
        >>> MatchRecordFilter(local_product_id="P-1", status=MatchStatus.MATCHED)
    """

    local_product_id: Optional[str] = None
    external_product_key: Optional[str] = None
    source_id: Optional[str] = None
    status: Optional[MatchStatus] = None
    reviewed_by: Optional[str] = None
    tenant_id: Optional[str] = None

    def matches(self, record: MatchRecord) -> bool:
        """Whether a record passes every set filter."""
        checks = (
            (self.local_product_id, record.local_product_id),
            (self.external_product_key, record.external_product_key),
            (self.source_id, record.source_id),
            (self.status, record.status),
            (self.reviewed_by, record.reviewed_by),
            (self.tenant_id, record.tenant_id),
        )
        return all(expected is None or expected == actual for expected, actual in checks)


class MatchRecordRepositoryProtocol(Protocol):
    """
    Protocol defining the contract for MatchRecord persistence.

    Records are never physically deleted; removal is a status transition
    persisted through save().
    """

    async def save(self, record: MatchRecord) -> MatchRecord:
        """
        Insert or update a record.

        Raises:
            MatchConflictError: If the record is active (matched) and another
                record for the same pair is already active
        """
        ...

    async def get_by_id(self, record_id: str) -> Optional[MatchRecord]:
        """Retrieve a record by id, None if unknown."""
        ...

    async def find_active(self, pair: MatchPair) -> Optional[MatchRecord]:
        """The active (matched) record for a pair, if any."""
        ...

    async def find_latest(self, pair: MatchPair) -> Optional[MatchRecord]:
        """Most recently updated record for a pair in any status."""
        ...

    async def list(
        self,
        filters: MatchRecordFilter,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> tuple[list[MatchRecord], int]:
        """
        Filtered records ordered by created_at descending.

        Returns:
            (page of records, total matching records)
        """
        ...
