"""
MatchService - Decision Persistence Use Cases

Orchestrates the lifecycle of match records: create, remove (supersede),
review (confirm/reject) and read.

Responsibility:
    - Resolve source codes through the source registry
    - Enforce "one active match per pair" before writing (the repository
      enforces it again atomically on save)
    - Apply status transitions through the MatchRecord entity
    - Log conflicts and not-found cases before raising

Architecture Notes:
    - Part of Application Layer (orchestration)
    - Dependencies injected as Protocols (repository, source registry)
    - Async: repositories may be remote (Redis)

Business Rules:
    - create: fails with MatchConflictError when the pair already has an
      active match; notes default to "Created via Match button"; may record
      an explicit rejection (not_matched) instead of a match
    - remove: active match -> superseded, MatchNotFoundError when absent
    - review: matched <-> not_matched, sets reviewed_by / reviewed_at
"""

import logging
from typing import Optional

from src.application.commands.match_commands import (
    CreateMatchCommand,
    RemoveMatchCommand,
    ReviewMatchCommand,
)
from src.application.queries.list_matches import (
    ListMatchesQuery,
    ListMatchesQueryHandler,
    MatchListResult,
)
from src.domain.product_matching.entities.match_record import MatchRecord, MatchStatus
from src.domain.product_matching.repositories.match_record_repository import (
    MatchRecordFilter,
    MatchRecordRepositoryProtocol,
)
from src.domain.product_matching.repositories.source_repository import (
    SourceRepositoryProtocol,
)
from src.domain.product_matching.value_objects.match_pair import MatchPair
from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.shared.exceptions import (
    MatchConflictError,
    MatchNotFoundError,
    SourceNotFoundError,
)

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Match already exists between these products"
NOT_FOUND_MESSAGE = "No match found between these products"
SOURCE_NOT_FOUND_MESSAGE = "Source not found"
RECORD_NOT_FOUND_MESSAGE = "Match record not found"

_PAGE_SIZE = 500


class MatchService:
    """
    Use cases for durable match decisions.

    Examples:
        >>> service = MatchService(repository, source_registry)
        >>> record = await service.create_match(CreateMatchCommand(
        ...     local_product_id="P-1", external_product_key="B00X",
        ...     source_code="AMZ", score=0.92))
        >>> record.status
        <MatchStatus.MATCHED: 'matched'>
    """

    def __init__(
        self,
        repository: MatchRecordRepositoryProtocol,
        sources: SourceRepositoryProtocol,
    ):
        self.repository = repository
        self.sources = sources

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_match(self, command: CreateMatchCommand) -> MatchRecord:
        """
        Record a decision about a pair.

        Raises:
            SourceNotFoundError: Unknown source code
            MatchConflictError: An active match already exists for the pair
        """
        source = await self._resolve_source(command.source_code)
        pair = self._pair(command.local_product_id, command.external_product_key, source)

        if command.status == MatchStatus.MATCHED:
            existing = await self.repository.find_active(pair)
            if existing is not None:
                logger.warning(f"Match conflict for {pair}: active record {existing.id}")
                raise MatchConflictError(CONFLICT_MESSAGE, pair)

        record = MatchRecord(
            local_product_id=pair.local_product_id,
            external_product_key=pair.external_product_key,
            source_id=pair.source_id,
            status=command.status,
            score=command.score,
            price_delta_pct=command.price_delta_pct,
            tenant_id=command.tenant_id,
            rule_id=command.rule_id,
            session_id=command.session_id,
            notes=command.notes,
            created_by=command.actor,
        )

        try:
            saved = await self.repository.save(record)
        except MatchConflictError:
            logger.warning(f"Match conflict for {pair} detected on save")
            raise

        logger.info(f"Created match record {saved.id} ({saved.status.value}) for {pair}")
        return saved

    async def remove_match(self, command: RemoveMatchCommand) -> MatchRecord:
        """
        Supersede the active match of a pair.

        Raises:
            SourceNotFoundError: Unknown source code
            MatchNotFoundError: No active match for the pair
        """
        source = await self._resolve_source(command.source_code)
        pair = self._pair(command.local_product_id, command.external_product_key, source)

        active = await self.repository.find_active(pair)
        if active is None:
            logger.warning(f"No active match to remove for {pair}")
            raise MatchNotFoundError(NOT_FOUND_MESSAGE, pair)

        active.supersede(actor=command.actor)
        saved = await self.repository.save(active)
        logger.info(f"Superseded match record {saved.id} for {pair}")
        return saved

    async def review_match(self, command: ReviewMatchCommand) -> MatchRecord:
        """
        Confirm or reject an existing record.

        Raises:
            MatchNotFoundError: Unknown match id
            MatchConflictError: Confirming would create a second active match
            InvalidMatchTransitionError: The record is superseded
        """
        record = await self.repository.get_by_id(command.match_id)
        if record is None:
            logger.warning(f"Match record {command.match_id} not found for review")
            raise MatchNotFoundError(RECORD_NOT_FOUND_MESSAGE)

        target = command.target_status
        if target == MatchStatus.MATCHED and record.status != MatchStatus.MATCHED:
            existing = await self.repository.find_active(record.pair)
            if existing is not None and existing.id != record.id:
                logger.warning(
                    f"Cannot confirm {record.id}: {existing.id} already active for {record.pair}"
                )
                raise MatchConflictError(CONFLICT_MESSAGE, record.pair)

        record.review(target, reviewer=command.reviewer, notes=command.notes)
        saved = await self.repository.save(record)
        logger.info(
            f"Reviewed match record {saved.id}: {command.decision} by {command.reviewer}"
        )
        return saved

    async def confirm_match(
        self, match_id: str, reviewer: Optional[str] = None, notes: Optional[str] = None
    ) -> MatchRecord:
        return await self.review_match(
            ReviewMatchCommand(match_id=match_id, decision="confirm", reviewer=reviewer, notes=notes)
        )

    async def reject_match(
        self, match_id: str, reviewer: Optional[str] = None, notes: Optional[str] = None
    ) -> MatchRecord:
        return await self.review_match(
            ReviewMatchCommand(match_id=match_id, decision="reject", reviewer=reviewer, notes=notes)
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_active(self, pair: MatchPair) -> Optional[MatchRecord]:
        return await self.repository.find_active(pair)

    async def list_matches(self, query: ListMatchesQuery) -> MatchListResult:
        return await ListMatchesQueryHandler(self.repository).handle(query)

    async def matches_for_local_product(
        self, local_product_id: str, tenant_id: Optional[str] = None
    ) -> list[MatchRecord]:
        """Active matches of one internal record, highest score first."""
        filters = MatchRecordFilter(
            local_product_id=local_product_id,
            status=MatchStatus.MATCHED,
            tenant_id=tenant_id,
        )
        records: list[MatchRecord] = []
        offset = 0
        while True:
            page, total = await self.repository.list(filters, limit=_PAGE_SIZE, offset=offset)
            records.extend(page)
            offset += len(page)
            if not page or offset >= total:
                break

        return sorted(
            records,
            key=lambda r: r.score if r.score is not None else -1.0,
            reverse=True,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve_source(self, source_code: str) -> SourceInfo:
        source = await self.sources.get_by_code(source_code)
        if source is None:
            logger.warning(f"Unknown source code {source_code!r}")
            raise SourceNotFoundError(SOURCE_NOT_FOUND_MESSAGE, source_code)
        return source

    @staticmethod
    def _pair(local_product_id: str, external_product_key: str, source: SourceInfo) -> MatchPair:
        return MatchPair(
            local_product_id=local_product_id,
            external_product_key=external_product_key,
            source_id=source.id,
        )
