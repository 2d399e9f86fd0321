"""
CandidateLookupService - Interactive Candidate Lookup

Builds the "show candidates" list for one internal record: runs the
matching engine against every active external source, marks candidates
whose pair already has a decision, and returns the merged ranking.

Architecture Notes:
    - Part of Application Layer (orchestration)
    - Engine is synchronous and stateless; catalog reads are paged
    - Match records are read to annotate, never to filter

Business Rules:
    - Per-source ranking and the per-source candidate cap come from the engine
    - already_decided = status of the latest match record for the pair
    - A source whose catalog cannot be read is skipped (partial result)
    - Merged list sorted by score descending, default limit 25
"""

import logging
from typing import Optional

from pydantic import BaseModel

from src.domain.product_matching.entities.catalog_record import (
    CatalogRecord,
    ExternalCatalogRecord,
)
from src.domain.product_matching.repositories.catalog_repository import (
    CatalogRepositoryProtocol,
)
from src.domain.product_matching.repositories.match_record_repository import (
    MatchRecordRepositoryProtocol,
)
from src.domain.product_matching.repositories.source_repository import (
    SourceRepositoryProtocol,
)
from src.domain.product_matching.services.matching_engine import MatchingEngine
from src.domain.product_matching.value_objects.match_candidate import (
    MatchCandidate,
    MatchQualitySummary,
)
from src.domain.product_matching.value_objects.match_pair import MatchPair
from src.domain.product_matching.value_objects.source_info import SourceInfo
from src.domain.shared.exceptions import CatalogLoadError

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_LIMIT = 25
DEFAULT_PAGE_SIZE = 1000


class CandidateLookupResult(BaseModel):
    """Ranked candidates for one internal record plus their quality summary."""

    internal_id: str
    candidates: list[MatchCandidate]
    summary: MatchQualitySummary
    skipped_sources: list[str] = []


class CandidateLookupService:
    """
    Interactive candidate lookup across all active sources.

    Usage:
        service = CandidateLookupService(engine, catalog, sources, matches)
        result = await service.lookup(internal_record)
    """

    def __init__(
        self,
        engine: MatchingEngine,
        catalog: CatalogRepositoryProtocol,
        sources: SourceRepositoryProtocol,
        matches: MatchRecordRepositoryProtocol,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.engine = engine
        self.catalog = catalog
        self.sources = sources
        self.matches = matches
        self.page_size = page_size

    async def lookup(
        self,
        internal: CatalogRecord,
        limit: int = DEFAULT_LOOKUP_LIMIT,
        source_codes: Optional[list[str]] = None,
    ) -> CandidateLookupResult:
        """
        Rank external candidates for an internal record.

        Args:
            internal: Internal catalog record
            limit: Maximum number of candidates returned
            source_codes: Restrict to these source codes (default: all active)
        """
        active_sources = await self.sources.list_active()
        if source_codes:
            wanted = {code.strip().upper() for code in source_codes}
            active_sources = [s for s in active_sources if s.code in wanted]

        merged: list[MatchCandidate] = []
        skipped: list[str] = []

        for source in active_sources:
            try:
                externals = self._load_source(source)
            except CatalogLoadError as e:
                logger.warning(f"Skipping source {source.code}: {e}")
                skipped.append(source.code)
                continue

            candidates = self.engine.find_matches(internal, externals, source)
            for candidate in candidates:
                merged.append(await self._annotate(candidate))

        merged.sort(key=lambda c: c.overall_score, reverse=True)
        ranked = merged[:limit] if limit > 0 else []

        logger.debug(
            f"Candidate lookup for {internal.id!r}: {len(active_sources)} sources, "
            f"{len(merged)} candidates, returning {len(ranked)}"
        )
        return CandidateLookupResult(
            internal_id=internal.id,
            candidates=ranked,
            summary=MatchQualitySummary.summarize(ranked),
            skipped_sources=skipped,
        )

    def _load_source(self, source: SourceInfo) -> list[ExternalCatalogRecord]:
        records: list[ExternalCatalogRecord] = []
        offset = 0
        while True:
            page = self.catalog.load_external_records(
                self.page_size, offset, source_filter=source.code
            )
            records.extend(page)
            if len(page) < self.page_size:
                return records
            offset += self.page_size

    async def _annotate(self, candidate: MatchCandidate) -> MatchCandidate:
        pair = MatchPair(
            local_product_id=candidate.internal_id,
            external_product_key=candidate.external_key,
            source_id=candidate.source.id,
        )
        latest = await self.matches.find_latest(pair)
        if latest is None:
            return candidate
        return candidate.with_decision(latest.status.value)
