"""
MatchRecord Entity.

Durable, audited outcome of accepting or rejecting a candidate pairing
between an internal product and an external product.

Lifecycle (status state machine):
    MATCHED -> SUPERSEDED        (soft delete, terminal)
    MATCHED -> NOT_MATCHED       (reviewer rejects an accepted match)
    NOT_MATCHED -> MATCHED       (reviewer confirms a rejected pairing)

Every transition updates updated_at/updated_by and increments version.
Records are never physically deleted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from src.domain.product_matching.value_objects.match_pair import MatchPair
from src.domain.shared.exceptions import InvalidMatchTransitionError


class MatchStatus(str, Enum):
    """
    Status of a match record.

    States:
        MATCHED: Active, reviewed-and-accepted association
        NOT_MATCHED: Explicit rejection, suppresses resurfacing
        SUPERSEDED: Terminal soft-delete state
    """

    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    SUPERSEDED = "superseded"


# Allowed status transitions
ALLOWED_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
    MatchStatus.MATCHED: frozenset({MatchStatus.SUPERSEDED, MatchStatus.NOT_MATCHED}),
    MatchStatus.NOT_MATCHED: frozenset({MatchStatus.MATCHED}),
    MatchStatus.SUPERSEDED: frozenset(),
}

DEFAULT_CREATE_NOTES = "Created via Match button"


@dataclass
class MatchRecord:
    """
    Mutable entity tracking one decision about an (internal, external, source) pair.

    Attributes:
        local_product_id: Internal catalog record id
        external_product_key: External record key within its source
        source_id: External source id
        status: Current lifecycle status
        score: Overall score (0-1) at decision time
        price_delta_pct: Relative price difference in percent at decision time
        tenant_id: Tenant scope for reads
        rule_id / session_id: Optional provenance (matching rule, review session)
        reviewed_by / reviewed_at / notes: Review metadata
        version: Monotonically incrementing on every mutation
        created_at/created_by, updated_at/updated_by: Audit fields
        id: Unique identifier (uuid4 string)

    Examples:
        >>> record = MatchRecord(local_product_id="P-1",
        ...                      external_product_key="B00X", source_id="src-1")
        >>> record.is_active()
        True
        >>> record.supersede(actor="alice")
        >>> record.status, record.version
        (<MatchStatus.SUPERSEDED: 'superseded'>, 2)
    """

    local_product_id: str
    external_product_key: str
    source_id: str
    status: MatchStatus = MatchStatus.MATCHED

    score: Optional[float] = None
    price_delta_pct: Optional[float] = None

    tenant_id: Optional[str] = None
    rule_id: Optional[str] = None
    session_id: Optional[str] = None

    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    notes: Optional[str] = None

    version: int = 1
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        self.status = MatchStatus(self.status)
        if self.updated_by is None:
            self.updated_by = self.created_by

    @property
    def pair(self) -> MatchPair:
        return MatchPair(
            local_product_id=self.local_product_id,
            external_product_key=self.external_product_key,
            source_id=self.source_id,
        )

    def is_active(self) -> bool:
        """Active means status MATCHED."""
        return self.status == MatchStatus.MATCHED

    def can_transition_to(self, target: MatchStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, target: MatchStatus, actor: Optional[str] = None) -> None:
        """
        Move to a new status.

        Raises:
            InvalidMatchTransitionError: If the transition is not allowed
        """
        target = MatchStatus(target)
        if not self.can_transition_to(target):
            raise InvalidMatchTransitionError(
                f"Cannot move match {self.id} from {self.status.value} to {target.value}",
                current_status=self.status.value,
                target_status=target.value,
            )
        self.status = target
        self._touch(actor)

    def supersede(self, actor: Optional[str] = None) -> None:
        """Soft delete: MATCHED -> SUPERSEDED."""
        self.transition_to(MatchStatus.SUPERSEDED, actor)

    def review(
        self,
        status: MatchStatus,
        reviewer: Optional[str],
        notes: Optional[str] = None,
    ) -> None:
        """
        Record a review decision (confirm or reject).

        Re-reviewing with the current status only refreshes the review
        metadata. Moving to a different status follows ALLOWED_TRANSITIONS.

        Raises:
            InvalidMatchTransitionError: For reviews of a superseded record
                or a disallowed transition
        """
        status = MatchStatus(status)
        if status == MatchStatus.SUPERSEDED:
            raise InvalidMatchTransitionError(
                "Use supersede() to remove a match",
                current_status=self.status.value,
                target_status=status.value,
            )
        if self.status == MatchStatus.SUPERSEDED:
            raise InvalidMatchTransitionError(
                f"Match {self.id} is superseded and can no longer be reviewed",
                current_status=self.status.value,
                target_status=status.value,
            )

        if status != self.status:
            self.transition_to(status, reviewer)
        else:
            self._touch(reviewer)

        self.reviewed_by = reviewer
        self.reviewed_at = self.updated_at
        if notes is not None:
            self.notes = notes

    def _touch(self, actor: Optional[str]) -> None:
        self.version += 1
        self.updated_at = datetime.now()
        self.updated_by = actor

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (datetimes as ISO strings)."""
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "local_product_id": self.local_product_id,
            "external_product_key": self.external_product_key,
            "source_id": self.source_id,
            "score": self.score,
            "price_delta_pct": self.price_delta_pct,
            "rule_id": self.rule_id,
            "session_id": self.session_id,
            "status": self.status.value,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "notes": self.notes,
            "version": self.version,
            "created_at": self.created_at.isoformat(),
            "created_by": self.created_by,
            "updated_at": self.updated_at.isoformat(),
            "updated_by": self.updated_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MatchRecord":
        """Rebuild from to_dict() output."""
        reviewed_at = data.get("reviewed_at")
        return cls(
            id=data["id"],
            tenant_id=data.get("tenant_id"),
            local_product_id=data["local_product_id"],
            external_product_key=data["external_product_key"],
            source_id=data["source_id"],
            score=data.get("score"),
            price_delta_pct=data.get("price_delta_pct"),
            rule_id=data.get("rule_id"),
            session_id=data.get("session_id"),
            status=MatchStatus(data["status"]),
            reviewed_by=data.get("reviewed_by"),
            reviewed_at=datetime.fromisoformat(reviewed_at) if reviewed_at else None,
            notes=data.get("notes"),
            version=data.get("version", 1),
            created_at=datetime.fromisoformat(data["created_at"]),
            created_by=data.get("created_by"),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            updated_by=data.get("updated_by"),
        )
