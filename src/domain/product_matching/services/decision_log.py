"""
Decision Log

Bounded, thread-safe ring buffer of the engine's accept/reject decisions,
kept for debugging and rate statistics. Never consulted for scoring.

Architecture Notes:
    - Injected into MatchingEngine (no module-level singleton); each test
      or process owns its instance
    - Append-only from the engine's side; a deque with maxlen drops the
      oldest entries
    - A single lock guards appends and reads
"""

import json
import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from src.domain.product_matching.matching_config import DECISION_LOG_CAPACITY

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 20
STATS_WINDOW = 50


class Decision(str, Enum):
    MATCHED = "MATCHED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class DecisionLogEntry:
    """One accept/reject decision."""

    internal_title: str
    external_title: str
    source: str
    decision: Decision
    reason: str
    score: Optional[float] = None
    breakdown: Optional[dict[str, Any]] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["decision"] = self.decision.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


class DecisionLog:
    """
    Ring buffer of the most recent matching decisions.

    Examples:
        >>> log = DecisionLog(capacity=2)
        >>> log.record("A", "B", "AMZ", Decision.REJECTED, "Missing product title")
        >>> log.stats()["rejected"]
        1
    """

    def __init__(self, capacity: int = DECISION_LOG_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._entries: deque[DecisionLogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(
        self,
        internal_title: str,
        external_title: str,
        source: str,
        decision: Decision,
        reason: str,
        score: Optional[float] = None,
        breakdown: Optional[dict[str, Any]] = None,
    ) -> None:
        """Append a decision (oldest entry is dropped when full)."""
        entry = DecisionLogEntry(
            internal_title=internal_title,
            external_title=external_title,
            source=source,
            decision=Decision(decision),
            reason=reason,
            score=score,
            breakdown=breakdown,
        )
        with self._lock:
            self._entries.append(entry)

        score_text = f" (score: {score:.3f})" if score is not None else ""
        logger.debug(f"{entry.decision.value}: {external_title!r} - {reason}{score_text}")

    def entries(self) -> list[DecisionLogEntry]:
        """Snapshot of all entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[DecisionLogEntry]:
        """Last `limit` entries, newest first."""
        if limit <= 0:
            return []
        snapshot = self.entries()
        return list(reversed(snapshot[-limit:]))

    def for_product(self, title: str) -> list[DecisionLogEntry]:
        """Entries whose internal or external title contains `title`, newest first."""
        needle = title.lower()
        return [
            entry
            for entry in reversed(self.entries())
            if needle in entry.internal_title.lower() or needle in entry.external_title.lower()
        ]

    def stats(self) -> dict[str, Any]:
        """
        Decision counts and rates.

        Returns:
            total, matched, rejected, match_rate ("x.x%") and average_score
            over the scored entries among the last 50
        """
        snapshot = self.entries()
        total = len(snapshot)
        matched = sum(1 for entry in snapshot if entry.decision == Decision.MATCHED)
        scored = [e.score for e in snapshot[-STATS_WINDOW:] if e.score is not None]

        return {
            "total": total,
            "matched": matched,
            "rejected": total - matched,
            "match_rate": f"{matched / total * 100:.1f}%" if total else "0%",
            "average_score": round(sum(scored) / len(scored), 3) if scored else 0.0,
        }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Decision log cleared")

    def export_json(self) -> str:
        """All entries as an indented JSON array, oldest first."""
        return json.dumps([entry.to_dict() for entry in self.entries()], indent=2)
