"""
Source Registry

In-memory implementation of SourceRepositoryProtocol. Sources are few and
change rarely, so they are loaded once at startup, either from a JSON file
(SOURCES_FILE) or from code.

JSON format:
    [
        {"id": "src-amz", "code": "AMZ", "name": "Amazon", "is_active": true},
        {"id": "src-ebay", "code": "EBAY", "name": "eBay", "base_config": {"currency": "EUR"}}
    ]
"""

import json
import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Union

from pydantic import ValidationError

from src.domain.product_matching.value_objects.source_info import SourceInfo

logger = logging.getLogger(__name__)


class InMemorySourceRegistry:
    """
    Sources indexed by id and by (upper-case) code.

    Examples:
        >>> registry = InMemorySourceRegistry([SourceInfo(id="s1", code="AMZ")])
        >>> (await registry.get_by_code("amz")).id
        's1'
    """

    def __init__(self, sources: Iterable[SourceInfo] = ()) -> None:
        self._by_id: dict[str, SourceInfo] = {}
        self._by_code: dict[str, SourceInfo] = {}
        for source in sources:
            self.add(source)

    def __len__(self) -> int:
        return len(self._by_id)

    def add(self, source: SourceInfo) -> None:
        """Register a source; a later source with the same id or code replaces it."""
        previous = self._by_id.get(source.id)
        if previous is not None:
            self._by_code.pop(previous.code, None)
        self._by_id[source.id] = source
        self._by_code[source.code] = source

    def all(self) -> list[SourceInfo]:
        """Every registered source, active or not (synchronous callers)."""
        return list(self._by_id.values())

    async def get_by_code(self, code: str) -> Optional[SourceInfo]:
        return self._by_code.get(code.strip().upper())

    async def get_by_id(self, source_id: str) -> Optional[SourceInfo]:
        return self._by_id.get(source_id)

    async def list_active(self) -> list[SourceInfo]:
        return [s for s in self._by_id.values() if s.is_active]

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemorySourceRegistry":
        """
        Load sources from a JSON array file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not a JSON array of valid sources
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON array of sources")
        try:
            sources = [SourceInfo(**item) for item in data]
        except (TypeError, ValidationError) as e:
            raise ValueError(f"{path}: invalid source definition: {e}") from e

        logger.info(f"Loaded {len(sources)} sources from {path}")
        return cls(sources)

    @classmethod
    def from_env(cls) -> "InMemorySourceRegistry":
        """Registry from SOURCES_FILE when set, otherwise empty."""
        sources_file = os.getenv("SOURCES_FILE")
        if not sources_file:
            logger.info("SOURCES_FILE not set, starting with an empty source registry")
            return cls()
        return cls.from_json(sources_file)
