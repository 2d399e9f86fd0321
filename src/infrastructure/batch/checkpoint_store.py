"""
JSON Checkpoint Store

File-backed CheckpointStoreProtocol for the batch comparison driver.

File format:
    {
        "processed_internal_ids": ["P-1", "P-2"],
        "last_updated": "2025-01-11T10:30:45.123456",
        "total_processed": 2
    }

Business Rules:
    - Written atomically: temp file in the same directory, then os.replace
    - A missing file means a fresh start
    - A corrupt or unreadable file is logged and treated as a fresh start
    - A failed write raises CheckpointError (fatal to the run)
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Union

from src.domain.shared.exceptions import CheckpointError

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_FILE = "comparison_checkpoint.json"


class JsonCheckpointStore:
    """
    Processed internal ids persisted as JSON.

    Examples:
        >>> store = JsonCheckpointStore("/tmp/checkpoint.json")
        >>> store.save({"P-1", "P-2"})
        >>> sorted(store.load())
        ['P-1', 'P-2']
        >>> store.delete()
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_CHECKPOINT_FILE):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> set[str]:
        if not self.path.exists():
            return set()
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            ids = data.get("processed_internal_ids", [])
            return {str(record_id) for record_id in ids}
        except (OSError, ValueError, AttributeError, TypeError) as e:
            logger.warning(f"Could not load checkpoint {self.path}, starting fresh: {e}")
            return set()

    def save(self, processed_ids: set[str]) -> None:
        data = {
            "processed_internal_ids": sorted(processed_ids),
            "last_updated": datetime.now().isoformat(),
            "total_processed": len(processed_ids),
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CheckpointError(
                f"Cannot write checkpoint: {e}", str(self.path), e
            ) from e
        logger.debug(f"Checkpoint saved: {len(processed_ids)} processed ids")

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
            logger.info(f"Checkpoint {self.path} removed")
        except OSError as e:
            logger.warning(f"Could not clean up checkpoint file {self.path}: {e}")
