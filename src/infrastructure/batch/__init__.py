"""
Batch Infrastructure Module

Exports:
    - JsonCheckpointStore: File-backed checkpoint for batch comparison runs
"""

from .checkpoint_store import DEFAULT_CHECKPOINT_FILE, JsonCheckpointStore

__all__ = ["DEFAULT_CHECKPOINT_FILE", "JsonCheckpointStore"]
