"""
Batch Progress Tracker

Publishes batch comparison progress to Redis so the Celery task state and
operators can follow a long run. Implements ProgressReporterProtocol.

Storage Format:
    - "batch:progress:{run_id}" -> JSON progress snapshot (TTL 1h)
    - "batch:result:{run_id}" -> JSON run summary (TTL 24h)
    - "batch:progress:{run_id}:history" -> LIST of the last 10 snapshots

    Progress snapshot:
    {
        "status": "processing",        # JobStatus value
        "progress": 45,                # 0-100 percentage
        "message": "...",
        "processed": 450,              # internal records done (incl. checkpoint)
        "total": 1000,                 # internal records in the catalog
        "stats": {...},                # rows_written, records_with_matches
        "memory_mb": 512.5,
        "errors": [],
        "last_heartbeat": "2025-01-11T10:30:45.123"
    }

Error Recovery:
    - Redis failures never break a batch run: the snapshot is written to
      FALLBACK_DIR/batch_progress_{run_id}.json and a warning is logged
    - get_status() reads the fallback file when Redis is down
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import psutil
from redis import Redis
from redis.exceptions import RedisError

from src.application.models import JobStatus
from src.infrastructure.persistence.redis.connection import RedisSettings

logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 10


class BatchProgressTracker:
    """
    Redis-backed progress reporting for batch comparison runs.

    Examples:
        >>> tracker = BatchProgressTracker()
        >>> tracker.start_run("run-1", total=1000)
        >>> tracker.report("run-1", processed=50, total=1000, message="50/1000")
        >>> tracker.get_status("run-1")["progress"]
        5
    """

    def __init__(
        self,
        redis: Optional[Redis] = None,
        settings: Optional[RedisSettings] = None,
        fallback_dir: Optional[Path] = None,
    ) -> None:
        settings = settings or RedisSettings.from_env()
        self.redis: Redis = redis or Redis(
            host=settings.host,
            port=settings.port,
            db=settings.db,
            password=settings.password,
            socket_timeout=settings.timeout,
            decode_responses=True,
        )
        self.progress_ttl: int = int(os.getenv("REDIS_PROGRESS_TTL", "3600"))
        self.result_ttl: int = int(os.getenv("REDIS_RESULT_TTL", "86400"))
        self.fallback_dir = fallback_dir or Path(
            os.getenv("FALLBACK_DIR", "/tmp/catalog_matcher/fallback")
        )
        self._process = psutil.Process(os.getpid())

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @staticmethod
    def _progress_key(run_id: str) -> str:
        return f"batch:progress:{run_id}"

    @staticmethod
    def _result_key(run_id: str) -> str:
        return f"batch:result:{run_id}"

    @staticmethod
    def _history_key(run_id: str) -> str:
        return f"batch:progress:{run_id}:history"

    def _fallback_path(self, run_id: str) -> Path:
        return self.fallback_dir / f"batch_progress_{run_id}.json"

    def _write_fallback(self, run_id: str, data: dict) -> None:
        try:
            self.fallback_dir.mkdir(parents=True, exist_ok=True)
            path = self._fallback_path(run_id)
            with path.open("w") as f:
                json.dump(data, f, indent=2)
            logger.warning(f"Progress data written to fallback file: {path}")
        except OSError as e:
            logger.error(f"Failed to write fallback file for run {run_id}: {e}")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def start_run(self, run_id: str, total: int = 0, message: str = "Batch run started") -> None:
        self._store(run_id, self._snapshot(JobStatus.PROCESSING, 0, total, message))
        logger.info(f"Batch run {run_id} started in Redis")

    def report(
        self,
        run_id: str,
        processed: int,
        total: int,
        message: str,
        stats: Optional[dict[str, Any]] = None,
    ) -> None:
        """Store a progress snapshot (ProgressReporterProtocol)."""
        self._store(
            run_id, self._snapshot(JobStatus.PROCESSING, processed, total, message, stats)
        )
        logger.debug(f"Batch run {run_id} progress: {processed}/{total}")

    def complete_run(
        self, run_id: str, summary: dict[str, Any], status: JobStatus = JobStatus.COMPLETED
    ) -> None:
        """Final snapshot plus the run summary under the result key."""
        total = summary.get("total_internal", 0)
        processed = total if status == JobStatus.COMPLETED else summary.get("processed", 0)
        snapshot = self._snapshot(
            status, processed, total, f"Batch run {status.value}", summary
        )
        try:
            pipe = self.redis.pipeline()
            pipe.setex(self._progress_key(run_id), self.progress_ttl, json.dumps(snapshot))
            pipe.setex(self._result_key(run_id), self.result_ttl, json.dumps(summary))
            pipe.execute()
            logger.info(f"Batch run {run_id} marked as {status.value}")
        except RedisError as e:
            logger.warning(f"Redis error in complete_run for {run_id}: {e}")
            self._write_fallback(run_id, {"progress": snapshot, "result": summary})

    def fail_run(self, run_id: str, error_message: str) -> None:
        current = self.get_status(run_id) or {}
        snapshot = self._snapshot(
            JobStatus.FAILED,
            current.get("processed", 0),
            current.get("total", 0),
            f"Batch run failed: {error_message}",
            current.get("stats"),
        )
        snapshot["errors"] = current.get("errors", []) + [error_message]
        try:
            self.redis.setex(self._progress_key(run_id), self.progress_ttl, json.dumps(snapshot))
            logger.error(f"Batch run {run_id} marked as failed: {error_message}")
        except RedisError as e:
            logger.warning(f"Redis error in fail_run for {run_id}: {e}")
            self._write_fallback(run_id, {"progress": snapshot})

    def delete_status(self, run_id: str) -> None:
        try:
            pipe = self.redis.pipeline()
            pipe.delete(self._progress_key(run_id))
            pipe.delete(self._result_key(run_id))
            pipe.delete(self._history_key(run_id))
            pipe.execute()
            logger.info(f"Batch run {run_id} status deleted from Redis")
        except RedisError as e:
            logger.warning(f"Redis error in delete_status for {run_id}: {e}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_status(self, run_id: str) -> Optional[dict]:
        """Latest snapshot; the fallback file when Redis is down; None if unknown."""
        try:
            data = self.redis.get(self._progress_key(run_id))
            return json.loads(data) if data else None
        except RedisError as e:
            logger.warning(f"Redis error in get_status for {run_id}: {e}")
            path = self._fallback_path(run_id)
            if not path.exists():
                return None
            try:
                with path.open("r") as f:
                    data = json.load(f)
            except (OSError, ValueError) as fallback_err:
                logger.error(f"Failed to read fallback for {run_id}: {fallback_err}")
                return None
            return data.get("progress")

    def get_result(self, run_id: str) -> Optional[dict]:
        try:
            data = self.redis.get(self._result_key(run_id))
            return json.loads(data) if data else None
        except RedisError as e:
            logger.warning(f"Redis error in get_result for {run_id}: {e}")
            return None

    def get_history(self, run_id: str) -> list[dict]:
        """Last snapshots, newest first."""
        try:
            entries = self.redis.lrange(self._history_key(run_id), 0, MAX_HISTORY_ENTRIES - 1)
            return [json.loads(entry) for entry in entries]
        except RedisError as e:
            logger.warning(f"Redis error in get_history for {run_id}: {e}")
            return []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _snapshot(
        self,
        status: JobStatus,
        processed: int,
        total: int,
        message: str,
        stats: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        progress = int(processed / total * 100) if total else 0
        return {
            "status": status.value,
            "progress": max(0, min(100, progress)),
            "message": message,
            "processed": processed,
            "total": total,
            "stats": stats or {},
            "memory_mb": round(self._process.memory_info().rss / 1024 / 1024, 1),
            "errors": [],
            "last_heartbeat": datetime.now().isoformat(),
        }

    def _store(self, run_id: str, snapshot: dict[str, Any]) -> None:
        history_entry = {
            "timestamp": snapshot["last_heartbeat"],
            "progress": snapshot["progress"],
            "message": snapshot["message"],
        }
        try:
            pipe = self.redis.pipeline()
            pipe.setex(self._progress_key(run_id), self.progress_ttl, json.dumps(snapshot))
            pipe.lpush(self._history_key(run_id), json.dumps(history_entry))
            pipe.ltrim(self._history_key(run_id), 0, MAX_HISTORY_ENTRIES - 1)
            pipe.expire(self._history_key(run_id), self.progress_ttl)
            pipe.execute()
        except RedisError as e:
            logger.warning(f"Redis error storing progress for {run_id}: {e}")
            self._write_fallback(run_id, {"progress": snapshot})
