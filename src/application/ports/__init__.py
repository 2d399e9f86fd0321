"""
Application Layer Ports

Protocols (interfaces) that the Application Layer depends on and the
Infrastructure Layer implements.

Contains:
    - batch.py: CheckpointStoreProtocol, ReportSinkProtocol,
      ProgressReporterProtocol
"""

from src.application.ports.batch import (
    CheckpointStoreProtocol,
    ProgressReporterProtocol,
    ReportSinkProtocol,
)

__all__ = [
    "CheckpointStoreProtocol",
    "ProgressReporterProtocol",
    "ReportSinkProtocol",
]
