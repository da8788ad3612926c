"""Core module exports."""

from manindex.core.diagnostics import CollectingDiagnostics, Diagnostics, LoggingDiagnostics
from manindex.core.errors import (
    ConfigError,
    ErrorCode,
    IdentifierParseError,
    ManIndexError,
    MarkupError,
    SnapshotError,
)
from manindex.core.logging import (
    bind_file_context,
    configure_logging,
    get_file_context,
    get_logger,
)
from manindex.core.progress import progress, status, task

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "IdentifierParseError",
    "ManIndexError",
    "MarkupError",
    "SnapshotError",
    # Diagnostics
    "CollectingDiagnostics",
    "Diagnostics",
    "LoggingDiagnostics",
    # Logging
    "bind_file_context",
    "configure_logging",
    "get_file_context",
    "get_logger",
    # Progress
    "progress",
    "status",
    "task",
]
