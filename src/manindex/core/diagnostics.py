"""Warning sinks for recoverable indexing problems.

The index core never aborts on these; it reports them and carries on.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()


class Diagnostics(Protocol):
    """Anything that accepts recoverable-issue warnings."""

    def warning(self, message: str, **context: Any) -> None: ...


class LoggingDiagnostics:
    """Forward warnings to structlog."""

    def warning(self, message: str, **context: Any) -> None:
        logger.warning(message, **context)


@dataclass
class CollectingDiagnostics:
    """Keep warnings in memory, optionally forwarding them to the log too."""

    forward: bool = False
    warnings: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def warning(self, message: str, **context: Any) -> None:
        with self._lock:
            self.warnings.append((message, context))
        if self.forward:
            logger.warning(message, **context)

    @property
    def messages(self) -> list[str]:
        with self._lock:
            return [message for message, _ in self.warnings]
