"""structlog setup for manindex.

Events go through the stdlib root logger, one handler per configured
output, each with its own level and renderer. While a file pass runs, the
page being indexed is bound as ``file`` on every event it emits. Console
handlers stay quiet while a progress bar is on screen.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from manindex.config.models import LoggingConfig, LogOutputConfig

_FILE_KEY = "file"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
]


def get_file_context() -> str | None:
    """The page bound by the innermost ``bind_file_context`` block, if any."""
    value = structlog.contextvars.get_contextvars().get(_FILE_KEY)
    return None if value is None else str(value)


@contextmanager
def bind_file_context(path: Path | str) -> Iterator[None]:
    """Tag log events emitted inside the block with the file being indexed.

    An explicit ``file=`` on an event wins over the bound one.
    """
    with structlog.contextvars.bound_contextvars(**{_FILE_KEY: str(path)}):
        yield


def _level(name: str, default: int = logging.INFO) -> int:
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else default


class ConsoleSuppressingFilter(logging.Filter):
    """Drops console records while a progress display owns the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        from manindex.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _handler(output: LogOutputConfig, level: int) -> logging.Handler:
    handler: logging.Handler
    console = output.destination in ("stderr", "stdout")
    if console:
        stream = sys.stderr if output.destination == "stderr" else sys.stdout
        handler = logging.StreamHandler(stream)
        handler.addFilter(ConsoleSuppressingFilter())
        colors = stream.isatty()
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        colors = False

    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=_SHARED_PROCESSORS)
    )
    handler.setLevel(level)
    return handler


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and the root logger.

    Without ``config`` a single stderr output is set up from ``json_format``
    and ``level``. May be called again; earlier handlers are replaced.
    """
    from manindex.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level)

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # reconfiguration must reach loggers created before it
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()
    root.setLevel(root_level)
    for output in config.outputs:
        root.addHandler(_handler(output, _level(output.level or config.level, root_level)))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
