"""Terminal feedback for manindex commands.

Everything goes to stderr, so command output on stdout stays pipeable.
Long page scans get a progress bar when stderr is a terminal; console log
handlers are muted while it is drawn, in every thread.
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Iterable, Iterator, Mapping, Sized
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TypeVar

import structlog
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

# fewer pages than this finish before a bar is worth drawing
_BAR_MIN_ITEMS = 50

T = TypeVar("T")

_console = Console(stderr=True)
logger = structlog.get_logger()

_MARKS = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

_live_lock = threading.Lock()
_live_displays = 0


def is_console_suppressed() -> bool:
    return _live_displays > 0


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Mute console log handlers for the duration of a live display."""
    global _live_displays
    with _live_lock:
        _live_displays += 1
    try:
        yield
    finally:
        with _live_lock:
            _live_displays -= 1


def _is_tty() -> bool:
    return sys.stderr.isatty()


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info") -> None:
    """Print one marked status line."""
    _console.print(f"{_MARKS.get(style, '')}{message}", highlight=False)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """``1 record``, ``3 records``."""
    return f"{count} {singular if count == 1 else (plural or singular + 's')}"


def progress(
    items: Iterable[T],
    *,
    desc: str = "Working",
    total: int | None = None,
    unit: str = "pages",
) -> Iterator[T]:
    """Yield items, drawing a bar for long runs on a terminal."""
    if total is None and isinstance(items, Sized):
        total = len(items)
    if total is None or total < _BAR_MIN_ITEMS or not _is_tty():
        logger.debug("progress", desc=desc, total=total)
        yield from items
        return

    columns = (
        TextColumn("  {task.description}"),
        BarColumn(bar_width=30),
        MofNCompleteColumn(),
        TextColumn(unit),
        TimeElapsedColumn(),
    )
    with suppress_console_logs(), Progress(*columns, console=_console, transient=True) as bar:
        task_id = bar.add_task(desc, total=total)
        for item in items:
            yield item
            bar.advance(task_id)


@dataclass
class TaskOutcome:
    """Filled in by the body of ``task()``; shown on the completion line."""

    detail: str | None = None


@contextmanager
def task(name: str) -> Iterator[TaskOutcome]:
    """Announce a step, then report it done (with elapsed time) or failed.

        with task("Building manual index") as outcome:
            index.load_or_build()
            outcome.detail = pluralize(len(index), "record")
        # ✓ Building manual index: 10 records (0.4s)
    """
    outcome = TaskOutcome()
    status(f"{name}...", style="none")
    started = time.perf_counter()
    try:
        yield outcome
    except Exception as e:
        status(f"{name} failed: {e}", style="error")
        logger.error("task_failed", task=name, error=str(e))
        raise
    elapsed = time.perf_counter() - started
    label = f"{name}: {outcome.detail}" if outcome.detail else name
    status(f"{label} ({elapsed:.1f}s)", style="success")
    logger.debug("task_done", task=name, elapsed_s=round(elapsed, 3))


def count_table(counts: Mapping[str, int], *, label: str = "class") -> Table:
    """Counts per label in the given order, with a total row."""
    table = Table(box=None, padding=(0, 2), pad_edge=False, show_footer=len(counts) > 1)
    table.add_column(label, style="cyan", footer="total")
    table.add_column("records", justify="right", footer=str(sum(counts.values())))
    for name, count in counts.items():
        table.add_row(name, str(count))
    return table
