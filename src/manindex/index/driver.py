"""Directory and file driver: which pages to index, and in what order."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import structlog

from manindex.config.models import ManIndexConfig, ManualRoot
from manindex.core.diagnostics import Diagnostics
from manindex.core.errors import MarkupError
from manindex.core.progress import progress
from manindex.index.builder import index_file
from manindex.index.models import DocClass, IndexRecord

logger = structlog.get_logger()


def manual_directories(config: ManIndexConfig) -> list[ManualRoot]:
    """Configured manual roots that exist and are directories."""
    roots = [root for root in config.manual.roots() if root.path.is_dir()]
    if not roots:
        logger.warning("no_manual_directories", doc_root=str(config.manual.root_path()))
    return roots


def html_files(directory: Path, pattern: str = "*.html") -> list[Path]:
    """Pages directly inside directory, sorted by name."""
    return sorted(p.resolve() for p in directory.glob(pattern) if p.is_file())


def local_path(path: Path, roots: Iterable[ManualRoot]) -> str | None:
    """Installation-independent name of a page: ``Manual/lists.html``.

    None when the page is not below any manual root.
    """
    if not path.is_absolute():
        return None
    resolved = path.resolve()
    for root in roots:
        try:
            relative = resolved.relative_to(root.path)
        except ValueError:
            continue
        return f"{root.namespace}/{relative.as_posix()}"
    return None


def _index_one(
    path: Path,
    doc_class: DocClass,
    config: ManIndexConfig,
    diagnostics: Diagnostics | None,
) -> list[IndexRecord]:
    try:
        return index_file(
            path,
            doc_class,
            local_path=local_path(path, config.manual.roots()),
            encoding=config.indexer.encoding,
            diagnostics=diagnostics,
        )
    except MarkupError as e:
        if diagnostics is not None:
            diagnostics.warning("file_unreadable", file=str(path), reason=e.details.get("reason"))
        return []


def index_files(
    paths: Iterable[Path],
    doc_class: DocClass,
    config: ManIndexConfig,
    *,
    sink: Callable[[list[IndexRecord]], None],
    diagnostics: Diagnostics | None = None,
) -> int:
    """Index pages and hand each page's records to sink as one batch.

    With ``indexer.max_workers > 1`` pages are indexed in a thread pool.
    Batches still reach sink from the calling thread, in file order.
    Returns the number of records produced.
    """
    files = list(paths)
    total = 0
    workers = min(config.indexer.max_workers, max(len(files), 1))

    if workers <= 1:
        for path in progress(files, desc="Indexing", unit="pages"):
            records = _index_one(path, doc_class, config, diagnostics)
            sink(records)
            total += len(records)
        return total

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="manindex-indexer") as pool:
        batches: Iterator[list[IndexRecord]] = pool.map(
            lambda p: _index_one(p, doc_class, config, diagnostics), files
        )
        for records in progress(batches, desc="Indexing", total=len(files), unit="pages"):
            sink(records)
            total += len(records)
    return total


def index_directory(
    directory: Path,
    doc_class: DocClass,
    config: ManIndexConfig,
    *,
    sink: Callable[[list[IndexRecord]], None],
    diagnostics: Diagnostics | None = None,
) -> int:
    """Index every page of one directory (non-recursive)."""
    files = html_files(directory, config.indexer.file_pattern)
    logger.debug("indexing_directory", directory=str(directory), files=len(files))
    return index_files(files, doc_class, config, sink=sink, diagnostics=diagnostics)
