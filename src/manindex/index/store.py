"""The manual index: records, build-or-load lifecycle and queries.

``ManualIndex`` owns every ``IndexRecord``. It starts ``EMPTY`` and becomes
``LOADED`` exactly once, either from the snapshot file or from a full scan
of the configured manual directories:

    index = ManualIndex(config)
    index.load_or_build()          # racing callers wait for one scan
    for record in index.find(Callable("append", ANY)):
        print(record.summary)

The snapshot is trusted as long as it exists; ``clean()`` followed by a
rebuild, or deleting the file, are the only ways to refresh it.
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable, Iterator
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import structlog

from manindex.config.models import ManIndexConfig
from manindex.core.diagnostics import Diagnostics, LoggingDiagnostics
from manindex.core.errors import SnapshotError
from manindex.index import driver
from manindex.index.builder import index_file as _index_file
from manindex.index.models import (
    ANY,
    DocClass,
    DocumentationObject,
    IndexRecord,
    Section,
    matches,
)
from manindex.index.snapshot import parse_record, read_snapshot, write_snapshot

logger = structlog.get_logger()

PropertyKind = Literal["summary", "id"]


class StoreState(Enum):
    EMPTY = "empty"
    LOADED = "loaded"


class RecordQuery:
    """Records matching a five-field pattern.

    Lazy and restartable: every iteration scans the records present when it
    starts.
    """

    def __init__(
        self,
        index: ManualIndex,
        obj: Any = ANY,
        summary: Any = ANY,
        file: Any = ANY,
        doc_class: Any = ANY,
        offset: Any = ANY,
    ) -> None:
        self._index = index
        self._pattern = (obj, summary, file, doc_class, offset)

    def _match(self, record: IndexRecord) -> bool:
        obj, summary, file, doc_class, offset = self._pattern
        return (
            matches(obj, record.obj)
            and matches(summary, record.summary)
            and matches(file, record.file)
            and matches(doc_class, record.doc_class)
            and matches(offset, record.offset)
        )

    def __iter__(self) -> Iterator[IndexRecord]:
        for record in self._index.records():
            if self._match(record):
                yield record

    def first(self) -> IndexRecord | None:
        return next(iter(self), None)


class ManualIndex:
    """Process-wide store of index records with a once-only build."""

    def __init__(
        self,
        config: ManIndexConfig | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.config = config or ManIndexConfig()
        self.diagnostics = diagnostics or LoggingDiagnostics()
        self._records: list[IndexRecord] = []
        self._records_lock = threading.Lock()
        self._build_lock = threading.Lock()
        self._state = StoreState.EMPTY
        self.scans = 0

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is StoreState.LOADED

    def __len__(self) -> int:
        with self._records_lock:
            return len(self._records)

    def records(self) -> list[IndexRecord]:
        """Copy of all records, in insertion order."""
        with self._records_lock:
            return list(self._records)

    def add_records(self, records: Iterable[IndexRecord]) -> None:
        """Append a batch; batches never interleave."""
        batch = list(records)
        with self._records_lock:
            self._records.extend(batch)

    def validate_and_insert(self, line: str, line_no: int = 1) -> IndexRecord:
        """Parse one snapshot line and insert the record.

        Raises:
            SnapshotError: The line is not a complete record.
        """
        record = parse_record(line, line_no)
        self.add_records([record])
        return record

    def clean(self) -> None:
        """Drop every record and return to EMPTY."""
        with self._build_lock, self._records_lock:
            self._records.clear()
            self._state = StoreState.EMPTY
        logger.debug("index_cleaned")

    # ------------------------------------------------------------------
    # Build or load
    # ------------------------------------------------------------------

    def load_or_build(self) -> ManualIndex:
        """Materialize the index once: from the snapshot, else by a full scan.

        A freshly scanned index is persisted; failing to do so is only a
        warning. Concurrent callers block until the single build is done.
        """
        if self.is_loaded:
            return self
        with self._build_lock:
            if self.is_loaded:
                return self
            if not self._load_snapshot():
                self._install(self._scan())
                self.save_snapshot()
            self._state = StoreState.LOADED
        return self

    def _install(self, records: list[IndexRecord]) -> None:
        with self._records_lock:
            self._records.extend(records)

    def _load_snapshot(self) -> bool:
        path = self.config.manual.snapshot_path()
        if not path.is_file():
            logger.debug("snapshot_missing", path=str(path))
            return False
        try:
            records = read_snapshot(path)
        except SnapshotError as e:
            self.diagnostics.warning("snapshot_read_failed", path=str(path), error=str(e))
            return False
        self._install(records)
        logger.info("snapshot_loaded", path=str(path), records=len(records))
        return True

    def _scan(self) -> list[IndexRecord]:
        records: list[IndexRecord] = []
        for root in driver.manual_directories(self.config):
            driver.index_directory(
                root.path,
                DocClass(root.doc_class),
                self.config,
                sink=records.extend,
                diagnostics=self.diagnostics,
            )
        self.scans += 1
        logger.info("index_built", records=len(records))
        return records

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self, path: Path | None = None) -> int:
        """Write all records to the snapshot file.

        Raises:
            SnapshotError: The file cannot be written.
        """
        target = path or self.config.manual.snapshot_path()
        return write_snapshot(target, self.records())

    def save_snapshot(self) -> bool:
        """Persist, reporting failure as a warning."""
        try:
            count = self.persist()
        except SnapshotError as e:
            self.diagnostics.warning("snapshot_write_failed", error=str(e), **e.details)
            return False
        logger.info("snapshot_saved", records=count)
        return True

    def save(self) -> None:
        """Persist the records present, or build (and thereby persist) the index."""
        if len(self):
            self.save_snapshot()
        else:
            self.load_or_build()

    # ------------------------------------------------------------------
    # Manual indexing
    # ------------------------------------------------------------------

    def local_path(self, path: Path) -> str | None:
        """``Manual/...`` or ``packages/...`` name of a page, if under a root."""
        return driver.local_path(path, self.config.manual.roots())

    def index_directory(self, directory: Path, doc_class: DocClass = DocClass.MISC) -> int:
        """Index the pages of one directory; returns the number of records added."""
        if not directory.is_dir():
            raise NotADirectoryError(str(directory))
        with self._build_lock:
            count = driver.index_directory(
                directory.resolve(),
                doc_class,
                self.config,
                sink=self.add_records,
                diagnostics=self.diagnostics,
            )
            if count:
                self._state = StoreState.LOADED
        return count

    def index_file(self, path: Path, doc_class: DocClass = DocClass.MISC) -> int:
        """Index one page; returns the number of records added.

        Raises:
            MarkupError: The page cannot be read.
        """
        resolved = path.resolve()
        records = _index_file(
            resolved,
            doc_class,
            local_path=self.local_path(resolved),
            encoding=self.config.indexer.encoding,
            diagnostics=self.diagnostics,
        )
        with self._build_lock:
            self.add_records(records)
            if records:
                self._state = StoreState.LOADED
        return len(records)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def manual_object(
        self,
        obj: Any = ANY,
        summary: Any = ANY,
        file: Any = ANY,
        doc_class: Any = ANY,
        offset: Any = ANY,
    ) -> RecordQuery:
        """Records matching the given field patterns (loads the index first)."""
        self.load_or_build()
        return RecordQuery(self, obj, summary, file, doc_class, offset)

    def find(self, pattern: Any = ANY) -> RecordQuery:
        """Records whose object matches pattern."""
        return self.manual_object(obj=pattern)

    def current_objects(self, pattern: Any = ANY) -> Iterator[DocumentationObject]:
        """Distinct documented objects matching pattern, in index order."""
        seen: set[DocumentationObject] = set()
        for record in self.find(pattern):
            if record.obj not in seen:
                seen.add(record.obj)
                yield record.obj

    def object_property(self, obj: Any, kind: PropertyKind) -> Iterator[Any]:
        """``summary``: summary texts; ``id``: (file, offset) identity pairs."""
        if kind == "summary":
            return (record.summary for record in self.find(obj))
        if kind == "id":
            return (record.identity for record in self.find(obj))
        raise ValueError(f"Unknown property: {kind!r}")

    def check_duplicate_section_ids(self) -> list[str]:
        """Section labels used more than once, sorted."""
        labels = sorted(r.obj.label for r in self.records() if isinstance(r.obj, Section))
        counts = Counter(labels)
        duplicates = sorted(label for label, count in counts.items() if count > 1)
        if duplicates:
            self.diagnostics.warning("duplicate_section_ids", ids=duplicates)
        return duplicates


_default_index: ManualIndex | None = None
_default_lock = threading.Lock()


def get_manual_index(config: ManIndexConfig | None = None) -> ManualIndex:
    """The process-wide index, loaded or built on first use.

    ``config`` only matters for the first call.
    """
    global _default_index
    with _default_lock:
        if _default_index is None:
            if config is None:
                from manindex.config.loader import load_config

                config = load_config()
            _default_index = ManualIndex(config)
        index = _default_index
    return index.load_or_build()


def reset_manual_index() -> None:
    """Forget the process-wide index (the next call builds or loads again)."""
    global _default_index
    with _default_lock:
        _default_index = None
