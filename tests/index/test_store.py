"""Tests for the manual index store.

Covers:
- Build-or-load lifecycle and the once-only scan
- Snapshot fallback and non-fatal persistence failures
- validate_and_insert() round trip
- Pattern queries and object properties
- Duplicate section id check
"""

from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from manindex.config.models import IndexerConfig, ManIndexConfig, ManualConfig
from manindex.core.diagnostics import CollectingDiagnostics
from manindex.core.errors import SnapshotError
from manindex.index.models import (
    ANY,
    Callable,
    CReference,
    DocClass,
    IndexRecord,
    QualifiedCallable,
    Section,
)
from manindex.index.snapshot import HEADER, format_record
from manindex.index.store import (
    ManualIndex,
    StoreState,
    get_manual_index,
    reset_manual_index,
)


def record(  # type: ignore[no-untyped-def]
    obj, file="/doc/Manual/x.html", offset=1, summary="Summary.", doc_class=DocClass.MANUAL
):
    return IndexRecord(obj=obj, summary=summary, file=file, doc_class=doc_class, offset=offset)


@pytest.fixture
def empty_config(tmp_path: Path) -> ManIndexConfig:
    """A documentation root without any manual directories."""
    return ManIndexConfig(manual=ManualConfig(doc_root=str(tmp_path / "empty-doc")))


@pytest.fixture
def loaded(empty_config: ManIndexConfig) -> ManualIndex:
    """A loaded (empty) index that queries will not rebuild."""
    index = ManualIndex(empty_config, diagnostics=CollectingDiagnostics())
    index.load_or_build()
    return index


class TestLifecycle:
    """EMPTY -> LOADED transitions."""

    def test_starts_empty(self, config: ManIndexConfig) -> None:
        index = ManualIndex(config)
        assert index.state is StoreState.EMPTY
        assert len(index) == 0

    def test_build_scans_all_roots(self, config: ManIndexConfig) -> None:
        """Manual pages first, then packages, with their class labels."""
        index = ManualIndex(config).load_or_build()

        assert index.is_loaded
        assert index.scans == 1
        assert len(index) == 10
        classes = [r.doc_class for r in index.records()]
        assert classes == [DocClass.MANUAL] * 8 + [DocClass.PACKAGES] * 2

    def test_build_writes_snapshot(self, config: ManIndexConfig) -> None:
        index = ManualIndex(config).load_or_build()

        snapshot = config.manual.snapshot_path()
        assert snapshot.exists()
        lines = snapshot.read_text(encoding="utf-8").splitlines()
        assert len(lines) == len(index) + 2

    def test_second_index_loads_snapshot(self, config: ManIndexConfig) -> None:
        """A fresh process reuses the snapshot instead of scanning."""
        built = ManualIndex(config).load_or_build()

        loaded = ManualIndex(config).load_or_build()

        assert loaded.scans == 0
        assert loaded.records() == built.records()

    def test_snapshot_trusted_even_if_pages_change(
        self, config: ManIndexConfig, doc_root: Path
    ) -> None:
        """The snapshot is not checked against the pages."""
        ManualIndex(config).load_or_build()
        (doc_root / "Manual" / "lists.html").unlink()

        index = ManualIndex(config).load_or_build()

        assert index.scans == 0
        assert index.find(Callable("append", 3)).first() is not None

    def test_load_or_build_is_idempotent(self, config: ManIndexConfig) -> None:
        index = ManualIndex(config)
        index.load_or_build()
        index.load_or_build()
        assert index.scans == 1
        assert len(index) == 10

    def test_concurrent_callers_share_one_scan(self, config: ManIndexConfig) -> None:
        """Racing callers block until the single build is complete."""
        index = ManualIndex(config)
        barrier = threading.Barrier(8)
        sizes: list[int] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            index.load_or_build()
            with lock:
                sizes.append(len(index))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert index.scans == 1
        assert sizes == [10] * 8

    def test_clean_resets(self, config: ManIndexConfig) -> None:
        index = ManualIndex(config).load_or_build()
        index.clean()
        assert index.state is StoreState.EMPTY
        assert len(index) == 0


class TestSnapshotFallback:
    """Snapshot read and write failures are never fatal."""

    def test_invalid_snapshot_triggers_rebuild(self, config: ManIndexConfig) -> None:
        snapshot = config.manual.snapshot_path()
        snapshot.write_text(HEADER + "record(garbage).\n", encoding="utf-8")
        diagnostics = CollectingDiagnostics()

        index = ManualIndex(config, diagnostics=diagnostics).load_or_build()

        assert index.scans == 1
        assert len(index) == 10
        assert "snapshot_read_failed" in diagnostics.messages
        # the rebuilt index replaced the broken snapshot
        assert ManualIndex(config).load_or_build().scans == 0

    def test_partially_valid_snapshot_fully_rejected(self, config: ManIndexConfig) -> None:
        """Valid lines before a bad one are not kept."""
        good = format_record(record(CReference("PL_unify")))
        config.manual.snapshot_path().write_text(
            HEADER + good + "\nrecord('x'/1,\"s\",'f',manual).\n", encoding="utf-8"
        )

        index = ManualIndex(config, diagnostics=CollectingDiagnostics()).load_or_build()

        assert index.find(CReference("PL_unify")).first() is None
        assert len(index) == 10

    def test_write_failure_is_a_warning(self, doc_root: Path, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not directory")
        config = ManIndexConfig(
            manual=ManualConfig(doc_root=str(doc_root), snapshot=str(blocker / "x" / "m.db"))
        )
        diagnostics = CollectingDiagnostics()

        index = ManualIndex(config, diagnostics=diagnostics).load_or_build()

        assert index.is_loaded
        assert len(index) == 10
        assert diagnostics.messages == ["snapshot_write_failed"]

    def test_unreadable_pages_are_warnings(self, doc_root: Path) -> None:
        """A page that cannot be decoded is skipped; the build completes."""
        config = ManIndexConfig(
            manual=ManualConfig(doc_root=str(doc_root)),
            indexer=IndexerConfig(encoding="no-such-codec"),
        )
        diagnostics = CollectingDiagnostics()

        index = ManualIndex(config, diagnostics=diagnostics).load_or_build()

        assert index.is_loaded
        assert len(index) == 0
        assert diagnostics.messages == ["file_unreadable"] * 3

    def test_persist_raises(self, loaded: ManualIndex, tmp_path: Path) -> None:
        """persist() itself reports failures to its caller."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        with pytest.raises(SnapshotError):
            loaded.persist(blocker / "sub" / "m.db")


class TestValidateAndInsert:
    """Snapshot lines back into records."""

    def test_round_trip(self, loaded: ManualIndex, tmp_path: Path) -> None:
        """Every persisted line re-inserted gives the same set of records."""
        originals = [
            record(Callable("foo", 1), offset=10),
            record(Callable("foo", 2), offset=10),
            record(QualifiedCallable("lists", Callable("append", 3)), summary='Say "hi".'),
            record(Section(1, "4", "sec:builtin", "/doc/Manual/builtin.html"), offset=0),
        ]
        loaded.add_records(originals)
        path = tmp_path / "out.db"
        loaded.persist(path)

        target = ManualIndex(loaded.config)
        for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
            if line.startswith("%"):
                continue
            target.validate_and_insert(line, line_no)

        assert set(target.records()) == set(originals)

    def test_rejects_bad_line(self, loaded: ManualIndex) -> None:
        with pytest.raises(SnapshotError):
            loaded.validate_and_insert("record('a'/1).", 4)
        assert len(loaded) == 0


class TestQueries:
    """find(), manual_object(), current_objects(), object_property()."""

    @pytest.fixture
    def index(self, loaded: ManualIndex) -> ManualIndex:
        loaded.add_records(
            [
                record(Callable("append", 3), offset=10, summary="Append lists."),
                record(Callable("append", 2), offset=50, summary="Append list of lists."),
                record(QualifiedCallable("lists", Callable("append", 3)), offset=10),
                record(Section(2, "4.1", "sec:lists", "/doc/Manual/x.html"), offset=0),
                record(
                    Callable("append", 3),
                    file="/doc/packages/y.html",
                    doc_class=DocClass.PACKAGES,
                ),
            ]
        )
        return loaded

    def test_exact_object(self, index: ManualIndex) -> None:
        assert [r.offset for r in index.find(Callable("append", 3))] == [10, 1]

    def test_wildcard_field(self, index: ManualIndex) -> None:
        assert len(list(index.find(Callable("append", ANY)))) == 3

    def test_variant_must_match(self, index: ManualIndex) -> None:
        """A Callable pattern does not match a qualified callable."""
        assert all(
            not isinstance(r.obj, QualifiedCallable) for r in index.find(Callable(ANY, ANY))
        )

    def test_nested_pattern(self, index: ManualIndex) -> None:
        pattern = QualifiedCallable(ANY, Callable("append", ANY))
        assert [r.obj for r in index.find(pattern)] == [
            QualifiedCallable("lists", Callable("append", 3))
        ]

    def test_section_by_label(self, index: ManualIndex) -> None:
        found = index.find(Section(ANY, ANY, "sec:lists", ANY)).first()
        assert found is not None
        assert found.obj.number == "4.1"  # type: ignore[union-attr]

    def test_everything(self, index: ManualIndex) -> None:
        assert len(list(index.find())) == 5

    def test_no_match(self, index: ManualIndex) -> None:
        assert list(index.find(Callable("nope", ANY))) == []
        assert index.find(Callable("nope", ANY)).first() is None

    def test_other_fields(self, index: ManualIndex) -> None:
        query = index.manual_object(Callable("append", 3), doc_class=DocClass.PACKAGES)
        assert [r.file for r in query] == ["/doc/packages/y.html"]

    def test_class_matches_plain_string(self, index: ManualIndex) -> None:
        assert len(list(index.manual_object(doc_class="packages"))) == 1

    def test_query_is_restartable(self, index: ManualIndex) -> None:
        query = index.find(Callable("append", ANY))
        assert list(query) == list(query)

    def test_current_objects_distinct(self, index: ManualIndex) -> None:
        assert list(index.current_objects(Callable("append", ANY))) == [
            Callable("append", 3),
            Callable("append", 2),
        ]

    def test_summary_property(self, index: ManualIndex) -> None:
        summaries = list(index.object_property(Callable("append", 2), "summary"))
        assert summaries == ["Append list of lists."]

    def test_id_property(self, index: ManualIndex) -> None:
        ids = list(index.object_property(Callable("append", 3), "id"))
        assert ids == [("/doc/Manual/x.html", 10), ("/doc/packages/y.html", 1)]

    def test_unknown_property(self, index: ManualIndex) -> None:
        with pytest.raises(ValueError):
            index.object_property(Callable("append", 3), "arity")  # type: ignore[arg-type]

    def test_find_builds_on_first_use(self, config: ManIndexConfig) -> None:
        """Querying an EMPTY index loads it first."""
        index = ManualIndex(config)
        assert index.find(Callable("memberchk", 2)).first() is not None
        assert index.is_loaded


class TestDuplicateSectionIds:
    """check_duplicate_section_ids()."""

    def test_reports_repeated_labels(self, loaded: ManualIndex) -> None:
        labels = ["c", "a", "b", "c", "a", "c"]
        loaded.add_records(
            record(Section(1, str(i), label, "/doc/x.html"), offset=i)
            for i, label in enumerate(labels)
        )
        loaded.add_records([record(Callable("a", 1))])

        assert loaded.check_duplicate_section_ids() == ["a", "c"]
        assert isinstance(loaded.diagnostics, CollectingDiagnostics)
        assert loaded.diagnostics.warnings[-1] == ("duplicate_section_ids", {"ids": ["a", "c"]})

    def test_no_duplicates(self, loaded: ManualIndex) -> None:
        loaded.add_records([record(Section(1, "1", "a", "/doc/x.html"))])
        assert loaded.check_duplicate_section_ids() == []
        assert loaded.diagnostics.warnings == []  # type: ignore[attr-defined]

    def test_sample_manual(self, config: ManIndexConfig) -> None:
        """The sample pages reuse sec:lists."""
        index = ManualIndex(config, diagnostics=CollectingDiagnostics()).load_or_build()
        assert index.check_duplicate_section_ids() == ["sec:lists"]


class TestManualIndexing:
    """index_file() / index_directory() / save()."""

    def test_index_directory_marks_loaded(
        self, empty_config: ManIndexConfig, doc_root: Path
    ) -> None:
        index = ManualIndex(empty_config)

        count = index.index_directory(doc_root / "packages", DocClass.PACKAGES)

        assert count == 1
        assert index.is_loaded
        # outside the configured roots: no title pseudo-section
        assert [type(r.obj) for r in index.records()] == [QualifiedCallable]

    def test_index_directory_not_a_directory(self, loaded: ManualIndex, tmp_path: Path) -> None:
        with pytest.raises(NotADirectoryError):
            loaded.index_directory(tmp_path / "missing")

    def test_index_file_default_class(self, config: ManIndexConfig, doc_root: Path) -> None:
        index = ManualIndex(config)
        assert index.index_file(doc_root / "Manual" / "IO.html") == 3
        assert {r.doc_class for r in index.records()} == {DocClass.MISC}

    def test_index_file_without_records_stays_empty(
        self, config: ManIndexConfig, tmp_path: Path
    ) -> None:
        page = tmp_path / "blank.html"
        page.write_text("<p>nothing</p>")
        index = ManualIndex(config)
        assert index.index_file(page) == 0
        assert index.state is StoreState.EMPTY

    def test_save_persists_present_records(self, config: ManIndexConfig, doc_root: Path) -> None:
        index = ManualIndex(config)
        index.index_file(doc_root / "Manual" / "IO.html")

        index.save()

        assert len(ManualIndex(config).load_or_build()) == 3


class TestDefaultIndex:
    """Process-wide index."""

    def teardown_method(self) -> None:
        reset_manual_index()

    def test_singleton(self, config: ManIndexConfig) -> None:
        first = get_manual_index(config)
        second = get_manual_index()
        assert first is second
        assert first.is_loaded
        assert first.scans == 1

    def test_reset(self, config: ManIndexConfig) -> None:
        first = get_manual_index(config)
        reset_manual_index()
        with patch("manindex.config.loader.load_config", return_value=config):
            second = get_manual_index()
        assert second is not first
        assert second.scans == 0
