"""Index module - documentation entries of the HTML manuals.

This module provides:
- Identifier grammar: anchor tokens to documentation objects
- Text and summary extraction from materialized markup
- Section number/title/label recovery from headings
- The per-file index builder and the directory driver
- The record store with snapshot persistence and pattern queries

Public API is ``ManualIndex`` in ``manindex.index.store``.
"""

from manindex.index.builder import FilePass, IndexBuilder, index_file, index_stream
from manindex.index.identifiers import format_identifier, parse_identifier
from manindex.index.markup import Element, EventStream, MarkupEvent, open_document
from manindex.index.models import (
    ANY,
    Callable,
    CReference,
    DcgCallable,
    DocClass,
    DocumentationObject,
    FunctionLike,
    IndexRecord,
    QualifiedCallable,
    Section,
    matches,
)
from manindex.index.sections import ParsedSection, parse_section
from manindex.index.snapshot import format_record, parse_record, read_snapshot, write_snapshot
from manindex.index.store import (
    ManualIndex,
    RecordQuery,
    StoreState,
    get_manual_index,
    reset_manual_index,
)
from manindex.index.text import flatten, summarize

__all__ = [
    # Store (public API)
    "ManualIndex",
    "RecordQuery",
    "StoreState",
    "get_manual_index",
    "reset_manual_index",
    # Models
    "ANY",
    "Callable",
    "CReference",
    "DcgCallable",
    "DocClass",
    "DocumentationObject",
    "FunctionLike",
    "IndexRecord",
    "QualifiedCallable",
    "Section",
    "matches",
    # Parsing
    "Element",
    "EventStream",
    "MarkupEvent",
    "open_document",
    "parse_identifier",
    "format_identifier",
    "ParsedSection",
    "parse_section",
    "flatten",
    "summarize",
    # Building
    "FilePass",
    "IndexBuilder",
    "index_file",
    "index_stream",
    # Snapshot
    "format_record",
    "parse_record",
    "read_snapshot",
    "write_snapshot",
]
