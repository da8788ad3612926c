"""Index builder: turns the element-open events of one page into index records.

Four markup patterns are recognized:

- ``<dt class="pubdef">``: a definition term naming a documented object in
  the first anchor carrying a ``data-obj``, ``id`` or ``name`` attribute
  that parses as an identifier. Several terms may precede one description.
- ``<dd>``: the description shared by the pending terms. Each pending
  object gets a record with the description's first sentence, all pointing
  at the first term's offset.
- ``<div class="title">``: the document title, recorded as a level-0
  section keyed by the page's local path.
- ``<h1>`` .. ``<h4>``: numbered sections.

All accumulation state lives in a ``FilePass`` that is created for one file
and dropped when the pass ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from manindex.core.diagnostics import Diagnostics
from manindex.core.logging import bind_file_context
from manindex.index.identifiers import try_parse_identifier
from manindex.index.markup import Element, EventStream, MarkupEvent, open_document
from manindex.index.models import DocClass, DocumentationObject, IndexRecord, Section
from manindex.index.sections import heading_level, parse_section
from manindex.index.text import flatten, summarize

logger = structlog.get_logger()

PUBDEF_CLASS = "pubdef"
TITLE_CLASS = "title"
ANCHOR_ATTRIBUTES = ("data-obj", "id", "name")


@dataclass(frozen=True, slots=True)
class PendingTerm:
    """A definition term waiting for its description."""

    obj: DocumentationObject
    file: str
    offset: int


@dataclass
class FilePass:
    """Per-file accumulation state."""

    file: str
    doc_class: DocClass
    local_path: str | None = None
    pending: list[PendingTerm] = field(default_factory=list)
    records: list[IndexRecord] = field(default_factory=list)

    def add_pending(self, term: PendingTerm) -> bool:
        """Queue a term unless the same object is already waiting."""
        if any(p.obj == term.obj and p.file == term.file for p in self.pending):
            return False
        self.pending.append(term)
        return True

    def take_pending(self) -> list[PendingTerm]:
        """Pending terms in discovery order; the queue is left empty."""
        terms, self.pending = self.pending, []
        return terms


def anchor_object(tree: Element) -> DocumentationObject | None:
    """First object named by an anchor inside a definition term.

    Anchors are visited in document order; per anchor the attributes are
    tried in ``ANCHOR_ATTRIBUTES`` order until one parses.
    """
    for element in tree.iter_elements():
        if element.tag != "a":
            continue
        for attribute in ANCHOR_ATTRIBUTES:
            token = element.attributes.get(attribute)
            if token is None:
                continue
            obj = try_parse_identifier(token)
            if obj is not None:
                return obj
            logger.debug("anchor_not_an_object", attribute=attribute, token=token)
    return None


class IndexBuilder:
    """Event handler for one file pass."""

    def __init__(self, state: FilePass, diagnostics: Diagnostics | None = None) -> None:
        self.state = state
        self.diagnostics = diagnostics

    def on_begin(self, event: MarkupEvent, stream: EventStream) -> None:
        tag = event.tag
        if tag == "dt":
            if event.has_class(PUBDEF_CLASS):
                self._definition_term(event, stream)
        elif tag == "dd":
            self._definition_data(stream)
        elif tag == "div":
            if event.has_class(TITLE_CLASS):
                self._document_title(event, stream)
        elif heading_level(tag) is not None:
            self._heading(event, stream)

    def _definition_term(self, event: MarkupEvent, stream: EventStream) -> None:
        tree = stream.parse_subtree()
        obj = anchor_object(tree)
        if obj is None:
            return
        self.state.add_pending(PendingTerm(obj, self.state.file, event.offset))

    def _definition_data(self, stream: EventStream) -> None:
        if not self.state.pending:
            return
        terms = self.state.take_pending()
        summary = summarize(stream.parse_subtree())
        first = terms[0]
        for term in terms:
            self._emit(term.obj, summary, first.file, first.offset)

    def _document_title(self, event: MarkupEvent, stream: EventStream) -> None:
        tree = stream.parse_subtree()
        local = self.state.local_path
        if local is None:
            logger.debug("title_outside_manual_roots", offset=event.offset)
            return
        title = flatten(tree)
        self._emit(Section(0, "0", local, self.state.file), title, self.state.file, event.offset)

    def _heading(self, event: MarkupEvent, stream: EventStream) -> None:
        tree = stream.parse_subtree()
        section = parse_section(
            tree,
            event.attributes,
            file=self.state.file,
            diagnostics=self.diagnostics,
        )
        obj = Section(section.level, section.number, section.id, self.state.file)
        self._emit(obj, section.title, self.state.file, event.offset)

    def _emit(self, obj: DocumentationObject, summary: str, file: str, offset: int) -> None:
        self.state.records.append(
            IndexRecord(
                obj=obj,
                summary=summary,
                file=file,
                doc_class=self.state.doc_class,
                offset=offset,
            )
        )


def index_stream(
    stream: EventStream,
    file: str,
    doc_class: DocClass,
    *,
    local_path: str | None = None,
    diagnostics: Diagnostics | None = None,
) -> list[IndexRecord]:
    """Run one file pass over an event stream and return its records."""
    state = FilePass(file=file, doc_class=doc_class, local_path=local_path)
    builder = IndexBuilder(state, diagnostics)
    for event in stream:
        try:
            builder.on_begin(event, stream)
        except Exception as e:
            # skip the element, keep the page
            logger.warning("element_skipped", tag=event.tag, offset=event.offset, error=str(e))
    if state.pending:
        logger.debug("terms_without_description", count=len(state.pending))
    return state.records


def index_file(
    path: Path,
    doc_class: DocClass,
    *,
    local_path: str | None = None,
    encoding: str = "utf-8",
    diagnostics: Diagnostics | None = None,
) -> list[IndexRecord]:
    """Index one HTML page.

    Raises:
        MarkupError: The file cannot be read.
    """
    file = str(path)
    with bind_file_context(file):
        stream = open_document(path, encoding=encoding)
        records = index_stream(
            stream,
            file,
            doc_class,
            local_path=local_path,
            diagnostics=diagnostics,
        )
        logger.debug("file_indexed", doc_class=doc_class.value, records=len(records))
    return records
