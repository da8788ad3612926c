"""Event-driven access to HTML manual pages.

BeautifulSoup with the ``html5lib`` builder does the tokenizing and tree
building, so omitted end tags (``</dt>``, ``</dd>``, ``</p>``, ...) are
inferred the way browsers do. On top of it, ``EventStream`` replays the
document as a sequence of element-open events in document order. While
handling an event the consumer may call ``parse_subtree()``: this
materializes the element's content as an ``Element`` tree and skips the
events of its descendants, as if the stream had been advanced past the
element.

Offsets are character positions in the decoded source text. Elements the
parser implies without a start tag in the source (``html``, ``head``,
``body``, ``tbody``, ...) produce no event; their children do.
"""

from __future__ import annotations

import re
import string
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from bs4 import BeautifulSoup
from bs4.element import CData, NavigableString, PreformattedString, Tag

from manindex.core.errors import MarkupError

logger = structlog.get_logger()

_PARSER = "html5lib"
_LINE_BREAK_RE = re.compile(r"\r\n?|\n")
# same-length ASCII case folding, so positions in the folded text stay valid
_ASCII_FOLD = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_TAG_NAME_END = frozenset(" \t\n\r\f/>")


@dataclass(frozen=True, slots=True)
class Element:
    """A materialized element: tag, attributes and content (elements and text)."""

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: tuple[Element | str, ...] = ()

    @property
    def classes(self) -> list[str]:
        return self.attributes.get("class", "").split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def iter_elements(self) -> Iterator[Element]:
        """Depth-first, document-order walk over descendant elements."""
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter_elements()


@dataclass(frozen=True, slots=True)
class MarkupEvent:
    """An element-open event."""

    tag: str
    attributes: dict[str, str]
    offset: int

    def has_class(self, name: str) -> bool:
        return name in self.attributes.get("class", "").split()


def _attributes(tag: Tag) -> dict[str, str]:
    # bs4 splits multi-valued attributes (class, rel, ...) into lists
    return {
        name: " ".join(value) if isinstance(value, list) else str(value)
        for name, value in tag.attrs.items()
    }


def _materialize(tag: Tag) -> Element:
    children: list[Element | str] = []
    for child in tag.children:
        if isinstance(child, Tag):
            children.append(_materialize(child))
        elif isinstance(child, CData) or (
            isinstance(child, NavigableString) and not isinstance(child, PreformattedString)
        ):
            children.append(str(child))
        # comments, doctypes and processing instructions carry no text
    return Element(tag=tag.name, attributes=_attributes(tag), children=tuple(children))


def parse_fragment(markup: str) -> Element:
    """Parse an HTML fragment into an Element rooted at a synthetic ``#fragment``."""
    soup = BeautifulSoup(markup, _PARSER)
    children: list[Element | str] = []
    # html5lib wraps the fragment in html/head/body
    for part in (soup.head, soup.body):
        if part is not None:
            children.extend(_materialize(part).children)
    return Element(tag="#fragment", attributes={}, children=tuple(children))


class EventStream:
    """Element-open events of one document, with on-demand subtree parsing."""

    def __init__(self, text: str, path: Path | str | None = None) -> None:
        self.text = text
        self.path = str(path) if path is not None else None
        self._soup = BeautifulSoup(text, _PARSER)
        self._folded = text.translate(_ASCII_FOLD)
        self._line_starts = [0] + [m.end() for m in _LINE_BREAK_RE.finditer(text)]
        self._current: Tag | None = None
        self._consumed = False

    def _offset(self, tag: Tag) -> int | None:
        """Position of the tag's ``<``, or None for an implied element.

        html5lib records where the start tag ends; the start is the last
        ``<name`` at or before that point.
        """
        line = tag.sourceline
        column = tag.sourcepos
        if line is None or column is None or line > len(self._line_starts):
            return None
        end = self._line_starts[line - 1] + column
        needle = "<" + tag.name.lower()
        start = self._folded.rfind(needle, 0, end + 1)
        while start >= 0:
            following = self._folded[start + len(needle) : start + len(needle) + 1]
            if not following or following in _TAG_NAME_END:
                return start
            start = self._folded.rfind(needle, 0, start)
        return None

    def __iter__(self) -> Iterator[MarkupEvent]:
        stack: list[Tag] = [c for c in reversed(list(self._soup.children)) if isinstance(c, Tag)]
        while stack:
            node = stack.pop()
            offset = self._offset(node)
            self._current = node
            self._consumed = False
            if offset is not None:
                yield MarkupEvent(node.name, _attributes(node), offset)
            if not self._consumed:
                stack.extend(c for c in reversed(list(node.children)) if isinstance(c, Tag))
        self._current = None

    def parse_subtree(self) -> Element:
        """Materialize the element of the current event and skip its descendants."""
        if self._current is None:
            raise RuntimeError("parse_subtree() called outside of an element-open event")
        self._consumed = True
        return _materialize(self._current)


def decode(data: bytes, encoding: str = "utf-8") -> str:
    """Decode source bytes; undecodable bytes become U+FFFD one-for-one."""
    return data.decode(encoding, errors="replace")


def open_document(path: Path, *, encoding: str = "utf-8") -> EventStream:
    """Read and parse one manual page.

    Raises:
        MarkupError: The file cannot be read or the encoding is unknown.
    """
    try:
        data = path.read_bytes()
        text = decode(data, encoding)
    except (OSError, LookupError) as e:
        raise MarkupError.unreadable(str(path), str(e)) from e
    logger.debug("document_opened", path=str(path), chars=len(text))
    return EventStream(text, path)
