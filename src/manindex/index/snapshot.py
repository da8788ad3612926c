"""Snapshot codec: the persisted form of the index.

One fact per line, Prolog term syntax::

    % Generated manual index.
    % Do not edit.
    record('append'/3,"Append two lists.",'/doc/Manual/lists.html',manual,4711).
    record(section(2,'4.17','sec:streams','/doc/Manual/IO.html'),"Streams",...).

Atoms are always quoted, so the bare names ``section``, ``f``, ``c`` and the
class names never collide with documented names. Reading is strict: a line
that does not resolve to the five-field shape rejects the whole file.
"""

from __future__ import annotations

import contextlib
import os
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

import structlog

from manindex.core.errors import SnapshotError
from manindex.index.models import (
    Callable,
    CReference,
    DcgCallable,
    DocClass,
    DocumentationObject,
    FunctionLike,
    IndexRecord,
    QualifiedCallable,
    Section,
)

logger = structlog.get_logger()

HEADER = "% Generated manual index.\n% Do not edit.\n"

_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\t": "\\t", "\r": "\\r"}
_UNESCAPES = {"\\": "\\", "'": "'", '"': '"', "n": "\n", "t": "\t", "r": "\r"}
_ESCAPE_RE = re.compile(r"\\(x[0-9a-fA-F]+\\|.)")

_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<atom>'(?:[^'\\\n]|\\x[0-9a-fA-F]+\\|\\.)*')
      | (?P<string>"(?:[^"\\\n]|\\x[0-9a-fA-F]+\\|\\.)*")
      | (?P<int>[0-9]+)
      | (?P<name>[a-z][A-Za-z0-9_]*)
      | (?P<punct>//|/|:|\(|\)|,|\.)
    )
    """,
    re.VERBOSE,
)


def _quote(text: str, quote: str) -> str:
    out = []
    for ch in text:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch == quote:
            out.append("\\" + quote)
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\x{ord(ch):x}\\")
        else:
            out.append(ch)
    return quote + "".join(out) + quote


def _unquote(token: str) -> str:
    def replace(m: re.Match[str]) -> str:
        code = m.group(1)
        if code.startswith("x") and code.endswith("\\") and len(code) > 2:
            return chr(int(code[1:-1], 16))
        if code in _UNESCAPES:
            return _UNESCAPES[code]
        raise ValueError(f"unknown escape \\{code}")

    return _ESCAPE_RE.sub(replace, token[1:-1])


def _atom(text: str) -> str:
    return _quote(text, "'")


def format_object(obj: DocumentationObject) -> str:
    match obj:
        case Section(level=level, number=number, label=label, file=file):
            return f"section({level},{_atom(number)},{_atom(label)},{_atom(file)})"
        case Callable(name=name, arity=arity):
            return f"{_atom(name)}/{arity}"
        case DcgCallable(name=name, arity=arity):
            return f"{_atom(name)}//{arity}"
        case QualifiedCallable(module=module, inner=inner):
            return f"{_atom(module)}:{format_object(inner)}"
        case FunctionLike(name=name, arity=arity):
            return f"f({_atom(name)}/{arity})"
        case CReference(name=name):
            return f"c({_atom(name)})"
    raise TypeError(f"Not a documentation object: {obj!r}")


def format_record(record: IndexRecord) -> str:
    """One snapshot line (without newline)."""
    summary = _quote(record.summary, '"')
    return (
        f"record({format_object(record.obj)},{summary},{_atom(record.file)},"
        f"{record.doc_class.value},{record.offset})."
    )


class _Reader:
    """Recursive-descent reader for one record line."""

    def __init__(self, text: str) -> None:
        self.tokens: list[tuple[str, str]] = []
        pos = 0
        stripped = text.rstrip()
        while pos < len(stripped):
            m = _TOKEN_RE.match(stripped, pos)
            if m is None or m.end() == pos:
                raise ValueError(f"unexpected character at column {pos + 1}")
            kind = m.lastgroup
            assert kind is not None
            self.tokens.append((kind, m.group(kind)))
            pos = m.end()
        self.pos = 0

    def _next(self) -> tuple[str, str]:
        if self.pos >= len(self.tokens):
            raise ValueError("unexpected end of line")
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _peek(self, offset: int = 0) -> tuple[str, str] | None:
        index = self.pos + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def _expect(self, kind: str, value: str | None = None) -> str:
        got_kind, got = self._next()
        if got_kind != kind or (value is not None and got != value):
            raise ValueError(f"expected {value or kind}, got {got!r}")
        return got

    def _atom(self) -> str:
        return _unquote(self._expect("atom"))

    def _int(self) -> int:
        return int(self._expect("int"))

    def _callable(self) -> Callable | DcgCallable:
        name = self._atom()
        op = self._expect("punct")
        if op == "//":
            return DcgCallable(name, self._int())
        if op == "/":
            return Callable(name, self._int())
        raise ValueError(f"expected / or //, got {op!r}")

    def _object(self) -> DocumentationObject:
        token = self._peek()
        if token == ("name", "section"):
            self._next()
            self._expect("punct", "(")
            level = self._int()
            if not 0 <= level <= 4:
                raise ValueError(f"section level out of range: {level}")
            self._expect("punct", ",")
            number = self._atom()
            self._expect("punct", ",")
            label = self._atom()
            self._expect("punct", ",")
            file = self._atom()
            self._expect("punct", ")")
            return Section(level, number, label, file)
        if token == ("name", "f"):
            self._next()
            self._expect("punct", "(")
            name = self._atom()
            self._expect("punct", "/")
            arity = self._int()
            self._expect("punct", ")")
            return FunctionLike(name, arity)
        if token == ("name", "c"):
            self._next()
            self._expect("punct", "(")
            name = self._atom()
            self._expect("punct", ")")
            return CReference(name)
        if self._peek(1) == ("punct", ":"):
            module = self._atom()
            self._next()
            return QualifiedCallable(module, self._callable())
        return self._callable()

    def record(self) -> IndexRecord:
        self._expect("name", "record")
        self._expect("punct", "(")
        obj = self._object()
        self._expect("punct", ",")
        summary = _unquote(self._expect("string"))
        self._expect("punct", ",")
        file = self._atom()
        self._expect("punct", ",")
        doc_class = DocClass(self._expect("name"))
        self._expect("punct", ",")
        offset = self._int()
        self._expect("punct", ")")
        self._expect("punct", ".")
        if self.pos != len(self.tokens):
            raise ValueError("trailing tokens after record")
        return IndexRecord(obj=obj, summary=summary, file=file, doc_class=doc_class, offset=offset)


def parse_record(text: str, line_no: int = 1) -> IndexRecord:
    """Parse one snapshot line into a fully bound record.

    Raises:
        SnapshotError: The line is not a complete ``record/5`` fact.
    """
    try:
        return _Reader(text).record()
    except ValueError as e:
        raise SnapshotError.invalid_record(line_no, text, str(e)) from e


def iter_records(lines: Iterable[str]) -> Iterator[IndexRecord]:
    """Parse snapshot lines, skipping blank and ``%`` comment lines."""
    for line_no, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("%"):
            continue
        yield parse_record(stripped, line_no)


def read_snapshot(path: Path) -> list[IndexRecord]:
    """Read every record of a snapshot; any invalid line rejects the file.

    Raises:
        SnapshotError: Unreadable file or invalid record.
    """
    try:
        with path.open(encoding="utf-8") as f:
            records = list(iter_records(f))
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError.read_failed(str(path), str(e)) from e
    logger.debug("snapshot_read", path=str(path), records=len(records))
    return records


def write_snapshot(path: Path, records: Iterable[IndexRecord]) -> int:
    """Write a snapshot atomically; returns the number of records written.

    Raises:
        SnapshotError: The file cannot be written.
    """
    tmp = path.with_name(path.name + ".tmp")
    count = 0
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("w", encoding="utf-8", newline="\n") as f:
            f.write(HEADER)
            for record in records:
                f.write(format_record(record))
                f.write("\n")
                count += 1
        os.replace(tmp, path)
    except OSError as e:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise SnapshotError.write_failed(str(path), str(e)) from e
    logger.debug("snapshot_written", path=str(path), records=count)
    return count
