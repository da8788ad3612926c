"""Documentation objects and index records.

A documentation object is the key of an index record: the callable, C symbol
or section that a fragment of the HTML manual documents. Every variant is a
frozen dataclass, so objects compare structurally and can be hashed.

Any field of an object may be set to ``ANY`` to build a query pattern::

    Callable("append", ANY)            # append/N for every N
    QualifiedCallable(ANY, Callable("member", 2))
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Final


class _Wildcard:
    """Matches every value in a query pattern."""

    _instance: _Wildcard | None = None

    def __new__(cls) -> _Wildcard:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ANY"


ANY: Final[Any] = _Wildcard()


class DocClass(str, Enum):
    """Coarse corpus partition carried through to each record."""

    MANUAL = "manual"
    PACKAGES = "packages"
    MISC = "misc"


@dataclass(frozen=True, slots=True)
class Section:
    """A manual section. Level 0 is a whole-document title keyed by local path."""

    level: int
    number: str
    label: str
    file: str


@dataclass(frozen=True, slots=True)
class Callable:
    """``Name/Arity``"""

    name: str
    arity: int


@dataclass(frozen=True, slots=True)
class DcgCallable:
    """``Name//Arity``: a grammar rule, called with two extra arguments."""

    name: str
    arity: int


@dataclass(frozen=True, slots=True)
class QualifiedCallable:
    """``Module:Name/Arity`` or ``Module:Name//Arity``"""

    module: str
    inner: Callable | DcgCallable


@dataclass(frozen=True, slots=True)
class FunctionLike:
    """``f(Name/Arity)``: an arithmetic function."""

    name: str
    arity: int


@dataclass(frozen=True, slots=True)
class CReference:
    """``c(Name)``: a C API symbol."""

    name: str


DocumentationObject = (
    Section | Callable | DcgCallable | QualifiedCallable | FunctionLike | CReference
)

OBJECT_TYPES: Final = (Section, Callable, DcgCallable, QualifiedCallable, FunctionLike, CReference)


def matches(pattern: Any, value: Any) -> bool:
    """True if value is an instance of pattern, treating ``ANY`` fields as wildcards.

    Patterns nest: a ``QualifiedCallable`` pattern matches its inner callable
    recursively. A bare ``ANY`` (or ``None``) matches everything.
    """
    if pattern is ANY or pattern is None:
        return True
    if isinstance(pattern, OBJECT_TYPES):
        if type(pattern) is not type(value):
            return False
        return all(
            matches(getattr(pattern, f.name), getattr(value, f.name)) for f in fields(pattern)
        )
    return bool(pattern == value)


@dataclass(frozen=True, slots=True)
class IndexRecord:
    """One documented object: where it is described and how, in one sentence.

    ``offset`` is the character position, in the decoded source text, of the
    element that documents ``obj``.
    """

    obj: DocumentationObject
    summary: str
    file: str
    doc_class: DocClass
    offset: int

    @property
    def identity(self) -> tuple[str, int]:
        """(file, offset): shared by all objects documented by one block."""
        return (self.file, self.offset)
