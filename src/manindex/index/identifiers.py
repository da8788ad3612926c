"""Identifier grammar for anchor tokens.

Anchors in the manual carry the documented object as text, e.g.
``append/3``, ``phrase//2``, ``lists:append/3``, ``f(atan/2)`` or
``c(PL_unify)``. ``parse_identifier`` turns such a token into a
documentation object; anything else raises ``IdentifierParseError``.
"""

from __future__ import annotations

import re

from manindex.core.errors import IdentifierParseError
from manindex.index.models import (
    Callable,
    CReference,
    DcgCallable,
    DocumentationObject,
    FunctionLike,
    QualifiedCallable,
    Section,
)

_QUALIFIED_RE = re.compile(r"([A-Za-z_$][\w$]*):(.+)", re.DOTALL)
# a name ending in "/" belongs to the operator: ///2 is the callable //
_DCG_RE = re.compile(r"(\S*[^\s/])//(\d+)")
_CALLABLE_RE = re.compile(r"(\S+)/(\d+)")
_FUNCTION_RE = re.compile(r"f\((\S+)/(\d+)\)")
_C_REF_RE = re.compile(r"c\((\S+)\)")


def _parse_callable(token: str) -> Callable | DcgCallable | None:
    # '//' first: every Name//Arity also reads as (Name/)/Arity
    if m := _DCG_RE.fullmatch(token):
        return DcgCallable(m.group(1), int(m.group(2)))
    if m := _CALLABLE_RE.fullmatch(token):
        return Callable(m.group(1), int(m.group(2)))
    return None


def parse_identifier(token: str) -> DocumentationObject:
    """Parse an anchor token into a documentation object.

    Forms are tried in order: ``Module:Rest``, ``Name//Arity``,
    ``Name/Arity``, ``f(Name/Arity)``, ``c(Name)``.

    Raises:
        IdentifierParseError: The token matches none of the forms.
    """
    if m := _QUALIFIED_RE.fullmatch(token):
        inner = _parse_callable(m.group(2))
        if inner is not None:
            return QualifiedCallable(m.group(1), inner)
    callable_ = _parse_callable(token)
    if callable_ is not None:
        return callable_
    if m := _FUNCTION_RE.fullmatch(token):
        return FunctionLike(m.group(1), int(m.group(2)))
    if m := _C_REF_RE.fullmatch(token):
        return CReference(m.group(1))
    raise IdentifierParseError.no_match(token)


def try_parse_identifier(token: str) -> DocumentationObject | None:
    """Like parse_identifier, but None instead of an exception."""
    try:
        return parse_identifier(token)
    except IdentifierParseError:
        return None


def format_identifier(obj: DocumentationObject) -> str:
    """Render an object back to its anchor spelling (sections use their label)."""
    match obj:
        case Section(label=label):
            return label
        case Callable(name=name, arity=arity):
            return f"{name}/{arity}"
        case DcgCallable(name=name, arity=arity):
            return f"{name}//{arity}"
        case QualifiedCallable(module=module, inner=inner):
            return f"{module}:{format_identifier(inner)}"
        case FunctionLike(name=name, arity=arity):
            return f"f({name}/{arity})"
        case CReference(name=name):
            return f"c({name})"
    raise TypeError(f"Not a documentation object: {obj!r}")
