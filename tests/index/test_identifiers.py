"""Tests for the anchor identifier grammar."""

from __future__ import annotations

import pytest

from manindex.core.errors import IdentifierParseError
from manindex.index.identifiers import format_identifier, parse_identifier, try_parse_identifier
from manindex.index.models import (
    Callable,
    CReference,
    DcgCallable,
    FunctionLike,
    QualifiedCallable,
    Section,
)


class TestParseIdentifier:
    """parse_identifier() surface forms."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("append/3", Callable("append", 3)),
            ("phrase//2", DcgCallable("phrase", 2)),
            ("lists:append/3", QualifiedCallable("lists", Callable("append", 3))),
            ("dcg_basics:blanks//0", QualifiedCallable("dcg_basics", DcgCallable("blanks", 0))),
            ("f(atan/2)", FunctionLike("atan", 2)),
            ("c(PL_unify)", CReference("PL_unify")),
            ("=../2", Callable("=..", 2)),
            ("//2", Callable("/", 2)),
            ("///2", Callable("//", 2)),
            ("lists:///2", QualifiedCallable("lists", Callable("//", 2))),
        ],
    )
    def test_recognized_forms(self, token: str, expected: object) -> None:
        """Each documented spelling maps to its object."""
        assert parse_identifier(token) == expected

    def test_dcg_wins_over_callable(self) -> None:
        """``name//N`` is a DCG callable, never ``name/`` with arity N."""
        obj = parse_identifier("phrase//3")
        assert isinstance(obj, DcgCallable)

    @pytest.mark.parametrize(
        "token",
        ["not a thing", "append", "append/x", "lists:", "a:b", "f(atan)", "c()", "sec:lists", ""],
    )
    def test_rejects_other_tokens(self, token: str) -> None:
        """Anything else fails with IdentifierParseError."""
        with pytest.raises(IdentifierParseError) as exc_info:
            parse_identifier(token)
        assert exc_info.value.details["token"] == token

    def test_try_parse_returns_none(self) -> None:
        """The non-raising variant reports failure as None."""
        assert try_parse_identifier("not a thing") is None
        assert try_parse_identifier("member/2") == Callable("member", 2)


class TestFormatIdentifier:
    """format_identifier() spelling."""

    @pytest.mark.parametrize(
        "token",
        ["append/3", "phrase//2", "///2", "lists:append/3", "f(atan/2)", "c(PL_unify)"],
    )
    def test_spelling_matches_anchor(self, token: str) -> None:
        """Formatting a parsed token reproduces it."""
        assert format_identifier(parse_identifier(token)) == token

    def test_section_uses_label(self) -> None:
        """Sections are named by their label."""
        section = Section(2, "4.17", "sec:IO", "/doc/Manual/IO.html")
        assert format_identifier(section) == "sec:IO"

    def test_rejects_other_values(self) -> None:
        """Only documentation objects can be formatted."""
        with pytest.raises(TypeError):
            format_identifier("append/3")  # type: ignore[arg-type]
