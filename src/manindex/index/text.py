"""Plain text and one-sentence summaries from materialized markup."""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Iterator
from functools import lru_cache

from manindex.index.markup import Element

_SENTENCE_END_NAMES = ("FULL STOP", "QUESTION MARK", "EXCLAMATION MARK")


@lru_cache(maxsize=1024)
def is_period(ch: str) -> bool:
    """True for sentence-ending punctuation: '.', '!', '?' and their Unicode kin."""
    if unicodedata.category(ch) != "Po":
        return False
    name = unicodedata.name(ch, "")
    return not name.startswith("INVERTED") and any(part in name for part in _SENTENCE_END_NAMES)


def iter_cdata(tree: Element | str | Iterable[Element | str]) -> Iterator[str]:
    """Text leaves in document order; elements are transparent."""
    if isinstance(tree, str):
        yield tree
    elif isinstance(tree, Element):
        for child in tree.children:
            yield from iter_cdata(child)
    else:
        for node in tree:
            yield from iter_cdata(node)


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to one space and trim both ends."""
    return " ".join(text.split())


def flatten(tree: Element | str | Iterable[Element | str]) -> str:
    """All text of a tree, whitespace-normalized."""
    return normalize_whitespace("".join(iter_cdata(tree)))


def sentence_end(text: str) -> int | None:
    """Index just past the first sentence boundary in raw text, or None.

    A boundary is a sentence-ending character followed by whitespace or the
    end of the text, that is not itself preceded by another one. An ellipsis
    ("...") followed by more text therefore does not end the sentence.
    """
    for i, ch in enumerate(text):
        if not is_period(ch):
            continue
        if i + 1 < len(text) and not text[i + 1].isspace():
            continue
        if i > 0 and is_period(text[i - 1]):
            continue
        return i + 1
    return None


def summarize(tree: Element | str | Iterable[Element | str]) -> str:
    """First sentence of a tree's text, whitespace-normalized.

    The boundary is searched in the raw character stream across text leaves.
    Without a boundary the whole text is the summary.
    """
    raw = "".join(iter_cdata(tree))
    end = sentence_end(raw)
    if end is not None:
        raw = raw[:end]
    return normalize_whitespace(raw)
