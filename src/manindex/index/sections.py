"""Section number, title and label recovery from heading markup.

latex2html-style headings mark their parts explicitly::

    <h2 id="sec:streams"><a name="sec:4.17">
      <span class="sec-nr">4.17</span> <span class="sec-title">Streams</span>
    </a></h2>

Other headings only carry text such as ``"4.17 Streams"`` or
``"A. Library index"``, from which the number is peeled heuristically.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from manindex.core.diagnostics import Diagnostics
from manindex.index.markup import Element
from manindex.index.text import flatten

SECTION_NUMBER_CLASSES = frozenset({"sec-nr", "section-number"})
SECTION_TITLE_CLASSES = frozenset({"sec-title", "section-title"})

BIBLIOGRAPHY_TITLE = "Bibliography"
BIBLIOGRAPHY_ID = "sec:bibliography"
SYNTHETIC_ID_PREFIX = "sec:"

HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4}


@dataclass(frozen=True, slots=True)
class ParsedSection:
    level: int
    number: str
    title: str
    id: str


def heading_level(tag: str) -> int | None:
    """Rank of a heading tag (1 is most significant), None if not a heading."""
    return HEADING_LEVELS.get(tag.lower())


def _marked(node: Element | str, classes: frozenset[str]) -> bool:
    return isinstance(node, Element) and not classes.isdisjoint(node.classes)


def _structured_pair(children: Iterable[Element | str]) -> tuple[Element, Element] | None:
    nodes = list(children)
    for i, node in enumerate(nodes):
        if not _marked(node, SECTION_NUMBER_CLASSES):
            continue
        for later in nodes[i + 1 :]:
            if _marked(later, SECTION_TITLE_CLASSES):
                return node, later  # type: ignore[return-value]
            if _marked(later, SECTION_NUMBER_CLASSES):
                break
    return None


def _find_structured(tree: Element) -> tuple[Element, Element] | None:
    if pair := _structured_pair(tree.children):
        return pair
    for element in tree.iter_elements():
        if pair := _structured_pair(element.children):
            return pair
    return None


def section_number(title: str) -> tuple[str, str]:
    """Split ``"2.3 Streams"`` into ``("2.3", "Streams")``.

    A number starts with a digit, or is an appendix letter such as ``"A."``.
    Titles without a number (or without text after it) give ``("", title)``.
    """
    if title and (title[0].isdigit() or (title[0].isupper() and title[1:2] == ".")):
        space = title.find(" ")
        if space > 0:
            return title[:space], title[space + 1 :]
    return "", title


def dom_section(tree: Element) -> tuple[str, str]:
    """(number, title) of a heading subtree."""
    if pair := _find_structured(tree):
        number, title = pair
        return flatten(number), flatten(title)
    return section_number(flatten(tree))


def section_id(
    attributes: Mapping[str, str],
    title: str,
    file: str,
    diagnostics: Diagnostics | None = None,
) -> str:
    """Label of a section: its ``id`` attribute, or one made from the title."""
    if explicit := attributes.get("id"):
        return explicit
    if title == BIBLIOGRAPHY_TITLE:
        return BIBLIOGRAPHY_ID
    if diagnostics is not None:
        diagnostics.warning("no_section_id", file=file, title=title)
    return SYNTHETIC_ID_PREFIX + "_".join(title.split(" "))


def parse_section(
    tree: Element,
    attributes: Mapping[str, str],
    *,
    file: str = "",
    diagnostics: Diagnostics | None = None,
) -> ParsedSection:
    """Recover level, number, title and label from a heading element."""
    level = heading_level(tree.tag)
    if level is None:
        raise ValueError(f"Not a section heading: <{tree.tag}>")
    number, title = dom_section(tree)
    return ParsedSection(
        level=level,
        number=number,
        title=title,
        id=section_id(attributes, title, file, diagnostics),
    )
