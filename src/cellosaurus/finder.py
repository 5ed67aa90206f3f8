"""
Free-text search across cell-line records.

A record is found when any text node anywhere inside it contains one of the
search terms (case-sensitive substring, terms combined with OR). Attribute
values are not searched. A full scan of the real dataset touches every text
node of every record; callers with a narrower working set should pass it in
instead of the whole document.
"""

import logging
import typing

from lxml import etree

from .filter import CellLines, as_cell_lines
from .loader import CELL_LINE_PATH
from .query import cached_xpath

logger = logging.getLogger(__name__)


def _bind(text: typing.Union[str, typing.Sequence[str]]) -> dict[str, str]:
    terms = (text,) if isinstance(text, str) else tuple(text)
    if not terms:
        raise ValueError("At least one search term is required")
    for term in terms:
        if not isinstance(term, str):
            raise TypeError(f"Search terms must be strings, got {type(term).__name__}")
    return {f"t{i}": term for i, term in enumerate(terms)}


def _document_root(source: CellLines) -> typing.Optional[etree._Element]:
    # a whole document is searched with one XPath; anything else record by record
    if isinstance(source, etree._ElementTree):
        return source.getroot()
    if isinstance(source, etree._Element) and source.tag != "cell-line":
        return source
    return None


def _search(source: CellLines, text: typing.Union[str, typing.Sequence[str]], first: bool) -> list[etree._Element]:
    variables = _bind(text)
    predicate = ".//text()[" + " or ".join(f"contains(., ${name})" for name in variables) + "]"

    root = _document_root(source)
    if root is not None:
        path = "cell-line" if root.tag == "cell-line-list" else CELL_LINE_PATH
        expression = f"{path}[{predicate}]"
        if first:
            expression += "[1]"
        return cached_xpath(expression)(root, **variables)

    matches = cached_xpath(f"boolean({predicate})")
    found = []
    for cell_line in as_cell_lines(source):
        if matches(cell_line, **variables):
            found.append(cell_line)
            if first:
                break
    return found


def cell_line_find_all(source: CellLines, text: typing.Union[str, typing.Sequence[str]]) -> list[etree._Element]:
    """
    Find all cell-lines containing any of `text` in their content.

    `source` is either the parsed dataset (searched in document order) or a
    collection of cell-line elements (searched in the given order).

    Example:
        cellosaurus = read_cellosaurus_xml("data/cellosaurus.xml")
        human = cell_line_find_all(cellosaurus, "sapiens")
    """
    found = _search(source, text, first=False)
    logger.debug(f"Free-text search for {text!r} found {len(found)} cell-lines")
    return found


def cell_line_find_first(source: CellLines, text: typing.Union[str, typing.Sequence[str]]) -> typing.Optional[etree._Element]:
    """Find the first cell-line containing any of `text`, or None."""
    found = _search(source, text, first=True)
    return found[0] if found else None
