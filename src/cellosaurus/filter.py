"""
Filter engine: narrow a collection of cell-line records with a compiled query.

Terms inside one filter are combined with OR. To combine criteria with AND,
apply a second filter to the result of the first; `cell_lines_filter_all` does
exactly that for a sequence of specs.
"""

import logging
import typing

from lxml import etree

from .loader import cell_lines_all
from .query import MatchMode, QuerySpec, compile_query

logger = logging.getLogger(__name__)

CellLines = typing.Union[etree._ElementTree, etree._Element, typing.Iterable[etree._Element]]


def as_cell_lines(cell_lines: CellLines) -> list[etree._Element]:
    """
    Normalize the accepted inputs into a list of cell-line elements:
      - a parsed document (or its root) expands to every record
      - a single cell-line element becomes a one-item list
      - any other iterable is taken as-is, in order
    """
    if isinstance(cell_lines, etree._ElementTree):
        return cell_lines_all(cell_lines)
    if isinstance(cell_lines, etree._Element):
        if cell_lines.tag == "cell-line":
            return [cell_lines]
        return cell_lines_all(cell_lines)
    return list(cell_lines)


def cell_lines_filter(
    cell_lines: CellLines,
    filter_by: typing.Union[str, QuerySpec],
    filter_term: typing.Union[str, typing.Sequence[str], None] = None,
    filter_type: typing.Union[str, MatchMode, None] = None,
) -> list[etree._Element]:
    """
    Keep the cell-lines that match the filter criteria.

    Either pass a ready QuerySpec as `filter_by`, or the field name with the
    term(s) and match mode (default 'equals'). Multiple terms are applied as
    OR; terms are case-sensitive.

    Returns a new list holding the matching input elements in input order.
    An empty list means nothing matched.

    Raises:
        UnsupportedField: if the field is not one of query.FIELDS.
        ValueError: if a QuerySpec is combined with filter_term or filter_type.
    """
    if isinstance(filter_by, QuerySpec):
        if filter_term is not None or filter_type is not None:
            raise ValueError("filter_term and filter_type cannot be combined with a QuerySpec")
        spec = filter_by
    else:
        if filter_term is None:
            raise ValueError(f"filter_term is required when filtering on {filter_by!r}")
        mode = MatchMode.EQUALS if filter_type is None else filter_type
        spec = QuerySpec(field=filter_by, terms=filter_term, mode=mode)

    compiled = compile_query(spec)
    candidates = as_cell_lines(cell_lines)
    matched = [cell_line for cell_line in candidates if compiled.matches(cell_line)]

    logger.debug(
        f"Filter {spec.field} {spec.mode.value} {list(spec.terms)!r}: "
        f"{len(matched)} of {len(candidates)} cell-lines kept ({compiled.expression})"
    )
    return matched


def cell_lines_filter_all(cell_lines: CellLines, specs: typing.Iterable[QuerySpec]) -> list[etree._Element]:
    """
    Apply each spec in turn to the output of the previous one (logical AND).
    """
    # compile everything first so a bad field fails before any filtering runs
    specs = list(specs)
    for spec in specs:
        compile_query(spec)

    working = as_cell_lines(cell_lines)
    for spec in specs:
        if not working:
            break
        working = cell_lines_filter(working, spec)
    return working
