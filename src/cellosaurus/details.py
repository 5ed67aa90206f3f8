"""
Read details out of cell-line records.

Every extractor takes either one cell-line element or a collection of them.
Single-valued extractors (`category`, `sex`, ...) return one value for an element
and a list with one value per record for a collection. List extractors
(`names`, `comments`, ...) return the concatenated items in record order.

Missing attributes come back as None: most cell-lines have no recorded sex, and
that is data, not an error.
"""

import typing

from collections import namedtuple

from lxml import etree

from .filter import as_cell_lines
from .query import cached_xpath

# Categories used on <comment category="..."> in the Cellosaurus dataset
COMMENT_CATEGORIES = frozenset({
    "Anecdotal",
    "Biotechnology",
    "Breed/subspecies",
    "Caution",
    "Characteristics",
    "Derived from metastatic site",
    "Derived from sampling site",
    "Discontinued",
    "Doubling time",
    "From",
    "Group",
    "Knockout cell",
    "Microsatellite instability",
    "Miscellaneous",
    "Misspelling",
    "Monoclonal antibody target",
    "Omics",
    "Part of",
    "Population",
    "Problematic cell line",
    "Registration",
    "Selected for resistance to",
    "Sequence variation",
    "Transfected with",
    "Transformant",
})

ACCESSION_TYPES = frozenset({"primary", "secondary"})
NAME_TYPES = frozenset({"identifier", "synonym"})

# A controlled-vocabulary reference, e.g. a species, disease or parent cell-line
CvTerm = namedtuple("CvTerm", ["name", "accession", "terminology"])

Tags = typing.Union[str, typing.Iterable[str], None]


def _is_single(cell_line) -> bool:
    return isinstance(cell_line, etree._Element) and cell_line.tag == "cell-line"


def _attribute(cell_line, name: str):
    if _is_single(cell_line):
        return cell_line.get(name)
    return [element.get(name) for element in as_cell_lines(cell_line)]


def _list_items(
    cell_line,
    list_element: str,
    item_element: str,
    attrib_name: typing.Optional[str] = None,
    attrib: Tags = None,
) -> list[etree._Element]:
    """
    Collect the <item_element> children of <list_element> for each record,
    optionally keeping only items whose `attrib_name` equals one of `attrib`.
    """
    expression = f"{list_element}/{item_element}"
    variables: dict[str, str] = {}
    if attrib is not None:
        tags = (attrib,) if isinstance(attrib, str) else tuple(attrib)
        variables = {f"t{i}": tag for i, tag in enumerate(tags)}
        if not variables:
            return []
        expression += "[" + " or ".join(f"@{attrib_name} = ${name}" for name in variables) + "]"

    select = cached_xpath(expression)
    items: list[etree._Element] = []
    for element in as_cell_lines(cell_line):
        items.extend(select(element, **variables))
    return items


def _texts(items: typing.Iterable[etree._Element]) -> list[str]:
    return [item.text or "" for item in items]


def _cv_terms(items: typing.Iterable[etree._Element]) -> list[CvTerm]:
    return [CvTerm(item.text or "", item.get("accession"), item.get("terminology")) for item in items]


def category(cell_line):
    """The category attribute, e.g. 'Cancer cell line'; None when absent."""
    return _attribute(cell_line, "category")


def sex(cell_line):
    """The sex attribute, e.g. 'Female'; None when no sex is recorded."""
    return _attribute(cell_line, "sex")


def accessions(cell_line, type: Tags = None) -> list[str]:
    """
    Accession codes. `type` restricts to 'primary' and/or 'secondary'.
    """
    return _texts(_list_items(cell_line, "accession-list", "accession", "type", type))


def names(cell_line, type: Tags = None) -> list[str]:
    """
    Names of the cell-line. `type` restricts to 'identifier' and/or 'synonym';
    with no `type`, both kinds are returned in document order.
    """
    return _texts(_list_items(cell_line, "name-list", "name", "type", type))


def comments(cell_line, category: Tags = None) -> list[str]:
    """
    Comment texts. `category` restricts to one or more of COMMENT_CATEGORIES.
    """
    return _texts(_list_items(cell_line, "comment-list", "comment", "category", category))


def web_pages(cell_line) -> list[str]:
    return _texts(_list_items(cell_line, "web-page-list", "url"))


def references(cell_line) -> list[str]:
    """
    The resource-internal-ref of each reference, e.g. 'PubMed=1234567'.
    These point into the publication-list of the dataset.
    """
    return [item.get("resource-internal-ref") for item in _list_items(cell_line, "reference-list", "reference")]


def identifier(cell_line):
    """The identifier (recommended) name; None when the record has none."""
    if not _is_single(cell_line):
        return [identifier(element) for element in as_cell_lines(cell_line)]
    found = names(cell_line, type="identifier")
    return found[0] if found else None


def primary_accession(cell_line):
    if not _is_single(cell_line):
        return [primary_accession(element) for element in as_cell_lines(cell_line)]
    found = accessions(cell_line, type="primary")
    return found[0] if found else None


def species(cell_line) -> list[CvTerm]:
    """Species of origin, with NCBI taxonomy accessions."""
    return _cv_terms(_list_items(cell_line, "species-list", "*"))


def diseases(cell_line) -> list[CvTerm]:
    """Diseases, with NCIt/ORDO accessions."""
    return _cv_terms(_list_items(cell_line, "disease-list", "*"))


def derived_from(cell_line) -> list[CvTerm]:
    """Parent cell-line(s) this cell-line was derived from."""
    return _cv_terms(_list_items(cell_line, "derived-from", "*"))


def same_origin_as(cell_line) -> list[CvTerm]:
    """Cell-lines originating from the same individual."""
    return _cv_terms(_list_items(cell_line, "same-origin-as", "*"))
