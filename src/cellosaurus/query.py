"""
Query compiler for cell-line filters.

A query is a (field, terms, mode) triple. The field is looked up in `FIELDS`,
which says where on a `cell-line` record the value lives: either the text or an
attribute of the items inside one of the record's child lists, or an attribute
of the record itself. The compiler turns the triple into a boolean XPath 1.0
expression that is evaluated with the record as the context node.

Terms are bound as XPath variables (`$t0`, `$t1`, ...) and never pasted into the
expression text, so quotes and brackets inside a term keep their literal
meaning.
"""

from __future__ import annotations

import typing

from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from functools import lru_cache

from lxml import etree


class UnsupportedField(ValueError):
    """Raised when a query names a field the compiler has no descriptor for."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(
            f"Unsupported filter field {field!r}; expected one of: {', '.join(FIELDS)}"
        )


class MatchMode(Enum):
    """
    String relation applied between a stored value and a query term.
    All relations are case-sensitive and operate on the raw value.
    """
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts-with"

    @classmethod
    def from_label(cls, label: typing.Union[str, "MatchMode"]) -> "MatchMode":
        """
        Convert a label such as 'equals', 'Contains' or 'starts_with' into the enum.
        """
        if isinstance(label, cls):
            return label
        key = str(label).strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown match mode: {label!r}")


class Axis(Enum):
    # text or attribute of the items inside a child list
    DESCENDANT = "descendant"
    # attribute on the cell-line element itself
    ATTRIBUTE = "attribute"


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Where a filter field lives on a cell-line record.

    Attributes:
        axis: DESCENDANT for list items, ATTRIBUTE for the record's own attribute.
        element: Child list element whose items are tested (DESCENDANT only).
        match_attribute: Attribute compared against the terms; None means the item text.
        required_attribute: Optional (name, value) the item must also carry.
    """

    axis: Axis
    element: typing.Optional[str] = None
    match_attribute: typing.Optional[str] = None
    required_attribute: typing.Optional[typing.Tuple[str, str]] = None


def _items(element: str, match_attribute: typing.Optional[str] = None,
           required_attribute: typing.Optional[typing.Tuple[str, str]] = None) -> FieldDescriptor:
    return FieldDescriptor(Axis.DESCENDANT, element, match_attribute, required_attribute)


def _own(attribute: str) -> FieldDescriptor:
    return FieldDescriptor(Axis.ATTRIBUTE, match_attribute=attribute)


FIELDS: dict[str, FieldDescriptor] = {
    "accession": _items("accession-list"),
    "accession-primary": _items("accession-list", required_attribute=("type", "primary")),
    "accession-secondary": _items("accession-list", required_attribute=("type", "secondary")),
    "name": _items("name-list"),
    "name-identifier": _items("name-list", required_attribute=("type", "identifier")),
    "name-synonym": _items("name-list", required_attribute=("type", "synonym")),
    "category": _own("category"),
    "sex": _own("sex"),
    "species": _items("species-list"),
    "species-accession": _items("species-list", match_attribute="accession"),
    "comment": _items("comment-list"),
    "comment-category": _items("comment-list", match_attribute="category"),
    "same-origin-as": _items("same-origin-as"),
    "same-origin-as-accession": _items("same-origin-as", match_attribute="accession"),
    "derived-from": _items("derived-from"),
    "derived-from-accession": _items("derived-from", match_attribute="accession"),
    "disease": _items("disease-list"),
    "disease-accession": _items("disease-list", match_attribute="accession"),
}

# XPath relation per mode; {var} is replaced by the variable reference
_RELATIONS = {
    MatchMode.EQUALS: ". = {var}",
    MatchMode.CONTAINS: "contains(., {var})",
    MatchMode.STARTS_WITH: "starts-with(., {var})",
}


@dataclass(frozen=True)
class QuerySpec:
    """
    A single filter: match `field` against any of `terms` using `mode`.

    Attributes:
        field: One of the keys of FIELDS (validated when compiled).
        terms: One or more case-sensitive strings, combined with OR.
        mode: A MatchMode or its label.
    """

    field: str
    terms: typing.Tuple[str, ...]
    mode: MatchMode = MatchMode.EQUALS

    def __post_init__(self):
        terms = self.terms
        if isinstance(terms, str):
            terms = (terms,)
        terms = tuple(terms)
        if not terms:
            raise ValueError(f"At least one term is required to filter on {self.field!r}")
        for term in terms:
            if not isinstance(term, str):
                raise TypeError(f"Filter terms must be strings, got {type(term).__name__}")
        # frozen dataclass: write through object.__setattr__
        object.__setattr__(self, "terms", terms)
        object.__setattr__(self, "mode", MatchMode.from_label(self.mode))


@dataclass(frozen=True)
class CompiledQuery:
    """
    A boolean XPath expression plus the variable bindings for its terms.
    Evaluate it against a cell-line element with `matches`.
    """

    field: str
    expression: str
    variables: typing.Dict[str, str] = dataclass_field(default_factory=dict)

    def matches(self, cell_line: etree._Element) -> bool:
        return bool(cached_xpath(self.expression)(cell_line, **self.variables))


@lru_cache(maxsize=256)
def cached_xpath(expression: str) -> etree.XPath:
    return etree.XPath(expression)


def _quote(value: str) -> str:
    # only used for the fixed values in FIELDS, never for user terms
    return f"'{value}'"


def compile_query(spec: QuerySpec) -> CompiledQuery:
    """
    Translate a QuerySpec into a CompiledQuery without evaluating it.

    Raises:
        UnsupportedField: if `spec.field` has no entry in FIELDS.
    """
    try:
        descriptor = FIELDS[spec.field]
    except KeyError:
        raise UnsupportedField(spec.field) from None

    relation = _RELATIONS[spec.mode]
    variables = {f"t{i}": term for i, term in enumerate(spec.terms)}
    relations = " or ".join(relation.format(var=f"${name}") for name in variables)

    target = "text()" if descriptor.match_attribute is None else f"@{descriptor.match_attribute}"
    predicate = f"{target}[{relations}]"

    if descriptor.axis is Axis.ATTRIBUTE:
        expression = f"boolean({predicate})"
    else:
        if descriptor.required_attribute is not None:
            name, value = descriptor.required_attribute
            predicate = f"{predicate} and @{name} = {_quote(value)}"
        expression = f"boolean({descriptor.element}/*[{predicate}])"

    return CompiledQuery(field=spec.field, expression=expression, variables=variables)
