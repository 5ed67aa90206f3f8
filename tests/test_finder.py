import pytest

from cellosaurus.details import primary_accession
from cellosaurus.filter import cell_lines_filter
from cellosaurus.finder import cell_line_find_all, cell_line_find_first


def test_scenario_free_text(scenario):
    assert cell_line_find_all(scenario, "0002") == [scenario[1]]


def test_find_all_in_document_order(cellosaurus):
    found = cell_line_find_all(cellosaurus, "Homo sapiens")
    assert [primary_accession(c) for c in found] == ["CVCL_0001", "CVCL_0002", "CVCL_0004"]


def test_find_all_or_terms(cellosaurus):
    found = cell_line_find_all(cellosaurus, ["Hybridoma", "mESC", "CD4"])
    assert [primary_accession(c) for c in found] == ["CVCL_0003", "CVCL_A123"]


def test_record_matching_several_terms_is_found_once(cellosaurus, cell_lines):
    """CVCL_A123 contains both 'Mus' and 'Rattus' but is listed a single time."""
    expected = ["CVCL_0003", "CVCL_A123"]
    assert [primary_accession(c) for c in cell_line_find_all(cellosaurus, ["Mus", "Rattus"])] == expected
    assert [primary_accession(c) for c in cell_line_find_all(cell_lines, ["Mus", "Rattus"])] == expected


def test_search_from_cell_line_list_element(cellosaurus):
    cell_line_list = cellosaurus.getroot().find("cell-line-list")
    found = cell_line_find_all(cell_line_list, "Homo sapiens")
    assert [primary_accession(c) for c in found] == ["CVCL_0001", "CVCL_0002", "CVCL_0004"]
    assert primary_accession(cell_line_find_first(cell_line_list, "Rattus")) == "CVCL_A123"


def test_attribute_values_are_not_searched(cellosaurus):
    """'Stem cell' only appears in a category attribute."""
    assert cell_line_find_all(cellosaurus, "Stem cell") == []
    # CVCL_0002 also appears in CVCL_0004's derived-from accession attribute
    found = cell_line_find_all(cellosaurus, "CVCL_0002")
    assert [primary_accession(c) for c in found] == ["CVCL_0002"]


def test_find_is_case_sensitive(cellosaurus):
    assert cell_line_find_all(cellosaurus, "homo sapiens") == []


def test_find_first(cellosaurus):
    assert primary_accession(cell_line_find_first(cellosaurus, "leukemia")) == "CVCL_0001"
    assert cell_line_find_first(cellosaurus, "no such text") is None


def test_find_within_a_collection(cell_lines):
    mouse = cell_lines_filter(cell_lines, "species", "Mus musculus")
    found = cell_line_find_all(mouse, "CD4")
    assert [primary_accession(c) for c in found] == ["CVCL_A123"]
    assert cell_line_find_first(list(reversed(cell_lines)), "HL-60") is cell_lines[3]


def test_collection_and_document_agree(cellosaurus, cell_lines):
    assert cell_line_find_all(cellosaurus, "HL") == cell_line_find_all(cell_lines, "HL")


def test_quotes_in_search_text(cellosaurus):
    found = cell_line_find_all(cellosaurus, "O'Brien's")
    assert [primary_accession(c) for c in found] == ["CVCL_0002"]


def test_empty_search_terms_raise(cellosaurus):
    with pytest.raises(ValueError):
        cell_line_find_all(cellosaurus, [])
