from cellosaurus.tabulate import COLUMNS, cell_lines_to_frame


def test_frame_rows_follow_input_order(cell_lines):
    frame = cell_lines_to_frame(cell_lines)
    assert list(frame.columns) == COLUMNS
    assert list(frame["accession"]) == ["CVCL_0001", "CVCL_0002", "CVCL_0003", "CVCL_0004", "CVCL_A123"]


def test_multi_valued_cells_are_joined(cell_lines):
    frame = cell_lines_to_frame(cell_lines[4:])
    assert frame.loc[0, "species"] == "Mus musculus; Rattus norvegicus"
    assert frame.loc[0, "diseases"] == ""


def test_absent_sex_stays_missing(cell_lines):
    frame = cell_lines_to_frame([cell_lines[2]])
    assert frame.loc[0, "sex"] is None


def test_empty_collection_gives_empty_frame():
    frame = cell_lines_to_frame([])
    assert frame.empty
    assert list(frame.columns) == COLUMNS
