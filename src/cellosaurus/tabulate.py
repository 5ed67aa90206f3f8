"""
Flatten cell-line records into a pandas DataFrame for display or export.
"""

import pandas as pd

from . import details
from .filter import CellLines, as_cell_lines

COLUMNS = ["accession", "identifier", "category", "sex", "species", "diseases"]

# multi-valued cells are joined with this separator
JOIN = "; "


def cell_lines_to_frame(cell_lines: CellLines) -> pd.DataFrame:
    """
    One row per cell-line, in the order given:
      - accession / identifier: the primary accession and recommended name
      - category / sex: None when absent
      - species / diseases: names joined with "; "
    """
    rows = []
    for cell_line in as_cell_lines(cell_lines):
        rows.append({
            "accession": details.primary_accession(cell_line),
            "identifier": details.identifier(cell_line),
            "category": details.category(cell_line),
            "sex": details.sex(cell_line),
            "species": JOIN.join(term.name for term in details.species(cell_line)),
            "diseases": JOIN.join(term.name for term in details.diseases(cell_line)),
        })
    return pd.DataFrame(rows, columns=COLUMNS)
