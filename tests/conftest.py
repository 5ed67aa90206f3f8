import os
import pytest

from lxml import etree

from cellosaurus.loader import cell_lines_all, read_cellosaurus_xml


SCENARIO_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<Cellosaurus>
  <cell-line-list>
    <cell-line category="Cancer cell line" sex="Male">
      <accession-list><accession type="primary">CVCL_0001</accession></accession-list>
    </cell-line>
    <cell-line category="Cancer cell line" sex="Female">
      <accession-list><accession type="primary">CVCL_0002</accession></accession-list>
    </cell-line>
    <cell-line category="Stem cell">
      <accession-list><accession type="primary">CVCL_0003</accession></accession-list>
    </cell-line>
  </cell-line-list>
</Cellosaurus>
"""


@pytest.fixture(scope="session")
def fpath_test_dir() -> str:
    """
    Path to `tests/data/` folder.
    """
    return os.path.join(os.path.dirname(__file__), "data")


@pytest.fixture(scope="session")
def fpath_cellosaurus(fpath_test_dir: str) -> str:
    return os.path.join(fpath_test_dir, "cellosaurus_sample.xml")


@pytest.fixture(scope="session")
def cellosaurus(fpath_cellosaurus: str) -> etree._ElementTree:
    """
    The sample dataset: five cell-lines covering every filterable field.
    Nothing in the package mutates the tree, so one copy serves the whole session.
    """
    return read_cellosaurus_xml(fpath_cellosaurus)


@pytest.fixture(scope="session")
def cell_lines(cellosaurus) -> list:
    return cell_lines_all(cellosaurus)


@pytest.fixture(scope="session")
def scenario() -> list:
    """
    Three cell-lines: R1 (Male, cancer), R2 (Female, cancer), R3 (no sex, stem cell).
    """
    document = etree.ElementTree(etree.fromstring(SCENARIO_XML))
    return cell_lines_all(document)
