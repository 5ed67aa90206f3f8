"""
Document store for the Cellosaurus XML dataset.

Reads the whole dataset into an lxml tree and exposes the one selection all
filtering builds on: the ordered list of `cell-line` records.
"""

import logging
import os
import typing

from lxml import etree

logger = logging.getLogger(__name__)

# The records live under <Cellosaurus>/<cell-line-list>
CELL_LINE_PATH = "cell-line-list/cell-line"

Source = typing.Union[str, os.PathLike, typing.BinaryIO]


class ParseError(RuntimeError):
    """Raised when the dataset cannot be read or is not well-formed XML."""


def _make_parser() -> etree.XMLParser:
    # the full dataset is well beyond libxml2's default safety limits
    return etree.XMLParser(huge_tree=True, remove_blank_text=True)


def read_cellosaurus_xml(source: Source) -> etree._ElementTree:
    """
    Load a Cellosaurus XML dataset.

    `source` may be a filesystem path or a binary file object. The Cellosaurus
    team publishes the dataset at https://ftp.expasy.org/databases/cellosaurus
    """
    if isinstance(source, os.PathLike):
        source = os.fspath(source)
    try:
        document = etree.parse(source, _make_parser())
    except (etree.XMLSyntaxError, OSError) as e:
        logger.error(f"Failed to read Cellosaurus XML from {source!r}: {e}")
        raise ParseError(f"Cannot parse Cellosaurus XML from {source!r}: {e}") from e

    logger.debug(f"Loaded Cellosaurus XML from {source!r}")
    return document


def cell_lines_all(document: typing.Union[etree._ElementTree, etree._Element]) -> list[etree._Element]:
    """
    Return every cell-line record in document order.

    Accepts the parsed tree, its root element or the <cell-line-list> element.
    """
    if isinstance(document, etree._ElementTree):
        document = document.getroot()
    if document.tag == "cell-line-list":
        cell_lines = document.findall("cell-line")
    else:
        cell_lines = document.findall(CELL_LINE_PATH)
    logger.debug(f"Found {len(cell_lines)} cell-line records")
    return cell_lines
