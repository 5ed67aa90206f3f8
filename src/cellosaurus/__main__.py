"""
Command-line interface for querying the Cellosaurus XML dataset.

Filters are written as `FIELD=TERM`, `FIELD~=TERM` (contains) or `FIELD^=TERM`
(starts-with); several terms are separated by `|` and combined with OR, and
repeated `-w` clauses are chained, so they combine with AND.
"""

import logging
import os
import pathlib
import re
import sys
import typing

import click
import pandas as pd
import requests

from stairval.notepad import Notepad, create_notepad

from . import details
from .filter import cell_lines_filter, cell_lines_filter_all
from .finder import cell_line_find_all, cell_line_find_first
from .loader import ParseError, read_cellosaurus_xml
from .query import MatchMode, QuerySpec, UnsupportedField, compile_query
from .tabulate import cell_lines_to_frame

logger = logging.getLogger(__name__)

DEFAULT_XML_PATH = os.getenv("CELLOSAURUS_XML", "data/cellosaurus.xml")
CELLOSAURUS_URL = os.getenv(
    "CELLOSAURUS_URL", "https://ftp.expasy.org/databases/cellosaurus/cellosaurus.xml"
)

# FIELD, operator, then the '|'-separated terms; spaces around the operator are syntax
_WHERE_PATTERN = re.compile(r"^\s*(?P<field>[A-Za-z-]+)\s*(?P<op>~=|\^=|=)\s*(?P<terms>.*)$")
_OPERATORS = {
    "=": MatchMode.EQUALS,
    "~=": MatchMode.CONTAINS,
    "^=": MatchMode.STARTS_WITH,
}

xml_path_option = click.option(
    "-x",
    "--xml-path",
    "xml_path",
    default=DEFAULT_XML_PATH,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="path to cellosaurus.xml (or set CELLOSAURUS_XML)",
)
format_option = click.option(
    "-f",
    "--format",
    "output_format",
    default="table",
    type=click.Choice(["table", "csv", "json"]),
    help="how to print the matching cell-lines",
)


@click.group()
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def main(verbose_logging: bool = False, log_file_path: typing.Optional[str] = None):
    """Query the Cellosaurus cell-line registry."""
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


@main.command(name="download")
@click.option(
    "-d",
    "--data-path",
    "data_dir",
    default="data",
    type=click.Path(file_okay=False),
    help="where to save cellosaurus.xml (default: data)",
)
@click.option("--url", default=CELLOSAURUS_URL, help="dataset URL (or set CELLOSAURUS_URL)")
def download(data_dir: str, url: str):
    """
    Download the current Cellosaurus XML release.
    """
    datadir = pathlib.Path(data_dir)
    datadir.mkdir(parents=True, exist_ok=True)
    out = datadir / "cellosaurus.xml"
    # an existing release stays in place until the new one is complete
    partial = out.with_suffix(".xml.part")

    click.echo(f"Downloading {url} …")
    logger.info(f"Downloading Cellosaurus XML from {url}")
    try:
        resp = requests.get(url, stream=True, timeout=60)
        resp.raise_for_status()
        # the release is several hundred MB; never hold it in memory
        with open(partial, "wb") as f:
            for chunk in resp.iter_content(chunk_size=1 << 20):
                if chunk:
                    f.write(chunk)
    except requests.RequestException as e:
        partial.unlink(missing_ok=True)
        logger.error(f"Download from {url} failed: {e}")
        click.echo(f"Error: download from {url} failed: {e}", err=True)
        sys.exit(1)
    os.replace(partial, out)

    click.echo(f"Saved Cellosaurus XML to {out}")


@main.command(name="find")
@xml_path_option
@format_option
@click.option("--first", is_flag=True, help="stop at the first matching cell-line")
@click.argument("text", nargs=-1, required=True)
def find(xml_path: str, output_format: str, first: bool, text: tuple[str, ...]):
    """
    Free-text search: cell-lines whose content contains any TEXT (case-sensitive).
    """
    document = _load_document(xml_path)
    if first:
        found = cell_line_find_first(document, list(text))
        cell_lines = [] if found is None else [found]
    else:
        cell_lines = cell_line_find_all(document, list(text))
    _echo_frame(cell_lines_to_frame(cell_lines), output_format)


@main.command(name="filter")
@xml_path_option
@format_option
@click.option(
    "-w",
    "--where",
    "clauses",
    multiple=True,
    required=True,
    help=(
        "FIELD=TERM[|TERM...], FIELD~=... (contains) or FIELD^=... (starts-with); repeat to AND. "
        "Spaces after the operator are ignored; the rest of each term is matched literally"
    ),
)
def filter_command(xml_path: str, output_format: str, clauses: tuple[str, ...]):
    """
    Filter cell-lines by structured criteria, e.g.
    -w "category=Cancer cell line" -w "sex=Female|Male".
    """
    notepad = create_notepad("filters")
    specs = [spec for spec in (parse_where(clause, notepad) for clause in clauses) if spec is not None]
    _report_issues(notepad)
    if notepad.has_errors(include_subsections=True):
        sys.exit(1)

    document = _load_document(xml_path)
    cell_lines = cell_lines_filter_all(document, specs)
    _echo_frame(cell_lines_to_frame(cell_lines), output_format)


@main.command(name="show")
@xml_path_option
@click.argument("accession")
def show(xml_path: str, accession: str):
    """
    Print the details of the cell-line with ACCESSION (primary or secondary).
    """
    document = _load_document(xml_path)
    found = cell_lines_filter(document, "accession", accession, "equals")
    if not found:
        click.echo(f"Error: no cell-line with accession {accession!r}", err=True)
        sys.exit(1)

    cell_line = found[0]
    click.echo(f"{details.primary_accession(cell_line)}  {details.identifier(cell_line)}")
    click.echo(f"Category: {details.category(cell_line) or 'unknown'}")
    click.echo(f"Sex: {details.sex(cell_line) or 'unknown'}")
    _echo_section("Synonyms", details.names(cell_line, type="synonym"))
    _echo_section("Secondary accessions", details.accessions(cell_line, type="secondary"))
    _echo_section("Species", [f"{t.name} ({t.accession})" for t in details.species(cell_line)])
    _echo_section("Diseases", [f"{t.name} ({t.accession})" for t in details.diseases(cell_line)])
    _echo_section("Derived from", [f"{t.name} ({t.accession})" for t in details.derived_from(cell_line)])
    _echo_section("Same origin as", [f"{t.name} ({t.accession})" for t in details.same_origin_as(cell_line)])
    _echo_section("Comments", _comment_lines(cell_line))
    _echo_section("Web pages", details.web_pages(cell_line))
    _echo_section("References", details.references(cell_line))


def parse_where(clause: str, notepad: Notepad) -> typing.Optional[QuerySpec]:
    """
    Turn one `-w` clause into a QuerySpec, or record why it cannot be used.
    """
    m = _WHERE_PATTERN.match(clause)
    if not m:
        notepad.add_error(f"Cannot parse filter {clause!r}; expected FIELD=TERM, FIELD~=TERM or FIELD^=TERM")
        return None

    field = m.group("field").lower()
    terms = [term for term in m.group("terms").split("|") if term]
    if not terms:
        notepad.add_error(f"Filter {clause!r} has no terms")
        return None

    spec = QuerySpec(field=field, terms=terms, mode=_OPERATORS[m.group("op")])
    try:
        compile_query(spec)
    except UnsupportedField as e:
        notepad.add_error(str(e))
        return None

    if field == "comment-category" and spec.mode is MatchMode.EQUALS:
        for term in spec.terms:
            if term not in details.COMMENT_CATEGORIES:
                notepad.add_warning(f"Filter {clause!r}: {term!r} is not a known comment category")
    return spec


def _load_document(xml_path: str):
    if not pathlib.Path(xml_path).is_file():
        click.echo(f"Error: Cellosaurus XML not found at {xml_path} (try `cellosaurus download`)", err=True)
        sys.exit(1)
    try:
        return read_cellosaurus_xml(xml_path)
    except ParseError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _report_issues(notepad: Notepad):
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in filters:")
        for err in notepad.errors():
            click.echo(f"- {err}")
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in filters:")
        for w in notepad.warnings():
            click.echo(f"- {w}")


def _comment_lines(cell_line) -> list[str]:
    # keep the category next to each comment
    lines = []
    for comment in cell_line.iterfind("comment-list/comment"):
        lines.append(f"{comment.get('category')}: {comment.text or ''}")
    return lines


def _echo_section(title: str, values: list[str]):
    if not values:
        return
    click.echo(f"{title}:")
    for value in values:
        click.echo(f"  {value}")


def _echo_frame(frame: pd.DataFrame, output_format: str):
    if output_format == "csv":
        click.echo(frame.to_csv(index=False), nl=False)
    elif output_format == "json":
        click.echo(frame.to_json(orient="records", indent=2))
    elif frame.empty:
        click.echo("No matching cell-lines.")
    else:
        click.echo(frame.to_string(index=False))
        click.echo(f"{len(frame)} cell-line(s)")


if __name__ == "__main__":
    main()
