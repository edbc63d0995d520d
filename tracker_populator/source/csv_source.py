"""CSV rows to populator records."""

from __future__ import annotations

from pathlib import Path

from tracker_populator.common.constants import (
    ATTRIBUTE_COLUMN_PREFIX,
    DATA_ELEMENT_COLUMN_PREFIX,
    KNOWN_KEY_COLUMNS,
)
from tracker_populator.common.errors import SourceError
from tracker_populator.common.fs import read_csv
from tracker_populator.common.models import KnownKeys, Record


def validate_header(header: list[str]) -> None:
    missing = [column for column in KNOWN_KEY_COLUMNS if column not in header]
    if missing:
        raise SourceError(f"Missing required columns: {', '.join(missing)}")

    unknown = [
        column
        for column in header
        if column not in KNOWN_KEY_COLUMNS
        and not column.startswith(ATTRIBUTE_COLUMN_PREFIX)
        and not column.startswith(DATA_ELEMENT_COLUMN_PREFIX)
    ]
    if unknown:
        raise SourceError(f"Unrecognised columns: {', '.join(unknown)}")


def _strip(value: str | None) -> str:
    return (value or "").strip()


def row_to_record(row: dict[str, str], line: int | None = None) -> Record:
    known = {field: _strip(row.get(column)) for column, field in KNOWN_KEY_COLUMNS.items()}
    attributes: dict[str, str] = {}
    data_elements: dict[str, str] = {}
    for column, raw in row.items():
        value = _strip(raw)
        if column is None or not value:
            continue
        if column.startswith(ATTRIBUTE_COLUMN_PREFIX):
            attributes[column[len(ATTRIBUTE_COLUMN_PREFIX) :]] = value
        elif column.startswith(DATA_ELEMENT_COLUMN_PREFIX):
            data_elements[column[len(DATA_ELEMENT_COLUMN_PREFIX) :]] = value
    return Record(
        parameters=KnownKeys(**known),
        attributes=attributes,
        data_elements=data_elements,
        line=line,
    )


def read_records(path: Path) -> tuple[list[str], list[tuple[dict[str, str], Record]]]:
    """Header plus ``(raw row, record)`` pairs; line numbers count the header as line 1."""
    try:
        header, rows = read_csv(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceError(f"Cannot read {path}: {exc}") from exc
    validate_header(header)
    return header, [(row, row_to_record(row, line=index + 2)) for index, row in enumerate(rows)]
