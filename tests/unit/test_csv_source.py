from pathlib import Path

import pytest

from tracker_populator.common.errors import SourceError
from tracker_populator.source.csv_source import read_records, row_to_record, validate_header


def test_row_to_record_splits_columns_and_drops_empty_cells():
    row = {
        "orgUnit": "ou1",
        "programDate": "2020-01-01",
        "eventDate": " 2020-01-02 ",
        "attribute:nid": "12",
        "attribute:name": "",
        "dataElement:weight": "4",
    }

    record = row_to_record(row, line=7)

    assert record.parameters.org_unit == "ou1"
    assert record.parameters.event_date == "2020-01-02"
    assert dict(record.attributes) == {"nid": "12"}
    assert dict(record.data_elements) == {"weight": "4"}
    assert record.line == 7


def test_header_requires_known_keys():
    with pytest.raises(SourceError, match="eventDate"):
        validate_header(["orgUnit", "programDate", "attribute:x"])


def test_header_rejects_unrecognised_columns():
    with pytest.raises(SourceError, match="notes"):
        validate_header(["orgUnit", "programDate", "eventDate", "notes"])


def test_read_records_numbers_lines_after_header(tmp_path: Path):
    path = tmp_path / "rows.csv"
    path.write_text(
        "orgUnit,programDate,eventDate,attribute:nid,dataElement:de\n"
        "ou1,2020-01-01,2020-01-02,1,a\n"
        "ou2,2020-01-01,2020-01-03,2,b\n",
        encoding="utf-8",
    )

    header, pairs = read_records(path)

    assert header[-1] == "dataElement:de"
    assert [record.line for _row, record in pairs] == [2, 3]
    assert pairs[1][0]["orgUnit"] == "ou2"
    assert dict(pairs[1][1].attributes) == {"nid": "2"}
