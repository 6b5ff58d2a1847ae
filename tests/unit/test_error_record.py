from __future__ import annotations

import json

from t212_import.models.error_record import FILE_LEVEL_ROW, ErrorRecord


def test_create_timestamp_utc_z():
    rec = ErrorRecord.create(file="a.csv", row=4, error_type="TIME_PARSE_ERROR", message="bad")
    assert rec.timestamp.endswith("Z")
    assert "+00:00" not in rec.timestamp


def test_json_line_has_exact_keys():
    rec = ErrorRecord.create(file="a.csv", row=FILE_LEVEL_ROW, error_type="SCHEMA_ERROR", message="Größe")
    line = rec.to_json_line()
    assert "\n" not in line
    data = json.loads(line)
    assert set(data) == {"timestamp", "file", "row", "error_type", "message"}
    assert data["row"] == -1
    assert "Größe" in line  # ensure_ascii=False
