from __future__ import annotations
import json
from pathlib import Path

import pandas as pd

from incident_map.export_reports import CSV_COLUMNS, build_filters, flatten_row, main


def test_build_filters_restricts_to_requested_categories():
    filters = build_filters(["theft", "Assault"])
    assert filters["theft"] is True
    assert filters["assault"] is True
    assert filters["robbery"] is False
    assert all(build_filters(None).values())


def test_flatten_row_marks_pending_and_fills_missing():
    row = flatten_row({"id": 1, "crime_type": "Theft", "report_status": "PENDING"})
    assert list(row) == CSV_COLUMNS
    assert row["pending"] is True
    assert row["report_details"] is None


def test_main_writes_filtered_exports(tmp_path: Path):
    data = tmp_path / "data.json"
    data.write_text(
        json.dumps(
            {
                "crimes": [
                    {"id": 1, "crime_type": "Theft", "report_status": "Resolved", "report_details": "bike"},
                    {"id": 2, "crime_type": "Assault", "report_status": "Pending", "report_details": "fight"},
                ]
            }
        ),
        encoding="utf-8",
    )
    main(
        [
            "--data", str(data),
            "--overlay", str(tmp_path / "store.json"),
            "--output-dir", str(tmp_path / "out"),
            "--prefix", "run",
            "--category", "theft",
        ]
    )
    out_dir = tmp_path / "out" / "run"
    lines = (out_dir / "reports.jsonl").read_text(encoding="utf-8").splitlines()
    assert [json.loads(l)["id"] for l in lines] == [1]
    frame = pd.read_csv(out_dir / "reports.csv")
    assert list(frame.columns) == CSV_COLUMNS
    assert frame["crime_type"].tolist() == ["Theft"]


def test_main_removes_empty_outputs(tmp_path: Path):
    main(
        [
            "--data", str(tmp_path / "missing.json"),
            "--overlay", str(tmp_path / "store.json"),
            "--output-dir", str(tmp_path / "out"),
            "--prefix", "empty",
        ]
    )
    out_dir = tmp_path / "out" / "empty"
    assert not (out_dir / "reports.jsonl").exists()
    assert not (out_dir / "reports.csv").exists()
