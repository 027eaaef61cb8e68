from __future__ import annotations

from contextlib import nullcontext
from pathlib import Path
from unittest.mock import patch

import pandas as pd
import pytest
from conftest import FakeRpcCursor, make_excel

from maint_import.cli.__main__ import main as cli_main
from maint_import.logging.init import reset_logging

"""Integration test: a 120 row file imported end to end through the CLI.

Spreadsheet -> reader -> normalizer -> resolver/classifier -> validator ->
three sequential bulk create calls (50/50/20) on a fake cursor.
"""

ISSUES = [
    ("Switch board sparking", "Ground Floor", "high", "c-elec"),
    ("AC not cooling", "1st Floor", "medium", "c-hvac"),
    ("URGENT tap leak in washroom", "GF", "urgent", "c-plumb"),
    ("Chairs need polishing", "Cafeteria", "medium", "c-other"),
]


@pytest.fixture()
def big_file(temp_workdir: Path) -> Path:
    rows = []
    for i in range(120):
        issue, floor, _, _ = ISSUES[i % len(ISSUES)]
        rows.append([str(i + 1), "05.03.25", floor, "Left wing", "Flipkart", f"Bay {i}", issue])
    return make_excel(temp_workdir / "data" / "big.xlsx", rows)


def test_import_120_rows(write_config: Path, write_reference: Path, big_file: Path, temp_workdir: Path, capsys):
    reset_logging()
    cur = FakeRpcCursor()
    results_out = temp_workdir / "out" / "results.xlsx"
    with patch("maint_import.cli.__main__.db_cursor", return_value=nullcontext(cur)):
        code = cli_main([
            "import", str(big_file),
            "--reference-file", str(write_reference),
            "--results-out", str(results_out),
        ])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY rows=120 valid=120 invalid=0 batches=3/3 inserted=120 failed=0" in out

    # upload record first, then one call per batch
    assert cur.queries[0].startswith("INSERT INTO maintenance_request_bulk_uploads")
    assert cur.params[0] == ("big.xlsx", 120)
    calls = [p for q, p in zip(cur.queries, cur.params, strict=True) if q.startswith("SELECT")]
    assert [len(p[0].adapted) for p in calls] == [50, 50, 20]
    assert all(p[1] == "upload-1" for p in calls)
    rows = [r["row_number"] for p in calls for r in p[0].adapted]
    assert rows == list(range(2, 122))

    first_four = calls[0][0].adapted[:4]
    for payload, (issue, _, priority, category) in zip(first_four, ISSUES, strict=True):
        assert payload["description"] == issue
        assert payload["priority"] == priority
        assert payload["main_category_id"] == category
        assert payload["process_id"] == "p-flip"
        assert payload["created_at"] == "2025-03-05T00:00:00Z"
    assert first_four[2]["building_floor_id"] == "f-gf"
    assert first_four[0]["location"] == "Left wing - Bay 0"

    df = pd.read_excel(results_out, sheet_name="Import Results")
    assert len(df) == 120
    assert set(df["status"]) == {"success"}
    assert list((temp_workdir / "logs").glob("errors-*.log")) == []
