from __future__ import annotations

import json
from contextlib import nullcontext
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import FakeRpcCursor, make_excel

from maint_import.cli.__main__ import main as cli_main
from maint_import.logging.init import reset_logging

"""Exit code contract tests.

0 = everything parsed and imported, 1 = fatal, 2 = partial.
"""

GOOD_ROWS = [
    ["1", "10.10.25", "Ground Floor", "Right wing", "Meesho", "Gents rest room", "Electrical Switch box top"],
    ["2", "10.10.25", "Cafeteria", "Whole floor", "NA", "Eating area", "No fire extinguisher"],
]
BAD_ROW = ["3", "10.10.25", "Mezzanine", "Left wing", "Meesho", "Pantry", "Tap leak"]


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def good_file(temp_workdir: Path) -> Path:
    return make_excel(temp_workdir / "data" / "requests.xlsx", GOOD_ROWS)


@pytest.fixture()
def mixed_file(temp_workdir: Path) -> Path:
    return make_excel(temp_workdir / "data" / "mixed.xlsx", GOOD_ROWS + [BAD_ROW])


def _patched_db(cursor: FakeRpcCursor):
    return patch("maint_import.cli.__main__.db_cursor", return_value=nullcontext(cursor))


def test_exit_code_fatal_startup(temp_workdir: Path, good_file: Path, capsys):
    # config/import.yml 無し → exit 1
    code = cli_main(["validate", str(good_file)])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_missing_file(write_config: Path, capsys):
    code = cli_main(["validate", "data/nope.xlsx"])
    assert code == 1
    assert "ERROR file not found" in capsys.readouterr().out


def test_exit_code_unreadable_file(write_config: Path, write_reference: Path, temp_workdir: Path, capsys):
    bad = temp_workdir / "data" / "notes.txt"
    bad.write_text("hello", encoding="utf-8")
    code = cli_main(["validate", str(bad), "--reference-file", str(write_reference)])
    assert code == 1
    out = capsys.readouterr().out
    assert "ERROR read:" in out
    # 読み込み失敗もエラーログに残る
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    assert json.loads(logs[0].read_text(encoding="utf-8").splitlines()[0])["error_type"] == "FILE_READ_ERROR"


def test_template_needs_no_config(temp_workdir: Path):
    code = cli_main(["template", "out/template.xlsx"])
    assert code == 0
    assert (temp_workdir / "out" / "template.xlsx").exists()


def test_validate_clean_exit_zero(write_config: Path, write_reference: Path, good_file: Path, capsys):
    code = cli_main(["validate", str(good_file), "--reference-file", str(write_reference)])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY rows=2 valid=2 invalid=0 batches=0/0 inserted=0 failed=0" in out


def test_validate_with_errors_exit_two(write_config: Path, write_reference: Path, mixed_file: Path,
                                       temp_workdir: Path, capsys):
    errors_out = temp_workdir / "errors.xlsx"
    code = cli_main([
        "validate", str(mixed_file), "--reference-file", str(write_reference), "--errors-out", str(errors_out),
    ])
    out = capsys.readouterr().out
    assert code == 2
    assert "WARN row 4: Floor" in out
    assert errors_out.exists()
    assert "invalid=1" in out


def test_import_all_success(write_config: Path, write_reference: Path, good_file: Path, capsys):
    cur = FakeRpcCursor()
    with _patched_db(cur):
        code = cli_main(["import", str(good_file), "--reference-file", str(write_reference)])
    out = capsys.readouterr().out
    assert code == 0
    assert cur.rpc_calls == 1
    assert cur.queries.count("COMMIT") == 2  # upload record + one batch
    assert "SUMMARY rows=2 valid=2 invalid=0 batches=1/1 inserted=2 failed=0" in out


def test_import_blocked_by_validation_errors(write_config: Path, write_reference: Path, mixed_file: Path, capsys):
    cur = FakeRpcCursor()
    with _patched_db(cur):
        code = cli_main(["import", str(mixed_file), "--reference-file", str(write_reference)])
    out = capsys.readouterr().out
    assert code == 2
    assert "import blocked" in out
    assert cur.queries == []


def test_import_skip_invalid_is_partial(write_config: Path, write_reference: Path, mixed_file: Path, capsys):
    cur = FakeRpcCursor()
    with _patched_db(cur):
        code = cli_main(["import", str(mixed_file), "--reference-file", str(write_reference), "--skip-invalid"])
    out = capsys.readouterr().out
    assert code == 2
    assert cur.rpc_calls == 1
    assert "inserted=2" in out


def test_import_row_failures_exit_two(write_config: Path, write_reference: Path, good_file: Path, capsys):
    cur = FakeRpcCursor(reply={
        "success": True, "inserted_count": 1, "failed_count": 1,
        "error_details": [{"row": 3, "error": "duplicate request"}],
    })
    with _patched_db(cur):
        code = cli_main(["import", str(good_file), "--reference-file", str(write_reference)])
    assert code == 2
    assert "failed=1" in capsys.readouterr().out


def test_import_aborted_batch_exit_one(write_config: Path, write_reference: Path, good_file: Path,
                                       temp_workdir: Path, capsys):
    cur = FakeRpcCursor(fail_on="SELECT")
    with _patched_db(cur):
        code = cli_main(["import", str(good_file), "--reference-file", str(write_reference)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR import aborted" in out
    assert "ROLLBACK" in cur.queries
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    records = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert records[-1]["error_type"] == "BATCH_FAILED"
    assert records[-1]["row"] == -1


def test_database_unavailable_exit_one(write_config: Path, good_file: Path, capsys):
    with patch("maint_import.cli.__main__.db_cursor", side_effect=RuntimeError("could not connect")):
        code = cli_main(["validate", str(good_file)])
    assert code == 1
    assert "ERROR database: could not connect" in capsys.readouterr().out


def test_dry_run_never_connects(write_config: Path, write_reference: Path, good_file: Path):
    with patch("maint_import.cli.__main__.db_cursor") as db:
        code = cli_main(["import", str(good_file), "--reference-file", str(write_reference), "--dry-run"])
    assert code == 0
    db.assert_not_called()
