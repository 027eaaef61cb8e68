# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from maint_import.config.loader import build_config
from maint_import.logging.init import reset_logging
from maint_import.models.config_models import ImportConfig
from maint_import.models.processing_result import BatchResponse, ImportBatch
from maint_import.models.reference import ReferenceItem, ReferenceSet
from maint_import.models.row_data import RawRow

TEMPLATE_HEADER = ["Sl.No.", "Date", "Floor", "Wing", "Process", "Location", "Issue Description"]


@pytest.fixture(autouse=True)
def _reset_app_logging():
    # ハンドラが前のテストの stdout を掴んだままにならないように
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """rpc_function: admin_bulk_create_maintenance_requests
upload_table: maintenance_request_bulk_uploads
batch_size: 50
floor_synonyms:
  gf: ground floor
  1st: 1st floor
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def reference_yaml() -> str:
    return """floors:
  - {id: f-gf, name: Ground Floor}
  - {id: f-1, name: 1st Floor}
  - {id: f-caf, name: Cafeteria}
processes:
  - {id: p-meesho, name: Meesho}
  - {id: p-flip, name: Flipkart}
categories:
  - {id: c-elec, name: Electrical}
  - {id: c-hvac, name: HVAC}
  - {id: c-plumb, name: Plumbing}
  - {id: c-safety, name: Fire & Safety}
  - {id: c-other, name: Other}
"""


@pytest.fixture()
def write_reference(temp_workdir: Path, reference_yaml: str) -> Path:
    p = temp_workdir / "config" / "reference.yml"
    p.write_text(reference_yaml, encoding="utf-8")
    return p


@pytest.fixture()
def reference() -> ReferenceSet:
    return ReferenceSet(
        floors=(
            ReferenceItem("f-gf", "Ground Floor"),
            ReferenceItem("f-1", "1st Floor"),
            ReferenceItem("f-caf", "Cafeteria"),
        ),
        processes=(
            ReferenceItem("p-meesho", "Meesho"),
            ReferenceItem("p-flip", "Flipkart"),
        ),
        categories=(
            ReferenceItem("c-elec", "Electrical"),
            ReferenceItem("c-hvac", "HVAC"),
            ReferenceItem("c-plumb", "Plumbing"),
            ReferenceItem("c-safety", "Fire & Safety"),
            ReferenceItem("c-other", "Other"),
        ),
    )


@pytest.fixture()
def config() -> ImportConfig:
    return build_config({
        "rpc_function": "admin_bulk_create_maintenance_requests",
        "upload_table": "maintenance_request_bulk_uploads",
        "floor_synonyms": {"gf": "ground floor", "1st": "1st floor"},
    })


def template_row(
    row_number: int,
    date: Any = "10.10.25",
    floor: Any = "Ground Floor",
    wing: Any = "Right wing",
    process: Any = "Meesho",
    location: Any = "Gents rest room",
    issue: Any = "Electrical Switch box top",
) -> RawRow:
    return RawRow(
        row_number=row_number,
        values={
            "Sl.No.": str(row_number - 1),
            "Date": date,
            "Floor": floor,
            "Wing": wing,
            "Process": process,
            "Location": location,
            "Issue Description": issue,
        },
    )


def make_excel(path: Path, rows: list[list[object]], header: list[str] | None = None) -> Path:
    """Write a single sheet workbook (header on row 1)."""
    df = pd.DataFrame(rows, columns=header or TEMPLATE_HEADER)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Maintenance Requests", index=False)
    return path


class FakeSubmitter:
    """Records submitted batches; replies per batch index or by callable."""

    def __init__(self, fail_on: int | None = None, responses: dict[int, Any] | None = None) -> None:
        self.batches: list[ImportBatch] = []
        self.upload_ids: list[str | None] = []
        self.fail_on = fail_on
        self.responses = responses or {}

    def submit(self, batch: ImportBatch, upload_id: str | None) -> BatchResponse:
        if self.fail_on is not None and batch.index == self.fail_on:
            raise ConnectionError("network down")
        self.batches.append(batch)
        self.upload_ids.append(upload_id)
        if batch.index in self.responses:
            return self.responses[batch.index]
        return BatchResponse(success=True, inserted_count=len(batch), failed_count=0)


@pytest.fixture()
def fake_submitter() -> FakeSubmitter:
    return FakeSubmitter()


class FakeRpcCursor:
    """psycopg2 cursor stand-in for the upload insert and bulk create calls.

    reply: dict returned for every bulk create call, or a callable taking the
    batch payload list. Defaults to "all rows inserted".
    """

    def __init__(self, reply: Any = None, fail_on: str | None = None) -> None:
        self.queries: list[str] = []
        self.params: list[Any] = []
        self.reply = reply
        self.fail_on = fail_on

    def execute(self, sql: str, params: Any = None) -> None:
        self.queries.append(sql)
        self.params.append(params)
        if self.fail_on and sql.startswith(self.fail_on):
            raise RuntimeError("connection reset by peer")

    def fetchone(self) -> tuple[Any, ...] | None:
        last = self.queries[-1]
        if last.startswith("INSERT"):
            return ("upload-1",)
        if last.startswith("SELECT"):
            payload = self.params[-1][0].adapted
            if callable(self.reply):
                return (self.reply(payload),)
            if self.reply is not None:
                return (self.reply,)
            return ({"success": True, "inserted_count": len(payload), "failed_count": 0, "error_details": []},)
        return None

    @property
    def rpc_calls(self) -> int:
        return sum(1 for q in self.queries if q.startswith("SELECT"))
