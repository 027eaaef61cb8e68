from __future__ import annotations

from conftest import template_row

from maint_import.models.row_data import RawRow
from maint_import.services.pipeline import parse_rows

"""Unit tests for parse_rows (normalize -> resolve -> classify -> validate)."""


def test_every_row_accounted_for_once(reference, config):
    rows = [
        template_row(2),
        template_row(3, floor="Mezzanine"),  # unresolved floor
        template_row(4, date="2025-10-10", process="Amazon"),  # two errors, one row
        template_row(5, floor="GF"),
        template_row(6, issue=None),
    ]
    outcome = parse_rows(rows, reference, config)
    assert outcome.total_rows == 5
    assert [r.row_number for r in outcome.requests] == [2, 5]
    assert outcome.error_rows == [3, 4, 6]
    assert len(outcome.errors) == 4
    assert outcome.accounted_rows == outcome.total_rows
    assert not outcome.is_clean


def test_template_example_rows(reference, config):
    rows = [
        template_row(2),
        template_row(
            3,
            floor="Cafeteria",
            wing="Whole floor",
            process="NA",
            location="Eating area",
            issue="No fire extinguisher",
        ),
    ]
    outcome = parse_rows(rows, reference, config)
    assert outcome.is_clean
    first, second = outcome.requests

    assert first.title == "Electrical Switch box top"
    assert first.priority == "medium"
    assert first.category_id == "c-elec"
    assert first.floor_id == "f-gf"
    assert first.process_id == "p-meesho"
    assert first.location == "Right wing - Gents rest room"

    assert second.location == "Eating area"
    assert second.process_id is None
    assert second.floor_id == "f-caf"
    assert second.category_id == "c-safety"
    assert second.priority == "high"


def test_header_variants_are_accepted(reference, config):
    raw = RawRow(2, {
        "DATE": "01.02.25",
        " floor name ": "1st",
        "Issue": "Tap leak in pantry",
    })
    outcome = parse_rows([raw], reference, config)
    assert outcome.is_clean
    req = outcome.requests[0]
    assert req.floor_id == "f-1"
    assert req.category_id == "c-plumb"
    assert req.location == "Not Specified"
    assert req.created_at == "2025-02-01T00:00:00Z"


def test_empty_input(reference, config):
    outcome = parse_rows([], reference, config)
    assert outcome.total_rows == 0
    assert outcome.requests == ()
    assert outcome.is_clean
