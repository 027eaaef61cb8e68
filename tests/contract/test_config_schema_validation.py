from __future__ import annotations

import json

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from maint_import.config.loader import SCHEMA_PATH

"""Config schema contract test."""


def _schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_config_schema_valid_example():
    config = {
        "rpc_function": "admin_bulk_create_maintenance_requests",
        "upload_table": "maintenance_request_bulk_uploads",
        "batch_size": 50,
        "header_row": 0,
        "keep_na_strings": ["NA"],
        "property_id": None,
        "reference_tables": {
            "floors": "public.building_floors",
            "processes": "maintenance_processes",
            "categories": "maintenance_categories",
        },
        "column_aliases": {"floor": ["floor", "level"]},
        "floor_synonyms": {"gf": "ground floor"},
        "process_synonyms": {"fk": "flipkart"},
        "unset_values": {"process": ["na", "nil"]},
        "category_keywords": {"electrical": ["wiring", "switch"]},
        "fallback_category": "Other",
        "priority_keywords": {"urgent": ["urgent"], "high": ["broken"]},
        "match_policy": "closest",
        "database": {
            "host": "localhost",
            "port": 5432,
            "user": "appuser",
            "password": "secret",
            "database": "appdb",
        },
    }
    jsonschema.validate(config, _schema())


def test_shipped_sample_config_is_valid():
    sample = SCHEMA_PATH.parents[2] / "config" / "import.yml"
    jsonschema.validate(yaml.safe_load(sample.read_text(encoding="utf-8")), _schema())


def test_config_schema_missing_required_key():
    with pytest.raises(ValidationError):
        jsonschema.validate({"rpc_function": "f"}, _schema())


@pytest.mark.parametrize("config", [
    {"rpc_function": "f", "upload_table": "t", "unknown": 1},
    {"rpc_function": "f", "upload_table": "t", "column_aliases": {"priority": ["p"]}},
    {"rpc_function": "f", "upload_table": "t", "match_policy": "longest"},
    {"rpc_function": "f", "upload_table": "t", "batch_size": 0},
    {"rpc_function": "f", "upload_table": "t", "floor_synonyms": {"gf": ""}},
    {"rpc_function": "select 1", "upload_table": "t"},
    {"rpc_function": "f", "upload_table": "t", "database": {"port": "5432"}},
])
def test_config_schema_rejects(config):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())
