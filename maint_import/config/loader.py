from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DatabaseConfig, ImportConfig, MatchingTables, ReferenceTables
from . import defaults

"""Config loader.

Responsibilities:
- Load YAML (config/import.yml by default)
- Validate against the JSON schema shipped next to this module
- Fill every omitted matching table from config/defaults.py
- Freeze the result (tuples / MappingProxyType) so tables cannot be mutated
  once handed to the resolver and classifier
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or unreadable, or the
            config data fails validation (missing keys, wrong types,
            unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _freeze_list_map(raw: Mapping[str, list[str]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({k: tuple(v) for k, v in raw.items()})


def build_matching_tables(data: Mapping[str, Any] | None = None) -> MatchingTables:
    """Build MatchingTables from a (validated) config mapping.

    Any key left out falls back to the built-in default table. Passing
    nothing gives the pure default tables.
    """
    data = data or {}
    aliases = dict(defaults.COLUMN_ALIASES)
    # column_aliases は項目単位で上書き (未指定項目は既定値)
    aliases.update(data.get("column_aliases") or {})
    priority = data.get("priority_keywords") or {}
    return MatchingTables(
        column_aliases=_freeze_list_map(aliases),
        floor_synonyms=MappingProxyType(dict(data.get("floor_synonyms", defaults.FLOOR_SYNONYMS))),
        process_synonyms=MappingProxyType(dict(data.get("process_synonyms", defaults.PROCESS_SYNONYMS))),
        unset_values=_freeze_list_map(data.get("unset_values", defaults.UNSET_VALUES)),
        category_keywords=_freeze_list_map(data.get("category_keywords", defaults.CATEGORY_KEYWORDS)),
        urgent_keywords=tuple(priority.get("urgent", defaults.URGENT_KEYWORDS)),
        high_keywords=tuple(priority.get("high", defaults.HIGH_KEYWORDS)),
        fallback_category=data.get("fallback_category", defaults.FALLBACK_CATEGORY),
        match_policy=data.get("match_policy", defaults.MATCH_POLICY),
    )


def build_config(data: Mapping[str, Any]) -> ImportConfig:
    """Validate a raw mapping and turn it into an ImportConfig."""
    _validate_config_schema(dict(data))

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    tables_raw = data.get("reference_tables") or {}
    reference_tables = ReferenceTables(**tables_raw)
    return ImportConfig(
        rpc_function=data["rpc_function"],
        upload_table=data["upload_table"],
        matching=build_matching_tables(data),
        batch_size=data.get("batch_size", defaults.BATCH_SIZE),
        header_row=data.get("header_row", 0),
        keep_na_strings=tuple(data.get("keep_na_strings", ["NA"])),
        property_id=data.get("property_id"),
        reference_tables=reference_tables,
        database=db,
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return build_config(data)
