from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from ..models.config_models import ReferenceTables
from ..models.reference import ReferenceSet
from .connection import check_identifier

"""Reference data (floors, processes, categories) loading.

Loaded once per import session and never refreshed: a stale list for the
duration of one import is acceptable.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ReferenceDataCache",
    "ReferenceDataError",
    "load_reference_file",
    "load_reference_set",
]


class ReferenceDataError(Exception):
    pass


def load_reference_set(
    cursor: Any,
    tables: ReferenceTables | None = None,
    property_id: str | None = None,
) -> ReferenceSet:
    """Query active floors, active processes and all categories.

    Rows are ordered by name so the fuzzy resolver's table order tie-break
    is stable between runs.
    """
    tables = tables or ReferenceTables()
    floors_t = check_identifier(tables.floors)
    processes_t = check_identifier(tables.processes)
    categories_t = check_identifier(tables.categories)

    try:
        cursor.execute(f"SELECT id, name FROM {floors_t} WHERE is_active = true ORDER BY name")
        floors = cursor.fetchall()
        if property_id is not None:
            cursor.execute(
                f"SELECT id, name FROM {processes_t} WHERE is_active = true AND property_id = %s ORDER BY name",
                (property_id,),
            )
        else:
            cursor.execute(f"SELECT id, name FROM {processes_t} WHERE is_active = true ORDER BY name")
        processes = cursor.fetchall()
        cursor.execute(f"SELECT id, name FROM {categories_t} ORDER BY name")
        categories = cursor.fetchall()
    except Exception as e:
        raise ReferenceDataError(f"failed loading reference data: {e}") from e

    ref = ReferenceSet.from_rows(floors, processes, categories)
    logger.info(
        "reference data floors=%d processes=%d categories=%d",
        len(ref.floors), len(ref.processes), len(ref.categories),
    )
    return ref


def load_reference_file(path: Path) -> ReferenceSet:
    """Load reference data from YAML for offline validation.

    Format::

        floors:
          - {id: f1, name: Ground Floor}
        processes: [...]
        categories: [...]
    """
    if not path.exists():
        raise ReferenceDataError(f"reference file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ReferenceDataError(f"invalid yaml: {e}") from e

    def _rows(key: str) -> list[tuple[object, object]]:
        entries = data.get(key) or []
        rows = []
        for entry in entries:
            if not isinstance(entry, dict) or "id" not in entry or "name" not in entry:
                raise ReferenceDataError(f"{key}: each entry needs 'id' and 'name', got {entry!r}")
            rows.append((entry["id"], entry["name"]))
        return rows

    return ReferenceSet.from_rows(_rows("floors"), _rows("processes"), _rows("categories"))


class ReferenceDataCache:
    """Loads reference data on first use and keeps it for the session."""

    def __init__(self, loader: Callable[[], ReferenceSet]) -> None:
        self._loader = loader
        self._value: ReferenceSet | None = None

    @property
    def loaded(self) -> bool:
        return self._value is not None

    def get(self) -> ReferenceSet:
        if self._value is None:
            self._value = self._loader()
        return self._value
