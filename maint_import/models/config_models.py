from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

"""Config dataclasses for the bulk maintenance request importer.

These are the typed, immutable forms of config/import.yml. The loader in
maint_import/config/loader.py builds them; everything downstream (resolver,
classifier, submitter) receives them by injection instead of reading module
level tables, so tests can hand in their own fixtures.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ReferenceTables:
    """Names of the read-only reference tables."""
    floors: str = "building_floors"
    processes: str = "maintenance_processes"
    categories: str = "maintenance_categories"


@dataclass(frozen=True)
class MatchingTables:
    """Alias, synonym and keyword tables used while parsing rows.

    All mappings are read-only views; sequences are tuples. Order matters:
    aliases are tried in list order and keyword groups in mapping order.
    """
    column_aliases: Mapping[str, tuple[str, ...]]  # canonical field -> header variants
    floor_synonyms: Mapping[str, str]  # free text -> canonical floor name
    process_synonyms: Mapping[str, str]
    unset_values: Mapping[str, tuple[str, ...]]  # field -> "intentionally empty" tokens
    category_keywords: Mapping[str, tuple[str, ...]]  # category group -> keywords
    urgent_keywords: tuple[str, ...]
    high_keywords: tuple[str, ...]
    fallback_category: str | None = "Other"
    match_policy: str = "first"  # first | closest


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for one import session."""
    rpc_function: str  # bulk create stored procedure
    upload_table: str  # table receiving one record per uploaded file
    matching: MatchingTables
    batch_size: int = 50
    header_row: int = 0  # 0-based header row index in the sheet
    keep_na_strings: tuple[str, ...] = ("NA",)
    property_id: str | None = None  # owning property filter for processes
    reference_tables: ReferenceTables = field(default_factory=ReferenceTables)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
