from __future__ import annotations

import os
import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..models.config_models import DatabaseConfig

"""PostgreSQL connection helpers.

DSN resolution order:
    1. DATABASE_URL / PGDSN environment variables (a .env file is loaded by
       the CLI beforehand and overrides the process environment)
    2. database.dsn in config/import.yml
    3. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each
       falling back to the matching database.* config value
"""

__all__ = [
    "check_identifier",
    "db_cursor",
    "resolve_dsn",
]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def check_identifier(name: str) -> str:
    """Return name if it is a plain (optionally schema qualified) identifier."""
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"invalid SQL identifier: {name!r}")
    return name


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_cursor(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a cursor on a non-autocommit connection.

    Transaction boundaries are issued by the callers (one COMMIT per batch).
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = False
    cur = conn.cursor()
    try:
        yield cur
    finally:
        try:
            cur.close()
        finally:
            if not conn.closed:
                # 未コミット分は破棄 (バッチ単位で COMMIT 済み)
                conn.rollback()
            conn.close()
