from __future__ import annotations

import json
import logging
from typing import Any

from psycopg2.extras import Json

from ..models.processing_result import BatchResponse, ImportBatch
from .connection import check_identifier

"""Bulk create stored procedure client.

The procedure is a black box: it takes a JSON array of request rows plus the
upload id and returns
    {success, inserted_count, failed_count, error_details: [{row, error}]}.

Each batch runs in its own transaction: COMMIT after a good call, ROLLBACK
and BulkRpcError when the driver raises.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "BulkRpcError",
    "PostgresBulkSubmitter",
    "create_upload_record",
]


class BulkRpcError(Exception):
    pass


def _rollback_quietly(cursor: Any) -> None:
    try:
        cursor.execute("ROLLBACK")
    except Exception:  # pragma: no cover
        logger.debug("rollback failed", exc_info=True)


def create_upload_record(cursor: Any, table: str, filename: str, total_records: int) -> str:
    """Insert the per-file upload record and return its id."""
    table = check_identifier(table)
    try:
        cursor.execute(
            f"INSERT INTO {table} (filename, total_records) VALUES (%s, %s) RETURNING id",
            (filename, total_records),
        )
        row = cursor.fetchone()
        cursor.execute("COMMIT")
    except Exception as e:
        _rollback_quietly(cursor)
        raise BulkRpcError(f"failed creating upload record: {e}") from e
    if not row:
        raise BulkRpcError("upload record insert returned no id")
    return str(row[0])


class PostgresBulkSubmitter:
    """BatchSubmitter that calls the bulk create procedure over psycopg2."""

    def __init__(self, cursor: Any, function: str = "admin_bulk_create_maintenance_requests") -> None:
        self.cursor = cursor
        self.function = check_identifier(function)

    def submit(self, batch: ImportBatch, upload_id: str | None) -> BatchResponse:
        payload = [r.to_payload() for r in batch.requests]
        sql = f"SELECT {self.function}(requests_data => %s, upload_id => %s)"
        try:
            self.cursor.execute(sql, (Json(payload), upload_id))
            row = self.cursor.fetchone()
            self.cursor.execute("COMMIT")
        except Exception as e:
            _rollback_quietly(self.cursor)
            raise BulkRpcError(str(e)) from e

        data = row[0] if row else None
        try:
            if isinstance(data, (str, bytes)):
                # json 型で返らない (text) 場合
                data = json.loads(data)
            return BatchResponse.from_payload(data)
        except ValueError as e:
            raise BulkRpcError(str(e)) from e
