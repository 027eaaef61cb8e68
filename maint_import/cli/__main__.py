from __future__ import annotations

import argparse
import logging
import math
import sys
import time
from contextlib import ExitStack
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from maint_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from maint_import.db.bulk_rpc import BulkRpcError, PostgresBulkSubmitter, create_upload_record
from maint_import.db.connection import db_cursor
from maint_import.db.reference_data import (
    ReferenceDataCache,
    ReferenceDataError,
    load_reference_file,
    load_reference_set,
)
from maint_import.excel.reader import SpreadsheetReadError
from maint_import.excel.writer import write_import_results, write_template, write_validation_errors
from maint_import.logging.error_log import ErrorLogBuffer
from maint_import.logging.init import log_summary, set_debug, setup_logging
from maint_import.models.config_models import ImportConfig
from maint_import.models.processing_result import BatchStatsAccumulator, ImportResult
from maint_import.services.pipeline import ParseOutcome
from maint_import.services.progress import ProgressTracker
from maint_import.services.submitter import BatchSubmissionError
from maint_import.services.summary import render_summary_line
from maint_import.services.wizard import ImportWizard

"""CLI entrypoint.

    python -m maint_import.cli template OUT.xlsx
    python -m maint_import.cli validate FILE [--errors-out PATH] [--reference-file PATH]
    python -m maint_import.cli import FILE [--skip-invalid] [--dry-run] [--results-out PATH] ...

Exit codes:
    0  everything parsed and imported
    1  fatal: config, unreadable file, database, aborted batch
    2  partial: validation errors, rows refused by the backend, all rows failed
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

# プレビュー表示する検証エラーの最大件数
PREVIEW_ERROR_LIMIT = 10


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values win over the environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="maint_import",
        description="Bulk maintenance request importer",
    )
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("template", help="Write the upload template")
    t.add_argument("output", type=Path)

    for name, help_text in (("validate", "Parse and validate only"), ("import", "Validate and import")):
        c = sub.add_parser(name, help=help_text)
        c.add_argument("file", type=Path)
        c.add_argument("--errors-out", type=Path, help="Write validation errors to this .xlsx")
        c.add_argument("--reference-file", type=Path, help="YAML floors/processes/categories (no DB lookup)")
        if name == "import":
            c.add_argument("--skip-invalid", action="store_true",
                           help="Import the valid rows even if other rows have errors")
            c.add_argument("--dry-run", action="store_true", help="Stop before submitting")
            c.add_argument("--results-out", type=Path, help="Write per-row import results to this .xlsx")
    return p.parse_args(argv)


def _needs_db(args: argparse.Namespace) -> bool:
    if args.reference_file is None:
        return True
    return args.command == "import" and not args.dry_run


def _preview(logger: logging.Logger, outcome: ParseOutcome) -> None:
    logger.info(
        f"rows={outcome.total_rows} valid={len(outcome.requests)} "
        f"errors={len(outcome.errors)} error_rows={len(outcome.error_rows)}"
    )
    for err in outcome.errors[:PREVIEW_ERROR_LIMIT]:
        suffix = f" ({err.value})" if err.value is not None else ""
        logger.warning(f"row {err.row_number}: {err.field} - {err.message}{suffix}")
    if len(outcome.errors) > PREVIEW_ERROR_LIMIT:
        logger.warning(f"...and {len(outcome.errors) - PREVIEW_ERROR_LIMIT} more")


def _flush_error_log(logger: logging.Logger, error_log: ErrorLogBuffer) -> None:
    try:
        path = error_log.flush()
    except OSError as e:
        logger.warning(f"failed writing error log: {e}")
        return
    if path is not None:
        logger.info(f"error log: {path}")


def _run(
    args: argparse.Namespace,
    cfg: ImportConfig,
    cursor: Any,
    logger: logging.Logger,
    error_log: ErrorLogBuffer,
) -> int:
    start = time.monotonic()
    if args.reference_file is not None:
        reference = ReferenceDataCache(lambda: load_reference_file(args.reference_file))
    else:
        reference = ReferenceDataCache(
            lambda: load_reference_set(cursor, cfg.reference_tables, cfg.property_id)
        )
    wizard = ImportWizard(reference, cfg, error_log)

    try:
        outcome = wizard.load_file(args.file)
    except SpreadsheetReadError as e:
        logger.error(f"read: {e}")
        return EXIT_FATAL
    except ReferenceDataError as e:
        logger.error(f"reference: {e}")
        return EXIT_FATAL

    _preview(logger, outcome)
    if outcome.errors and args.errors_out is not None:
        write_validation_errors(args.errors_out, outcome.errors)
        logger.info(f"validation errors written: {args.errors_out}")

    if args.command == "validate" or args.dry_run:
        log_summary(render_summary_line(outcome, None, time.monotonic() - start)[len("SUMMARY "):])
        return EXIT_SUCCESS_ALL if outcome.is_clean and outcome.requests else EXIT_PARTIAL_FAILURE

    if outcome.errors and args.skip_invalid:
        wizard.accept_valid_rows()
        logger.warning(f"skipping {len(outcome.error_rows)} rows with errors")
    if not wizard.can_import:
        logger.error(f"import blocked: {wizard.blocking_reason}")
        log_summary(render_summary_line(outcome, None, time.monotonic() - start)[len("SUMMARY "):])
        return EXIT_PARTIAL_FAILURE

    submitter = PostgresBulkSubmitter(cursor, cfg.rpc_function)
    stats = BatchStatsAccumulator()
    total_batches = math.ceil(len(outcome.requests) / cfg.batch_size)
    code = EXIT_SUCCESS_ALL
    result: ImportResult | None
    with ProgressTracker(total_batches, description="Importing") as progress:
        try:
            result = wizard.run_import(
                submitter,
                create_upload=lambda name, total: create_upload_record(cursor, cfg.upload_table, name, total),
                on_progress=lambda _pct, r: progress.advance(inserted=r.success_count, failed=r.error_count),
                metrics_callback=lambda m: stats.add_batch_time(m.elapsed_seconds),
            )
        except (BatchSubmissionError, BulkRpcError) as e:
            logger.error(f"import aborted: {e}")
            result = wizard.result
            code = EXIT_FATAL

    if result is not None:
        if args.results_out is not None:
            write_import_results(args.results_out, outcome.requests, result)
            logger.info(f"import results written: {args.results_out}")
        if code == EXIT_SUCCESS_ALL and (result.all_failed or result.error_count or outcome.errors):
            code = EXIT_PARTIAL_FAILURE

    batches, avg, p95 = stats.get_stats()
    logger.debug(f"batch timing batches={batches} avg_sec={avg:.3f} p95_sec={p95:.3f}")
    log_summary(render_summary_line(outcome, result, time.monotonic() - start)[len("SUMMARY "):])
    return code


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで [] を渡すケースに対応)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if args.command == "template":
        path = write_template(args.output)
        logger.info(f"template written: {path}")
        return EXIT_SUCCESS_ALL

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not args.file.exists():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL
    logger.info(f"Processing file: {args.file}")

    error_log = ErrorLogBuffer()
    try:
        with ExitStack() as stack:
            cursor = None
            if _needs_db(args):
                try:
                    cursor = stack.enter_context(db_cursor(cfg.database))
                except Exception as e:
                    logger.error(f"database: {e}")
                    return EXIT_FATAL
            return _run(args, cfg, cursor, logger, error_log)
    finally:
        _flush_error_log(logger, error_log)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
