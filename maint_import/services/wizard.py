from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path

from ..db.reference_data import ReferenceDataCache
from ..excel.reader import SpreadsheetReadError, read_spreadsheet
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.error_record import ErrorRecord, ErrorType
from ..models.processing_result import ImportResult
from ..models.row_data import RawRow
from .pipeline import ParseOutcome, parse_rows
from .submitter import BatchMetrics, BatchSubmissionError, BatchSubmitter, submit_batches

"""Import wizard: the stateful driver around the pure parse pipeline.

    UPLOAD --load--> PREVIEW --run_import--> PROCESSING --> COMPLETE
                        ^                        |
                        +------ batch failure ---+

Parsing moves to PREVIEW even when rows have errors; the user reviews them
there. run_import is refused while errors are outstanding (unless the user
explicitly accepted the reduced row set) or when there is nothing valid to
send. Once PROCESSING starts it runs to the end or to the first failing
batch; there is no cancel.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ImportWizard",
    "WizardStateError",
    "WizardStep",
]


class WizardStep(Enum):
    UPLOAD = "upload"
    PREVIEW = "preview"
    PROCESSING = "processing"
    COMPLETE = "complete"


class WizardStateError(Exception):
    """Raised for a transition that is not allowed from the current step."""


class ImportWizard:
    def __init__(
        self,
        reference: ReferenceDataCache,
        config: ImportConfig,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.reference = reference
        self.config = config
        self.error_log = error_log if error_log is not None else ErrorLogBuffer()
        self._clear()

    def _clear(self) -> None:
        self.step = WizardStep.UPLOAD
        self.filename: str | None = None
        self.outcome: ParseOutcome | None = None
        self.errors_accepted = False
        self.progress = 0.0
        self.result: ImportResult | None = None
        self.last_error: str | None = None

    def _require(self, *steps: WizardStep) -> None:
        if self.step not in steps:
            expected = "|".join(s.value for s in steps)
            raise WizardStateError(f"not allowed in step '{self.step.value}' (expected {expected})")

    # --- upload -> preview -------------------------------------------------

    def load_file(self, path: Path) -> ParseOutcome:
        self._require(WizardStep.UPLOAD)
        try:
            raw_rows = read_spreadsheet(
                path,
                header_row=self.config.header_row,
                keep_na_strings=self.config.keep_na_strings,
            )
        except SpreadsheetReadError as e:
            self.last_error = str(e)
            self.error_log.append(ErrorRecord.create(
                file=path.name, row=-1, error_type=ErrorType.FILE_READ_ERROR, message=str(e),
            ))
            raise
        return self.load_rows(raw_rows, filename=path.name)

    def load_rows(self, raw_rows: Sequence[RawRow], filename: str = "<rows>") -> ParseOutcome:
        self._require(WizardStep.UPLOAD)
        outcome = parse_rows(raw_rows, self.reference.get(), self.config)
        self.filename = filename
        self.outcome = outcome
        self.last_error = None
        self.error_log.extend_validation(filename, outcome.errors)
        self.step = WizardStep.PREVIEW

        if outcome.errors:
            logger.warning(
                "file=%s found %d validation issues in %d rows. Review before importing.",
                filename, len(outcome.errors), len(outcome.error_rows),
            )
        else:
            logger.info("file=%s parsed: %d requests ready to import", filename, len(outcome.requests))
        return outcome

    def accept_valid_rows(self) -> None:
        """Proceed with only the valid rows, leaving errored rows out."""
        self._require(WizardStep.PREVIEW)
        self.errors_accepted = True

    @property
    def blocking_reason(self) -> str | None:
        if self.step is not WizardStep.PREVIEW or self.outcome is None:
            return f"nothing to import in step '{self.step.value}'"
        if self.outcome.errors and not self.errors_accepted:
            return f"{len(self.outcome.errors)} validation errors must be resolved first"
        if not self.outcome.requests:
            return "no valid requests to import"
        return None

    @property
    def can_import(self) -> bool:
        return self.blocking_reason is None

    # --- preview -> processing -> complete ---------------------------------

    def run_import(
        self,
        submitter: BatchSubmitter,
        upload_id: str | None = None,
        create_upload: Callable[[str, int], str] | None = None,
        on_progress: Callable[[float, ImportResult], None] | None = None,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> ImportResult:
        """Submit the valid requests.

        create_upload(filename, total) is called once before the first batch
        when no upload_id is given.

        Raises:
            WizardStateError: not in PREVIEW, or import is blocked
            BatchSubmissionError: a batch failed; the wizard is back in PREVIEW
                and `result` holds what completed batches reported
        """
        self._require(WizardStep.PREVIEW)
        reason = self.blocking_reason
        if reason is not None:
            raise WizardStateError(reason)
        assert self.outcome is not None
        requests = self.outcome.requests
        filename = self.filename or "<rows>"

        self.step = WizardStep.PROCESSING
        self.progress = 0.0
        self.result = None
        self.last_error = None

        def _progress(percent: float, running: ImportResult) -> None:
            self.progress = percent
            self.result = running
            if on_progress is not None:
                on_progress(percent, running)

        try:
            if upload_id is None and create_upload is not None:
                upload_id = create_upload(filename, len(requests))
            result = submit_batches(
                requests,
                submitter,
                upload_id=upload_id,
                batch_size=self.config.batch_size,
                on_progress=_progress,
                metrics_callback=metrics_callback,
            )
        except BatchSubmissionError as e:
            self.result = e.partial_result
            self._fail(str(e))
            raise
        except Exception as e:
            self._fail(str(e))
            raise

        self.result = result
        self.progress = 100.0
        for failure in result.error_details:
            self.error_log.append(ErrorRecord.create(
                file=filename,
                row=failure.row if failure.row is not None else -1,
                error_type=ErrorType.ROW_INSERT_FAILED,
                message=failure.error,
            ))
        self.step = WizardStep.COMPLETE
        if result.all_failed:
            logger.error("file=%s %s", filename, self.completion_message)
        else:
            logger.info("file=%s %s", filename, self.completion_message)
        return result

    def _fail(self, message: str) -> None:
        self.last_error = message
        self.error_log.append(ErrorRecord.create(
            file=self.filename or "<rows>", row=-1, error_type=ErrorType.BATCH_FAILED, message=message,
        ))
        logger.error("import failed: %s", message)
        self.step = WizardStep.PREVIEW

    @property
    def completion_message(self) -> str | None:
        if self.step is not WizardStep.COMPLETE or self.result is None:
            return None
        r = self.result
        if r.all_failed:
            first = r.first_error or "no error details returned"
            return f"All {len(r.submitted_rows)} requests failed to import. First error: {first}"
        return f"Successfully imported {r.success_count} requests. {r.error_count} failed."

    def reset(self) -> None:
        self._require(WizardStep.PREVIEW, WizardStep.COMPLETE, WizardStep.UPLOAD)
        self._clear()
