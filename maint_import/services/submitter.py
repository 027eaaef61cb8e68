from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from ..models.parsed_request import ParsedRequest
from ..models.processing_result import BatchResponse, ImportBatch, ImportResult

"""Batch submission.

Validated requests are cut into fixed size batches in row order and handed
to a BatchSubmitter one at a time; each call is awaited before the next
batch starts. Any failure (the submitter raises, or the reply says
success=false) stops the run. Counts from batches that already completed are
kept on the raised BatchSubmissionError; later batches are never sent.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "BatchMetrics",
    "BatchSubmissionError",
    "BatchSubmitter",
    "DEFAULT_BATCH_SIZE",
    "partition",
    "submit_batches",
]

DEFAULT_BATCH_SIZE = 50


class BatchSubmitter(Protocol):
    def submit(self, batch: ImportBatch, upload_id: str | None) -> BatchResponse:
        ...


class BatchSubmissionError(Exception):
    """A batch failed; the remaining import was aborted."""

    def __init__(self, batch_index: int, message: str, partial_result: ImportResult) -> None:
        super().__init__(f"batch {batch_index + 1}/{partial_result.total_batches} failed: {message}")
        self.batch_index = batch_index
        self.reason = message
        self.partial_result = partial_result


@dataclass(frozen=True)
class BatchMetrics:
    """Timing for a single submit call."""
    batch_index: int
    batch_size: int
    elapsed_seconds: float
    start_time: float
    end_time: float


def partition(requests: Sequence[ParsedRequest], batch_size: int = DEFAULT_BATCH_SIZE) -> list[ImportBatch]:
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [
        ImportBatch(index=i, requests=tuple(requests[start:start + batch_size]))
        for i, start in enumerate(range(0, len(requests), batch_size))
    ]


def submit_batches(
    requests: Sequence[ParsedRequest],
    submitter: BatchSubmitter,
    upload_id: str | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_progress: Callable[[float, ImportResult], None] | None = None,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> ImportResult:
    """Submit all requests sequentially and aggregate the replies.

    on_progress receives the completion percentage and the running result
    after every completed batch.

    Raises:
        BatchSubmissionError: on the first failing batch.
    """
    batches = partition(requests, batch_size)
    result = ImportResult(total_batches=len(batches))

    for batch in batches:
        start_time = time.time()
        try:
            response = submitter.submit(batch, upload_id)
        except Exception as e:
            logger.error("batch %d/%d raised: %s", batch.index + 1, len(batches), e)
            raise BatchSubmissionError(batch.index, str(e), result) from e
        finally:
            end_time = time.time()
            if metrics_callback is not None:
                metrics_callback(BatchMetrics(
                    batch_index=batch.index,
                    batch_size=len(batch),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                ))

        if not response.success:
            # success=false はバッチ全体の失敗として扱う (部分成功は数えない)
            detail = response.error_details[0].error if response.error_details else "backend reported failure"
            logger.error("batch %d/%d rejected: %s", batch.index + 1, len(batches), detail)
            raise BatchSubmissionError(batch.index, detail, result)

        result = result.add(batch, response)
        logger.debug(
            "batch %d/%d rows=%d inserted=%d failed=%d",
            batch.index + 1, len(batches), len(batch), response.inserted_count, response.failed_count,
        )
        if on_progress is not None:
            on_progress(result.progress_percent, result)

    return result
