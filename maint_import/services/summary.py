from __future__ import annotations

from ..models.processing_result import ImportResult
from .pipeline import ParseOutcome

"""SUMMARY line rendering.

Format:
SUMMARY rows={total} valid={valid} invalid={invalid_rows} batches={done}/{total}
inserted={inserted} failed={failed} elapsed_sec={elapsed}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # 指数表記を避ける
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return f"{value:.3f}".rstrip('0').rstrip('.')


def render_summary_line(outcome: ParseOutcome, result: ImportResult | None, elapsed_seconds: float) -> str:
    """Render a SUMMARY line.

    Examples:
        >>> outcome = ParseOutcome(requests=(), errors=(), total_rows=0)
        >>> render_summary_line(outcome, None, 2.0)
        'SUMMARY rows=0 valid=0 invalid=0 batches=0/0 inserted=0 failed=0 elapsed_sec=2'
    """
    done = result.batches_completed if result else 0
    total = result.total_batches if result else 0
    inserted = result.success_count if result else 0
    failed = result.error_count if result else 0
    return (
        f"SUMMARY rows={outcome.total_rows} "
        f"valid={len(outcome.requests)} "
        f"invalid={len(outcome.error_rows)} "
        f"batches={done}/{total} "
        f"inserted={inserted} "
        f"failed={failed} "
        f"elapsed_sec={_format_number(elapsed_seconds)}"
    )
