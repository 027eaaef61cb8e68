from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""ParsedRequest: one validated row, ready for the bulk create call."""

__all__ = [
    "PRIORITIES",
    "ParsedRequest",
]

PRIORITIES: tuple[str, ...] = ("urgent", "high", "medium", "low")


@dataclass(frozen=True)
class ParsedRequest:
    """A validated row. Maps to exactly one backend maintenance request."""
    row_number: int
    title: str
    description: str
    location: str
    priority: str  # one of PRIORITIES
    floor_id: str | None = None
    process_id: str | None = None
    category_id: str | None = None
    created_at: str | None = None  # ISO8601 UTC, 'Z' suffix

    def to_payload(self) -> dict[str, Any]:
        """Render the row shape expected by the bulk create procedure.

        Optional keys are omitted rather than sent as null.
        """
        payload: dict[str, Any] = {
            "row_number": self.row_number,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "priority": self.priority,
        }
        optional = {
            "building_floor_id": self.floor_id,
            "process_id": self.process_id,
            "main_category_id": self.category_id,
            "created_at": self.created_at,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        return payload
