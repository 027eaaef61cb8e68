from __future__ import annotations

from dataclasses import dataclass

"""Reference data models (floors, processes, categories)."""

__all__ = [
    "ReferenceItem",
    "ReferenceSet",
]


@dataclass(frozen=True)
class ReferenceItem:
    id: str
    name: str


@dataclass(frozen=True)
class ReferenceSet:
    """Read-only lookup data for one import session.

    Tuple order is the order rows came back from the database and is the
    tie-break order for fuzzy matching.
    """
    floors: tuple[ReferenceItem, ...] = ()
    processes: tuple[ReferenceItem, ...] = ()
    categories: tuple[ReferenceItem, ...] = ()

    @staticmethod
    def from_rows(
        floors: list[tuple[object, object]],
        processes: list[tuple[object, object]],
        categories: list[tuple[object, object]],
    ) -> ReferenceSet:
        """Build from (id, name) rows. Ids are kept as strings (uuid columns)."""
        def _items(rows: list[tuple[object, object]]) -> tuple[ReferenceItem, ...]:
            return tuple(ReferenceItem(id=str(r[0]), name=str(r[1])) for r in rows if r[1] is not None)

        return ReferenceSet(
            floors=_items(floors),
            processes=_items(processes),
            categories=_items(categories),
        )
