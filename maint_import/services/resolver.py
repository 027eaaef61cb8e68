from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from ..models.reference import ReferenceItem

"""Free-text -> reference id resolution for floors and processes.

Resolution order for one input value:
1. normalize (lowercase, trim, strip non-word characters, collapse spaces)
2. an "unset" token (e.g. "NA" for process) short-circuits to UNSET
3. synonym substitution ("gf" -> "ground floor")
4. exact match against normalized reference names
5. substring match in either direction

Substring candidates are taken in reference table order ("first" policy), so
"1" can land on "10th floor" if that row comes first. The "closest" policy
instead prefers the candidate whose length is nearest to the input, table
order breaking ties.
"""

__all__ = [
    "FuzzyResolver",
    "MATCH_POLICIES",
    "Resolution",
    "ResolutionStatus",
    "normalize_name",
]

MATCH_POLICIES = ("first", "closest")

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WS_RE = re.compile(r"\s+")


def normalize_name(text: object) -> str:
    if text is None:
        return ""
    lowered = str(text).lower().strip()
    stripped = _NON_WORD_RE.sub("", lowered)
    return _WS_RE.sub(" ", stripped).strip()


class ResolutionStatus(Enum):
    RESOLVED = "resolved"
    UNSET = "unset"  # intentionally empty, e.g. process "NA"
    UNRESOLVED = "unresolved"
    EMPTY = "empty"  # nothing left after normalization


@dataclass(frozen=True)
class Resolution:
    status: ResolutionStatus
    id: str | None = None
    matched_name: str | None = None

    @property
    def is_error(self) -> bool:
        return self.status is ResolutionStatus.UNRESOLVED


class FuzzyResolver:
    """Resolve one kind of reference data (floors or processes).

    Tables are normalized once at construction; resolve() has no side effects
    and returns the same answer for the same input.
    """

    def __init__(
        self,
        items: Sequence[ReferenceItem],
        synonyms: Mapping[str, str] | None = None,
        unset_values: Iterable[str] = (),
        policy: str = "first",
    ) -> None:
        if policy not in MATCH_POLICIES:
            raise ValueError(f"unknown match policy: {policy!r}")
        self.policy = policy
        self._items = tuple(items)
        self._normalized = [(normalize_name(i.name), i) for i in self._items]
        self._synonyms = {
            normalize_name(k): normalize_name(v) for k, v in (synonyms or {}).items()
        }
        self._unset = frozenset(normalize_name(v) for v in unset_values)

    @property
    def valid_names(self) -> list[str]:
        return [i.name for i in self._items]

    def resolve(self, text: object) -> Resolution:
        value = normalize_name(text)
        if not value:
            return Resolution(ResolutionStatus.EMPTY)
        if value in self._unset:
            return Resolution(ResolutionStatus.UNSET)
        value = self._synonyms.get(value, value)

        for name, item in self._normalized:
            if name == value:
                return Resolution(ResolutionStatus.RESOLVED, item.id, item.name)

        candidates = [
            (name, item) for name, item in self._normalized
            if name and (value in name or name in value)
        ]
        if not candidates:
            return Resolution(ResolutionStatus.UNRESOLVED)
        if self.policy == "closest":
            # min() は同値なら先頭を返すのでテーブル順が維持される
            _, item = min(candidates, key=lambda c: abs(len(c[0]) - len(value)))
        else:
            _, item = candidates[0]
        return Resolution(ResolutionStatus.RESOLVED, item.id, item.name)

    def resolve_id(self, text: object) -> str | None:
        return self.resolve(text).id
