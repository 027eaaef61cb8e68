from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence

from ..models.reference import ReferenceItem

"""Keyword based category and priority inference for issue descriptions.

Static tables, no learning. Keywords match case-insensitively at the start of
a word: "wire" matches "wires" but "ac" does not match inside "replace".
"""

__all__ = [
    "Classifier",
]


def _compile(keywords: Iterable[str]) -> re.Pattern[str] | None:
    words = [k.strip() for k in keywords if k and k.strip()]
    if not words:
        return None
    alternatives = "|".join(re.escape(w) for w in words)
    return re.compile(rf"\b(?:{alternatives})", re.IGNORECASE)


class Classifier:
    def __init__(
        self,
        categories: Sequence[ReferenceItem],
        category_keywords: Mapping[str, Sequence[str]],
        urgent_keywords: Sequence[str],
        high_keywords: Sequence[str],
        fallback_category: str | None = "Other",
    ) -> None:
        self._categories = tuple(categories)
        self._groups: list[tuple[str, re.Pattern[str]]] = []
        for group, words in category_keywords.items():
            pattern = _compile(words)
            if pattern is not None:
                self._groups.append((group, pattern))
        self._urgent = _compile(urgent_keywords)
        self._high = _compile(high_keywords)
        self._fallback_id = self._find_category(fallback_category, exact=True) if fallback_category else None

    def _find_category(self, name: str, exact: bool = False) -> str | None:
        target = name.casefold()
        for c in self._categories:
            cname = c.name.casefold()
            if (cname == target) if exact else (target in cname):
                return c.id
        return None

    def category_group(self, description: str | None) -> str | None:
        """Name of the first keyword group that fires, or None."""
        if not description:
            return None
        for group, pattern in self._groups:
            if pattern.search(description):
                return group
        return None

    def category_for(self, description: str | None) -> str | None:
        group = self.category_group(description)
        if group is not None:
            category_id = self._find_category(group)
            if category_id is not None:
                return category_id
        return self._fallback_id

    def priority_for(self, description: str | None) -> str:
        if description:
            if self._urgent is not None and self._urgent.search(description):
                return "urgent"
            if self._high is not None and self._high.search(description):
                return "high"
        return "medium"
