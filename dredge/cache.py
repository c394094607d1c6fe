"""Session-scoped cache of loaded pairwise comparisons."""

from __future__ import annotations

from typing import Iterator

from dredge.core.types import PairwiseComparison


def pair_key(treatment_a: str, treatment_b: str) -> str:
    """Cache key shared by both orientations of a treatment pair."""
    first, second = sorted((str(treatment_a), str(treatment_b)))
    return f"{first},{second}"


class ComparisonCache:
    """Append-only store of comparisons keyed by unordered treatment pair.

    Entries are never replaced: when two loads of the same pair finish, the
    first stored comparison wins and is returned to both callers.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PairwiseComparison] = {}

    def get(self, treatment_a: str, treatment_b: str) -> PairwiseComparison | None:
        """Return the cached comparison oriented as ``treatment_a`` vs ``treatment_b``."""
        cached = self._entries.get(pair_key(treatment_a, treatment_b))
        if cached is None:
            return None
        if cached.treatment_a == str(treatment_a):
            return cached
        return cached.reversed()

    def put(self, comparison: PairwiseComparison) -> PairwiseComparison:
        key = pair_key(comparison.treatment_a, comparison.treatment_b)
        stored = self._entries.setdefault(key, comparison)
        if stored.treatment_a == comparison.treatment_a:
            return stored
        return stored.reversed()

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return pair_key(*pair) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
