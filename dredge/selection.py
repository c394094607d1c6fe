"""Derive the displayed table rows from the active selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence, Union

from dredge.core.types import (
    PairwiseComparison,
    SortField,
    SortOrder,
    SortSpec,
    TranscriptRecord,
)


@dataclass(frozen=True)
class BrushSelection:
    """Rectangle in data coordinates, bounds inclusive."""

    min_ata: float
    max_fc: float
    max_ata: float
    min_fc: float

    @staticmethod
    def from_sequence(values: Sequence[float]) -> "BrushSelection":
        """Build from ``[min_ata, max_fc, max_ata, min_fc]``."""
        if len(values) != 4:
            raise ValueError("A brush needs exactly four bounds.")
        min_ata, max_fc, max_ata, min_fc = (float(v) for v in values)
        return BrushSelection(min_ata=min_ata, max_fc=max_fc, max_ata=max_ata, min_fc=min_fc)

    def contains(self, record: TranscriptRecord, threshold: float) -> bool:
        return (
            _within(0.0, threshold, record.p_value)
            and _within(self.min_ata, self.max_ata, record.log_ata)
            and _within(self.min_fc, self.max_fc, record.log_fc)
        )


@dataclass(frozen=True)
class SelectedBin:
    names: frozenset[str]


@dataclass(frozen=True)
class HoveredBin:
    names: frozenset[str]


@dataclass(frozen=True)
class WatchList:
    names: frozenset[str] = frozenset()


Selection = Union[BrushSelection, SelectedBin, HoveredBin, WatchList]


def _within(lo: float, hi: float, value: float | None) -> bool:
    return value is not None and lo <= value <= hi


def resolve_selection(
    *,
    brush: BrushSelection | None = None,
    selected_bin: Iterable[str] | None = None,
    hovered_bin: Iterable[str] | None = None,
    saved: Iterable[str] = (),
) -> Selection:
    """Pick the one authoritative selection: brush, selected bin, hovered bin, watch list."""
    if brush is not None:
        return brush
    if selected_bin is not None:
        return SelectedBin(frozenset(selected_bin))
    if hovered_bin is not None:
        return HoveredBin(frozenset(hovered_bin))
    return WatchList(frozenset(saved))


def eligible_names(
    selection: Selection, comparison: PairwiseComparison, threshold: float
) -> frozenset[str]:
    if isinstance(selection, BrushSelection):
        return frozenset(
            name for name, record in comparison.items()
            if selection.contains(record, threshold)
        )
    if isinstance(selection, (SelectedBin, HoveredBin, WatchList)):
        return selection.names
    raise TypeError(f"Unsupported selection: {type(selection).__name__}")


def _name_after(a: str, b: str, order: SortOrder) -> bool:
    """True when name ``a`` sorts strictly after ``b`` under ``order``."""
    a, b = a.lower(), b.lower()
    return a > b if order is SortOrder.ASC else a < b


def select_display(
    sorted_records: Sequence[TranscriptRecord],
    comparison: PairwiseComparison | None,
    selection: Selection,
    threshold: float,
    sort: SortSpec = SortSpec(),
    canonical_label: Callable[[str], str] | None = None,
) -> list[TranscriptRecord]:
    """Rows to display for the current selection, in table order.

    Rows keep the order of ``sorted_records``. Names not in the comparison
    go through ``canonical_label`` first; those still missing are shown as
    placeholder rows: appended at the end when sorting on a numeric field,
    merged into place when sorting by name.
    """
    if comparison is None:
        return []

    listed = eligible_names(selection, comparison, threshold)
    if canonical_label is not None:
        listed = frozenset(
            name if name in comparison else canonical_label(name) for name in listed
        )
    displayed = [r for r in sorted_records if r.name in listed]
    shown = {r.name for r in displayed}

    extras = {
        name: TranscriptRecord(name=name)
        for name in listed
        if name not in comparison and name not in shown
    }

    order = SortOrder(sort.order)
    placeholders = sorted(
        extras.values(),
        key=lambda r: (r.name.lower(), r.name),
        reverse=order is SortOrder.DESC,
    )

    if SortField(sort.field) is not SortField.NAME:
        return displayed + placeholders

    for placeholder in placeholders:
        i = 0
        for row in displayed:
            if _name_after(placeholder.name, row.name, order):
                i += 1
            else:
                break
        displayed.insert(i, placeholder)
    return displayed
