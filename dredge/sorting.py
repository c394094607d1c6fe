"""Table ordering of comparison records."""

from __future__ import annotations

from typing import Iterable

from dredge.core.types import (
    FIELD_ACCESSORS,
    PairwiseComparison,
    SortField,
    SortOrder,
    SortSpec,
    TranscriptRecord,
    is_defined,
)


def sort_key(field: SortField | str):
    """Key function for ``field``; names compare case-insensitively."""
    field = SortField(field)
    getter = FIELD_ACCESSORS[field]
    if field is SortField.NAME:
        return lambda r: r.name.lower()
    return getter


def sort_records(
    records: PairwiseComparison | Iterable[TranscriptRecord] | None,
    field: SortField | str = SortField.NAME,
    order: SortOrder | str = SortOrder.ASC,
) -> list[TranscriptRecord]:
    """Stable sort of ``records`` by one field.

    Records whose field is unknown (``None`` or NaN) always come after the
    records where it is known, for both orders, and keep their input order.
    """
    if records is None:
        return []
    if isinstance(records, PairwiseComparison):
        records = records.values()
    key = sort_key(field)
    descending = SortOrder(order) is SortOrder.DESC

    known: list[TranscriptRecord] = []
    unknown: list[TranscriptRecord] = []
    for record in records:
        (known if is_defined(key(record)) else unknown).append(record)

    # sorted(reverse=True) keeps equal keys in input order.
    return sorted(known, key=key, reverse=descending) + unknown


def sort_by_spec(
    records: PairwiseComparison | Iterable[TranscriptRecord] | None, spec: SortSpec
) -> list[TranscriptRecord]:
    return sort_records(records, spec.field, spec.order)
