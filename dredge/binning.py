"""Grid binning of comparison records over the MA plot.

Records are assigned to bins per axis by walking the comparison's
pre-sorted views once, so a full binning pass costs O(records + bins)
instead of testing every record against every bin.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Callable, Sequence

from dredge.core.scale import ScaleModel
from dredge.core.types import (
    FIELD_ACCESSORS,
    Bin,
    PairwiseComparison,
    SortedRecords,
    TranscriptRecord,
    is_defined,
)
from dredge.selection import BrushSelection

Predicate = Callable[[TranscriptRecord], bool]


@dataclass(frozen=True)
class AxisBin:
    """Data interval ``[lo, hi)`` of one axis cell and its pixel bounds.

    ``p_lo`` is the pixel where ``lo`` is drawn, ``p_hi`` the pixel of ``hi``.
    """

    lo: float
    hi: float
    p_lo: int
    p_hi: int


def axis_bins(scale: ScaleModel, unit: float) -> list[AxisBin]:
    """Split a scale's pixel range into cells of ``unit`` pixels.

    Bins are returned in ascending data order. The outermost bounds are
    clamped to the domain extrema so the grid always covers the domain.
    """
    if unit <= 0:
        raise ValueError("unit must be positive.")
    r0, r1 = scale.range()
    p_min, p_max = min(r0, r1), max(r0, r1)
    n_bins = int(math.floor((p_max - p_min) / float(unit)))
    if n_bins <= 0:
        return []

    pixel_edges = [p_min + k * float(unit) for k in range(n_bins + 1)]
    data_edges = [float(scale.invert(p)) for p in pixel_edges]

    bins = [
        AxisBin(
            lo=data_edges[k],
            hi=data_edges[k + 1],
            p_lo=int(math.ceil(pixel_edges[k])),
            p_hi=int(math.ceil(pixel_edges[k + 1])),
        )
        for k in range(n_bins)
    ]
    if data_edges[-1] < data_edges[0]:
        bins = [
            AxisBin(lo=b.hi, hi=b.lo, p_lo=b.p_hi, p_hi=b.p_lo) for b in reversed(bins)
        ]

    d0, d1 = scale.domain()
    bins[0] = replace(bins[0], lo=float(min(d0, d1)))
    bins[-1] = replace(bins[-1], hi=float(max(d0, d1)))
    return bins


def assign_axis(sorted_records: SortedRecords, bins: Sequence[AxisBin]) -> dict[str, int]:
    """Map record name to bin index along the field ``sorted_records`` is sorted on.

    Each bin is ``[lo, hi)`` except the last, which is ``[lo, hi]``. Values
    below the first bin or above the last one get no entry.
    """
    if not isinstance(sorted_records, SortedRecords):
        raise TypeError("assign_axis requires a SortedRecords sequence.")
    out: dict[str, int] = {}
    if not bins:
        return out

    getter = FIELD_ACCESSORS[sorted_records.field]
    n = len(sorted_records)
    idx = 0
    first_lo = bins[0].lo
    while idx < n:
        value = getter(sorted_records[idx])
        if not is_defined(value) or value >= first_lo:
            break
        idx += 1

    last = len(bins) - 1
    for i, b in enumerate(bins):
        while idx < n:
            record = sorted_records[idx]
            value = getter(record)
            if not is_defined(value):
                return out
            inside = (b.lo <= value <= b.hi) if i == last else (b.lo <= value < b.hi)
            if not inside:
                break
            out[record.name] = i
            idx += 1
        if idx >= n:
            break
    return out


def p_value_filter(threshold: float) -> Predicate:
    """Predicate keeping records with ``p_value <= threshold``."""
    limit = float(threshold)
    return lambda r: r.p_value is not None and r.p_value <= limit


def compute_bins(
    comparison: PairwiseComparison | None,
    predicate: Predicate | None,
    x_scale: ScaleModel,
    y_scale: ScaleModel,
    unit: float = 5,
) -> list[Bin]:
    """Bin a comparison over abundance (x) and fold change (y).

    Returns the grid flattened row-major: one row per fold-change bin, one
    column per abundance bin. Records failing ``predicate`` or falling
    outside either axis domain are in no bin.
    """
    if comparison is None:
        return []
    fc_bins = axis_bins(y_scale, unit)
    ata_bins = axis_bins(x_scale, unit)
    if not fc_bins or not ata_bins:
        return []

    keep = predicate if predicate is not None else (lambda _r: True)
    fc_by_name = assign_axis(comparison.fc_sorted.filter(keep), fc_bins)
    ata_by_name = assign_axis(comparison.ata_sorted.filter(keep), ata_bins)

    grid: list[list[list[TranscriptRecord]]] = [
        [[] for _ in ata_bins] for _ in fc_bins
    ]
    for name, record in comparison.items():
        fc_idx = fc_by_name.get(name)
        ata_idx = ata_by_name.get(name)
        if fc_idx is not None and ata_idx is not None:
            grid[fc_idx][ata_idx].append(record)

    return [
        Bin(
            x0=ata.p_lo,
            x1=ata.p_hi,
            y0=fc.p_lo,
            y1=fc.p_hi,
            fc_min=fc.lo,
            fc_max=fc.hi,
            ata_min=ata.lo,
            ata_max=ata.hi,
            transcripts=tuple(grid[i][j]),
        )
        for i, fc in enumerate(fc_bins)
        for j, ata in enumerate(ata_bins)
    ]


def find_bin_at(bins: Sequence[Bin], x: float, y: float) -> Bin | None:
    """Bin whose pixel rectangle contains ``(x, y)``; edges are half-open."""
    for b in bins:
        x_lo, x_hi = min(b.x0, b.x1), max(b.x0, b.x1)
        y_lo, y_hi = min(b.y0, b.y1), max(b.y0, b.y1)
        if x_lo <= x < x_hi and y_lo <= y < y_hi:
            return b
    return None


def bins_in_brush(bins: Sequence[Bin], brush: BrushSelection) -> list[Bin]:
    """Non-empty bins whose data rectangle overlaps the brush."""
    return [
        b
        for b in bins
        if b.transcripts
        and b.ata_max >= brush.min_ata
        and b.ata_min <= brush.max_ata
        and b.fc_max >= brush.min_fc
        and b.fc_min <= brush.max_fc
    ]


def brush_from_pixels(
    x_scale: ScaleModel,
    y_scale: ScaleModel,
    extent: tuple[tuple[float, float], tuple[float, float]],
    places: int = 3,
) -> BrushSelection:
    """Convert a pixel brush ``((x0, y0), (x1, y1))`` into data coordinates."""
    (px0, py0), (px1, py1) = extent
    ata = sorted((x_scale.invert(px0), x_scale.invert(px1)))
    fc = sorted((y_scale.invert(py0), y_scale.invert(py1)))
    return BrushSelection(
        min_ata=round(float(ata[0]), places),
        max_fc=round(float(fc[1]), places),
        max_ata=round(float(ata[1]), places),
        min_fc=round(float(fc[0]), places),
    )
