"""DrEdGE public API."""

from dredge._version import __version__
from dredge.binning import compute_bins, find_bin_at, p_value_filter
from dredge.core.scale import LinearScale
from dredge.core.types import (
    Bin,
    PairwiseComparison,
    SortField,
    SortOrder,
    SortSpec,
    TranscriptRecord,
)
from dredge.errors import ComparisonFileUnavailable, ParseAnomaly, UnknownTreatment
from dredge.loader import PairwiseComparisonLoader, load_comparison
from dredge.project import Project
from dredge.selection import resolve_selection, select_display
from dredge.sorting import sort_records


def plot_ma_bins(*args, **kwargs):
    """Lazy wrapper to avoid importing matplotlib at import time."""
    from dredge.plotting.ma import plot_ma_bins as _plot_ma_bins

    return _plot_ma_bins(*args, **kwargs)


__all__ = [
    "__version__",
    "Bin",
    "ComparisonFileUnavailable",
    "LinearScale",
    "PairwiseComparison",
    "PairwiseComparisonLoader",
    "ParseAnomaly",
    "Project",
    "SortField",
    "SortOrder",
    "SortSpec",
    "TranscriptRecord",
    "UnknownTreatment",
    "compute_bins",
    "find_bin_at",
    "load_comparison",
    "p_value_filter",
    "plot_ma_bins",
    "resolve_selection",
    "select_display",
    "sort_records",
]
