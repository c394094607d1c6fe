"""Core data types and scale models."""

from dredge.core.scale import LinearScale, ScaleModel
from dredge.core.types import (
    Bin,
    PairwiseComparison,
    SortedRecords,
    SortField,
    SortOrder,
    SortSpec,
    Treatment,
    TranscriptRecord,
)

__all__ = [
    "Bin",
    "LinearScale",
    "PairwiseComparison",
    "ScaleModel",
    "SortField",
    "SortOrder",
    "SortSpec",
    "SortedRecords",
    "Treatment",
    "TranscriptRecord",
]
