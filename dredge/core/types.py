"""Typed containers for pairwise comparisons, sorted views and plot bins."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Iterable, Iterator

import numpy as np
import pandas as pd


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortField(str, Enum):
    """Closed set of record fields a table can be sorted on."""

    NAME = "name"
    P_VALUE = "pValue"
    LOG_FC = "logFC"
    LOG_ATA = "logATA"
    TREATMENT_A_MEAN = "treatmentA_AbundanceMean"
    TREATMENT_A_MEDIAN = "treatmentA_AbundanceMedian"
    TREATMENT_B_MEAN = "treatmentB_AbundanceMean"
    TREATMENT_B_MEDIAN = "treatmentB_AbundanceMedian"


@dataclass(frozen=True)
class Treatment:
    """One experimental condition and the abundance columns of its replicates."""

    key: str
    label: str
    replicates: tuple[str, ...] = ()


@dataclass(frozen=True)
class TranscriptRecord:
    """Differential expression of one transcript between treatments A and B.

    A record built from a name alone (all numeric fields ``None``) is a
    placeholder for a transcript absent from the loaded comparison.
    """

    name: str
    log_fc: float | None = None
    log_ata: float | None = None
    p_value: float | None = None
    treatment_a_abundance_mean: float | None = None
    treatment_a_abundance_median: float | None = None
    treatment_b_abundance_mean: float | None = None
    treatment_b_abundance_median: float | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.log_fc is None and self.log_ata is None and self.p_value is None

    def flipped(self) -> "TranscriptRecord":
        """Return the same record seen from the B-vs-A direction."""
        return replace(
            self,
            log_fc=None if self.log_fc is None else -self.log_fc,
            treatment_a_abundance_mean=self.treatment_b_abundance_mean,
            treatment_a_abundance_median=self.treatment_b_abundance_median,
            treatment_b_abundance_mean=self.treatment_a_abundance_mean,
            treatment_b_abundance_median=self.treatment_a_abundance_median,
        )

    def to_row(self) -> dict[str, Any]:
        return {f.value: FIELD_ACCESSORS[f](self) for f in SortField}


FIELD_ACCESSORS: dict[SortField, Callable[[TranscriptRecord], Any]] = {
    SortField.NAME: lambda r: r.name,
    SortField.P_VALUE: lambda r: r.p_value,
    SortField.LOG_FC: lambda r: r.log_fc,
    SortField.LOG_ATA: lambda r: r.log_ata,
    SortField.TREATMENT_A_MEAN: lambda r: r.treatment_a_abundance_mean,
    SortField.TREATMENT_A_MEDIAN: lambda r: r.treatment_a_abundance_median,
    SortField.TREATMENT_B_MEAN: lambda r: r.treatment_b_abundance_mean,
    SortField.TREATMENT_B_MEDIAN: lambda r: r.treatment_b_abundance_median,
}


def is_defined(value: Any) -> bool:
    """``None`` and NaN both count as an unknown field value."""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return True


class SortedRecords(Sequence):
    """Records in ascending order of one field.

    Construction always sorts (stable, unknown values last), so a
    ``SortedRecords`` is ascending on ``field`` by construction. Filtering
    keeps that order without re-sorting.
    """

    __slots__ = ("_field", "_records")

    def __init__(self, records: Iterable[TranscriptRecord], field: SortField | str):
        self._field = SortField(field)
        getter = FIELD_ACCESSORS[self._field]
        if self._field is SortField.NAME:
            keyed = lambda r: (0, getter(r).lower())  # noqa: E731
        else:
            keyed = lambda r: (0, getter(r)) if is_defined(getter(r)) else (1, 0.0)  # noqa: E731
        self._records: tuple[TranscriptRecord, ...] = tuple(sorted(records, key=keyed))

    @classmethod
    def _from_ordered(
        cls, records: tuple[TranscriptRecord, ...], field: SortField
    ) -> "SortedRecords":
        out = cls.__new__(cls)
        out._field = field
        out._records = records
        return out

    @property
    def field(self) -> SortField:
        return self._field

    def filter(self, predicate: Callable[[TranscriptRecord], bool]) -> "SortedRecords":
        return SortedRecords._from_ordered(
            tuple(r for r in self._records if predicate(r)), self._field
        )

    def values(self) -> np.ndarray:
        getter = FIELD_ACCESSORS[self._field]
        return np.asarray(
            [getter(r) if is_defined(getter(r)) else np.nan for r in self._records],
            dtype=float,
        )

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return SortedRecords._from_ordered(self._records[idx], self._field)
        return self._records[idx]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TranscriptRecord]:
        return iter(self._records)

    def __repr__(self) -> str:
        return f"SortedRecords(field={self._field.value!r}, n={len(self._records)})"


def smallest_positive_p_value(p_values: Iterable[float | None]) -> float:
    """Smallest strictly positive, finite p-value, capped at 1.0."""
    arr = np.asarray(
        [np.nan if p is None else p for p in p_values], dtype=float
    )
    arr = arr[np.isfinite(arr) & (arr > 0.0)]
    if arr.size == 0:
        return 1.0
    return float(min(1.0, arr.min()))


def _padded_extent(values: np.ndarray) -> tuple[float, float]:
    """``(min, max)`` of finite values, widened by 1 on each side when flat."""
    lo, hi = float(values.min()), float(values.max())
    if lo == hi:
        return lo - 1.0, hi + 1.0
    return lo, hi


class PairwiseComparison(Mapping):
    """Read-only mapping of transcript name to record for one treatment pair."""

    def __init__(
        self,
        treatment_a: str,
        treatment_b: str,
        records: Mapping[str, TranscriptRecord],
        *,
        min_p_value: float | None = None,
        anomalies: Iterable[Any] = (),
    ):
        self._treatment_a = str(treatment_a)
        self._treatment_b = str(treatment_b)
        self._records: dict[str, TranscriptRecord] = dict(records)
        if min_p_value is None:
            min_p_value = smallest_positive_p_value(
                r.p_value for r in self._records.values()
            )
        self._min_p_value = float(min_p_value)
        self._fc_sorted = SortedRecords(self._records.values(), SortField.LOG_FC)
        self._ata_sorted = SortedRecords(self._records.values(), SortField.LOG_ATA)
        self._anomalies = tuple(anomalies)

    @property
    def treatment_a(self) -> str:
        return self._treatment_a

    @property
    def treatment_b(self) -> str:
        return self._treatment_b

    @property
    def min_p_value(self) -> float:
        return self._min_p_value

    @property
    def fc_sorted(self) -> SortedRecords:
        return self._fc_sorted

    @property
    def ata_sorted(self) -> SortedRecords:
        return self._ata_sorted

    @property
    def anomalies(self) -> tuple[Any, ...]:
        return self._anomalies

    def __getitem__(self, name: str) -> TranscriptRecord:
        return self._records[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def reversed(self) -> "PairwiseComparison":
        """Same comparison seen as B vs A."""
        return PairwiseComparison(
            self._treatment_b,
            self._treatment_a,
            {name: rec.flipped() for name, rec in self._records.items()},
            min_p_value=self._min_p_value,
            anomalies=self._anomalies,
        )

    def abundance_limits(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """Finite ``(log_ata, log_fc)`` extents, used as default plot domains."""
        ata = self._ata_sorted.values()
        fc = self._fc_sorted.values()
        ata = ata[np.isfinite(ata)]
        fc = fc[np.isfinite(fc)]
        if ata.size == 0 or fc.size == 0:
            return (0.0, 1.0), (-1.0, 1.0)
        return _padded_extent(ata), _padded_extent(fc)

    def to_frame(self) -> pd.DataFrame:
        columns = [f.value for f in SortField]
        return pd.DataFrame(
            [r.to_row() for r in self._records.values()], columns=columns
        )

    def __repr__(self) -> str:
        return (
            f"PairwiseComparison({self._treatment_a!r} vs {self._treatment_b!r}, "
            f"n={len(self._records)})"
        )


@dataclass(frozen=True)
class SortSpec:
    field: SortField = SortField.NAME
    order: SortOrder = SortOrder.ASC

    @staticmethod
    def parse(field: str, order: str = "asc") -> "SortSpec":
        return SortSpec(field=SortField(field), order=SortOrder(str(order).lower()))


@dataclass(frozen=True)
class Bin:
    """One grid cell of the MA plot.

    - ``x0``/``x1``: pixel bounds along the abundance axis.
    - ``y0``/``y1``: pixel bounds along the fold-change axis.
    - ``fc_min``/``fc_max`` and ``ata_min``/``ata_max``: data bounds.
    """

    x0: int
    x1: int
    y0: int
    y1: int
    fc_min: float
    fc_max: float
    ata_min: float
    ata_max: float
    transcripts: tuple[TranscriptRecord, ...] = ()

    @property
    def count(self) -> int:
        return len(self.transcripts)

    @property
    def names(self) -> frozenset[str]:
        return frozenset(t.name for t in self.transcripts)
