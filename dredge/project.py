"""Project model: treatments, transcript aliases, abundances and the comparison cache."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

import numpy as np
import pandas as pd

from dredge.cache import ComparisonCache
from dredge.config import ProjectConfig
from dredge.core.types import Treatment
from dredge.errors import UnknownTreatment
from dredge.utils import normalize_label, resolve_location

logger = logging.getLogger(__name__)


class Project:
    """One DrEdGE project as seen by the comparison loader.

    Args:
        config: Parsed project configuration.
        abundances: Transcript x replicate abundance matrix. When omitted and
            ``config.abundances`` is set, it is read on construction.
        cache: Comparison cache; a fresh one is created per project by default.
    """

    def __init__(
        self,
        config: ProjectConfig,
        *,
        abundances: pd.DataFrame | None = None,
        cache: ComparisonCache | None = None,
    ):
        self.config = config
        self.treatments: dict[str, Treatment] = {
            key: Treatment(key=key, label=spec.label, replicates=spec.replicates)
            for key, spec in config.treatments.items()
        }
        if abundances is None and config.abundances is not None:
            abundances = read_abundance_matrix(
                resolve_location(config.base, config.abundances)
            )
        self._abundances = abundances
        self._aliases = _build_alias_index(config.transcript_aliases)
        self.comparison_cache = cache if cache is not None else ComparisonCache()

    @classmethod
    def from_config(cls, path: str | Path) -> "Project":
        return cls(ProjectConfig.from_file(path))

    @property
    def label(self) -> str:
        return self.config.label

    @property
    def abundances(self) -> pd.DataFrame | None:
        return self._abundances

    def treatment(self, key: str) -> Treatment:
        try:
            return self.treatments[str(key)]
        except KeyError:
            raise UnknownTreatment(str(key)) from None

    def canonical_label(self, raw_id: str) -> str:
        """Fold a transcript id or alias onto its canonical name."""
        key = str(raw_id).strip()
        if key in self._aliases:
            return self._aliases[key]
        return self._aliases.get(normalize_label(key), key)

    def abundance_samples(self, treatment_key: str, transcript: str) -> np.ndarray | None:
        """Replicate abundances of ``transcript`` in one treatment, or ``None``."""
        if self._abundances is None:
            return None
        treatment = self.treatment(treatment_key)
        columns = [c for c in treatment.replicates if c in self._abundances.columns]
        if not columns or transcript not in self._abundances.index:
            return None
        row = self._abundances.loc[transcript, columns]
        if isinstance(row, pd.DataFrame):
            row = row.iloc[0]
        values = pd.to_numeric(row, errors="coerce").to_numpy(dtype=float)
        values = values[np.isfinite(values)]
        if values.size == 0:
            return None
        return values

    def default_pair(self) -> tuple[str, str]:
        """First two treatments in project order."""
        keys = list(self.treatments)
        if len(keys) < 2:
            raise ValueError("A project needs at least two treatments to compare.")
        return keys[0], keys[1]

    def __repr__(self) -> str:
        return f"Project({self.label!r}, treatments={list(self.treatments)})"


def _build_alias_index(aliases: Mapping[str, tuple[str, ...]]) -> dict[str, str]:
    index: dict[str, str] = {}
    for canonical, alias_list in aliases.items():
        for alias in (canonical, *alias_list):
            for key in (str(alias).strip(), normalize_label(alias)):
                previous = index.setdefault(key, canonical)
                if previous != canonical:
                    logger.warning(
                        "Alias collision: alias=%s canonical=%s kept=%s",
                        alias,
                        canonical,
                        previous,
                    )
    return index


def read_abundance_matrix(location: str) -> pd.DataFrame:
    """Read a tab-separated abundance matrix (first column = transcript name)."""
    frame = pd.read_csv(location, sep="\t", index_col=0)
    frame.index = frame.index.astype(str)
    frame.columns = [str(c) for c in frame.columns]
    logger.info(
        "Loaded abundance matrix: location=%s transcripts=%d replicates=%d",
        location,
        frame.shape[0],
        frame.shape[1],
    )
    return frame
