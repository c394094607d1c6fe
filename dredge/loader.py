"""Load edgeR-style pairwise test tables into canonical comparisons.

A test-result file is tab separated with a header line followed by one row
per transcript: ``id, logFC, logATA, pValue``. Files are direction
sensitive, so both ``A_vs_B`` and ``B_vs_A`` locations are tried; a
comparison built from the ``B_vs_A`` file has its fold changes negated.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Callable, Mapping, Protocol

import numpy as np
import pandas as pd
import requests

from dredge.cache import ComparisonCache
from dredge.config import DuplicatePolicy
from dredge.core.types import PairwiseComparison, Treatment, TranscriptRecord
from dredge.errors import (
    ComparisonFileUnavailable,
    ComparisonParseError,
    ParseAnomaly,
    UnknownTreatment,
)
from dredge.utils import is_url, resolve_location

logger = logging.getLogger(__name__)

PAIRWISE_COLUMNS: tuple[str, ...] = ("id", "logFC", "logATA", "pValue")

Fetcher = Callable[[str], "str | None"]


class ProjectLike(Protocol):
    treatments: Mapping[str, Treatment]
    comparison_cache: ComparisonCache

    def canonical_label(self, raw_id: str) -> str: ...

    def abundance_samples(self, treatment_key: str, transcript: str) -> np.ndarray | None: ...


def fill_template(template: str, treatment_a: str, treatment_b: str) -> str:
    """Substitute ``%A``/``%B`` in one pass so keys containing ``%B`` are left alone."""
    values = {"%A": str(treatment_a), "%B": str(treatment_b)}
    return re.sub(r"%[AB]", lambda m: values[m.group(0)], template)


def fetch_text(location: str) -> str | None:
    """Fetch a text resource, returning ``None`` when it is not available."""
    if location.startswith("file://"):
        location = location[len("file://"):]
    elif is_url(location):
        try:
            response = requests.get(location)
        except requests.exceptions.RequestException as exc:
            logger.info("Fetch failed: location=%s reason=%s", location, exc)
            return None
        if not response.ok:
            logger.info(
                "Fetch failed: location=%s status=%s", location, response.status_code
            )
            return None
        return response.text

    path = Path(location)
    if not path.is_file():
        logger.info("Fetch failed: location=%s reason=missing file", location)
        return None
    return path.read_text(encoding="utf-8")


def read_pairwise_table(text: str) -> tuple[pd.DataFrame, list[ParseAnomaly]]:
    """Parse a test-result table.

    Returns a frame with columns ``line, id, logFC, logATA, pValue`` (numeric
    columns coerced, non-numeric values as NaN) and the anomalies found.
    """
    rows: list[list[str]] = []
    anomalies: list[ParseAnomaly] = []
    lines = text.strip().split("\n")
    for lineno, raw in enumerate(lines[1:], start=2):
        line = raw.rstrip("\r")
        if line.strip() == "":
            continue
        fields = line.split("\t")
        if len(fields) < len(PAIRWISE_COLUMNS):
            anomalies.append(
                ParseAnomaly(
                    line=lineno,
                    transcript=fields[0],
                    kind="short_row",
                    detail=f"expected {len(PAIRWISE_COLUMNS)} fields, got {len(fields)}",
                )
            )
            fields = fields + ["nan"] * (len(PAIRWISE_COLUMNS) - len(fields))
        rows.append([str(lineno), *fields[: len(PAIRWISE_COLUMNS)]])

    frame = pd.DataFrame(rows, columns=["line", *PAIRWISE_COLUMNS])
    frame["line"] = frame["line"].astype(int)
    for col in PAIRWISE_COLUMNS[1:]:
        raw_col = frame[col]
        frame[col] = pd.to_numeric(raw_col, errors="coerce").astype(float)
        bad = frame[col].isna() & (raw_col.str.strip().str.lower() != "nan")
        for idx in np.flatnonzero(bad.to_numpy()):
            anomalies.append(
                ParseAnomaly(
                    line=int(frame["line"].iat[idx]),
                    transcript=str(frame["id"].iat[idx]),
                    kind="non_numeric",
                    detail=f"{col}={raw_col.iat[idx]!r}",
                )
            )
    anomalies.sort(key=lambda a: a.line)
    return frame, anomalies


def _summaries(samples: np.ndarray | None) -> tuple[float | None, float | None]:
    if samples is None:
        return None, None
    arr = np.asarray(samples, dtype=float).ravel()
    if arr.size == 0:
        return None, None
    return float(np.mean(arr)), float(np.median(arr))


def build_comparison(
    frame: pd.DataFrame,
    project: ProjectLike,
    treatment_a: str,
    treatment_b: str,
    *,
    negate_fold_change: bool = False,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.OVERWRITE,
    anomalies: list[ParseAnomaly] | None = None,
) -> PairwiseComparison:
    """Build a comparison from a parsed table.

    Ids are canonicalized through the project; canonical collisions follow
    ``duplicate_policy``. Abundance means/medians come from the project's
    replicate samples.
    """
    found = list(anomalies or [])
    records: dict[str, TranscriptRecord] = {}
    sign = -1.0 if negate_fold_change else 1.0

    for row in frame.itertuples(index=False):
        name = project.canonical_label(row.id)
        if name in records:
            anomaly = ParseAnomaly(
                line=int(row.line),
                transcript=name,
                kind="duplicate",
                detail=f"id {row.id!r} folds onto an earlier row",
            )
            if duplicate_policy is DuplicatePolicy.REJECT:
                raise ComparisonParseError(
                    f"Duplicate transcript '{name}' at line {anomaly.line} "
                    f"({anomaly.detail})."
                )
            found.append(anomaly)
            if duplicate_policy is DuplicatePolicy.KEEP_FIRST:
                continue

        a_mean, a_median = _summaries(project.abundance_samples(treatment_a, name))
        b_mean, b_median = _summaries(project.abundance_samples(treatment_b, name))
        records[name] = TranscriptRecord(
            name=name,
            log_fc=sign * float(row.logFC),
            log_ata=float(row.logATA),
            p_value=float(row.pValue),
            treatment_a_abundance_mean=a_mean,
            treatment_a_abundance_median=a_median,
            treatment_b_abundance_mean=b_mean,
            treatment_b_abundance_median=b_median,
        )

    for anomaly in found:
        logger.warning(
            "Parse anomaly: pair=%s,%s line=%s transcript=%s kind=%s detail=%s",
            treatment_a,
            treatment_b,
            anomaly.line,
            anomaly.transcript,
            anomaly.kind,
            anomaly.detail,
        )

    return PairwiseComparison(treatment_a, treatment_b, records, anomalies=found)


class PairwiseComparisonLoader:
    """Fetch, parse and cache pairwise comparisons for one project.

    Args:
        project: Treatments, canonical labels, abundance samples and cache.
        pairwise_name: Location template with ``%A``/``%B`` placeholders.
        base: Base URL or directory the template is resolved against.
        fetcher: ``location -> text | None``; runs in a worker thread.
        duplicate_policy: Handling of canonical-id collisions.
    """

    def __init__(
        self,
        project: ProjectLike,
        *,
        pairwise_name: str | None = None,
        base: str | Path | None = None,
        fetcher: Fetcher = fetch_text,
        duplicate_policy: DuplicatePolicy | str | None = None,
    ):
        config = getattr(project, "config", None)
        self.project = project
        self.pairwise_name = pairwise_name or getattr(
            config, "pairwise_name", "./pairwise_tests/%A_vs_%B.txt"
        )
        self.base = str(base if base is not None else getattr(config, "base", "."))
        self.fetcher = fetcher
        if duplicate_policy is None:
            duplicate_policy = getattr(config, "duplicate_policy", DuplicatePolicy.OVERWRITE)
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)

    def locations(self, treatment_a: str, treatment_b: str) -> tuple[str, str]:
        """``(A_vs_B, B_vs_A)`` file locations."""
        return (
            resolve_location(self.base, fill_template(self.pairwise_name, treatment_a, treatment_b)),
            resolve_location(self.base, fill_template(self.pairwise_name, treatment_b, treatment_a)),
        )

    async def load(self, treatment_a: str, treatment_b: str) -> PairwiseComparison:
        cache = self.project.comparison_cache
        cached = cache.get(treatment_a, treatment_b)
        if cached is not None:
            logger.debug("Comparison cache hit: pair=%s,%s", treatment_a, treatment_b)
            return cached

        for key in (treatment_a, treatment_b):
            if key not in self.project.treatments:
                raise UnknownTreatment(key)

        location_ab, location_ba = self.locations(treatment_a, treatment_b)
        text_ab, text_ba = await asyncio.gather(
            asyncio.to_thread(self.fetcher, location_ab),
            asyncio.to_thread(self.fetcher, location_ba),
        )

        if text_ab is not None:
            text, negate, source = text_ab, False, location_ab
        elif text_ba is not None:
            text, negate, source = text_ba, True, location_ba
        else:
            raise ComparisonFileUnavailable(location_ab, location_ba)

        frame, anomalies = read_pairwise_table(text)
        comparison = build_comparison(
            frame,
            self.project,
            treatment_a,
            treatment_b,
            negate_fold_change=negate,
            duplicate_policy=self.duplicate_policy,
            anomalies=anomalies,
        )
        logger.info(
            "Loaded comparison: pair=%s,%s source=%s reversed=%s transcripts=%d anomalies=%d",
            treatment_a,
            treatment_b,
            source,
            negate,
            len(comparison),
            len(comparison.anomalies),
        )
        return cache.put(comparison)


def load_comparison(
    project: ProjectLike, treatment_a: str, treatment_b: str, **kwargs
) -> PairwiseComparison:
    """Blocking wrapper around :meth:`PairwiseComparisonLoader.load`."""
    return asyncio.run(PairwiseComparisonLoader(project, **kwargs).load(treatment_a, treatment_b))
