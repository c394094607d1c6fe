from __future__ import annotations

import math

from dredge.cache import ComparisonCache, pair_key
from dredge.core.types import PairwiseComparison, TranscriptRecord


def _comparison(a="A", b="B", fc=1.5) -> PairwiseComparison:
    record = TranscriptRecord(
        "g1",
        log_fc=fc,
        log_ata=4.0,
        p_value=0.02,
        treatment_a_abundance_mean=1.0,
        treatment_a_abundance_median=1.5,
        treatment_b_abundance_mean=8.0,
        treatment_b_abundance_median=9.0,
    )
    return PairwiseComparison(a, b, {"g1": record})


def test_pair_key_is_unordered():
    assert pair_key("B", "A") == pair_key("A", "B") == "A,B"


def test_get_serves_both_orientations():
    cache = ComparisonCache()
    assert cache.get("A", "B") is None
    stored = cache.put(_comparison())

    assert cache.get("A", "B") is stored
    flipped = cache.get("B", "A")
    assert (flipped.treatment_a, flipped.treatment_b) == ("B", "A")
    assert flipped["g1"].log_fc == -1.5
    assert flipped["g1"].log_ata == 4.0
    assert flipped["g1"].treatment_a_abundance_mean == 8.0
    assert flipped["g1"].treatment_b_abundance_median == 1.5
    assert flipped.min_p_value == stored.min_p_value
    assert ("B", "A") in cache
    assert ("A", "C") not in cache
    assert "A,B" not in cache


def test_first_write_wins():
    cache = ComparisonCache()
    first = cache.put(_comparison(fc=1.0))
    second = cache.put(_comparison(fc=9.0))
    assert second is first
    assert len(cache) == 1
    assert list(cache) == ["A,B"]

    other_way = cache.put(_comparison("B", "A", fc=3.0))
    assert other_way.treatment_a == "B"
    assert other_way["g1"].log_fc == -1.0


def test_reversed_views_are_resorted():
    records = {
        "up": TranscriptRecord("up", log_fc=2.0, log_ata=1.0, p_value=0.1),
        "down": TranscriptRecord("down", log_fc=-3.0, log_ata=2.0, p_value=0.1),
    }
    flipped = PairwiseComparison("A", "B", records).reversed()
    assert [r.name for r in flipped.fc_sorted] == ["up", "down"]
    assert [r.name for r in flipped.ata_sorted] == ["up", "down"]


def test_to_frame_uses_table_column_names():
    frame = _comparison().to_frame()
    assert list(frame.columns[:4]) == ["name", "pValue", "logFC", "logATA"]
    assert frame.loc[0, "treatmentB_AbundanceMedian"] == 9.0


def test_abundance_limits_default_when_empty():
    empty = PairwiseComparison("A", "B", {})
    assert empty.abundance_limits() == ((0.0, 1.0), (-1.0, 1.0))
    assert empty.min_p_value == 1.0
    nan_only = PairwiseComparison(
        "A", "B", {"g": TranscriptRecord("g", log_fc=math.nan, log_ata=math.nan)}
    )
    assert nan_only.abundance_limits() == ((0.0, 1.0), (-1.0, 1.0))


def test_abundance_limits_widen_flat_extents():
    single = _comparison()
    assert single.abundance_limits() == ((3.0, 5.0), (0.5, 2.5))
