from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pytest  # noqa: E402

from dredge.binning import compute_bins, find_bin_at, p_value_filter  # noqa: E402
from dredge.core.scale import LinearScale  # noqa: E402
from dredge.core.types import PairwiseComparison, TranscriptRecord  # noqa: E402
from dredge.plotting import (  # noqa: E402
    DEFAULT_PLOT_STYLE,
    bin_fill_level,
    bin_size_multiplier,
    plot_ma_bins,
    plot_style_dict,
)
from dredge.selection import BrushSelection  # noqa: E402


def _setup():
    records = [
        TranscriptRecord("g1", log_fc=2.0, log_ata=5.0, p_value=0.01),
        TranscriptRecord("g2", log_fc=-1.0, log_ata=5.2, p_value=0.2),
        TranscriptRecord("g3", log_fc=2.1, log_ata=5.1, p_value=0.03),
    ]
    comparison = PairwiseComparison("ctl", "heat", {r.name: r for r in records})
    x_scale = LinearScale((0.0, 10.0), (0.0, 100.0))
    y_scale = LinearScale((-5.0, 5.0), (100.0, 0.0))
    bins = compute_bins(comparison, p_value_filter(1.0), x_scale, y_scale, 10)
    return comparison, x_scale, y_scale, bins


def test_sparse_bins_shrink():
    assert bin_size_multiplier(1) == pytest.approx(0.35)
    assert bin_size_multiplier(4) == pytest.approx(0.8)
    assert bin_size_multiplier(5) == 1.0


def test_fill_level_clamps_counts():
    assert bin_fill_level(1) == bin_fill_level(5)
    assert bin_fill_level(5) == pytest.approx(305.0 / 450.0)
    assert bin_fill_level(10_000) == pytest.approx(1.0)
    assert bin_fill_level(150, (-500.0, 150.0)) == pytest.approx(1.0)


def test_plot_ma_bins_draws_and_saves(tmp_path: Path):
    comparison, x_scale, y_scale, bins = _setup()
    selected = find_bin_at(bins, 55, 25)
    out_png = tmp_path / "figs" / "ma.png"

    fig, ax = plot_ma_bins(
        bins,
        x_scale,
        y_scale,
        out_png,
        comparison=comparison,
        saved=["g2", "not-loaded"],
        brush=BrushSelection(min_ata=4.5, max_fc=3.0, max_ata=5.5, min_fc=1.5),
        selected=selected,
    )

    assert out_png.exists()
    assert ax.get_xlim() == (0.0, 10.0)
    assert ax.get_ylim() == (-5.0, 5.0)
    assert ax.get_title() == "ctl vs heat"
    # Bin squares and the saved-transcript markers.
    assert len(ax.collections) == 2
    assert len(ax.patches) == 1
    assert not plt.fignum_exists(fig.number)


def test_plot_without_output_keeps_figure_open():
    _, x_scale, y_scale, bins = _setup()
    fig, ax = plot_ma_bins(bins, x_scale, y_scale, title="custom")
    assert ax.get_title() == "custom"
    assert len(ax.collections) == 1
    assert plt.fignum_exists(fig.number)
    plt.close(fig)


def test_empty_bins_give_empty_axes():
    _, x_scale, y_scale, _ = _setup()
    fig, ax = plot_ma_bins([], x_scale, y_scale)
    assert len(ax.collections) == 0
    plt.close(fig)


def test_plot_style_dict_records_versions():
    d = plot_style_dict(DEFAULT_PLOT_STYLE)
    assert d["bin_cmap"] == "Blues"
    assert d["brushed_cmap"] == "Purples"
    assert "matplotlib_version" in d
