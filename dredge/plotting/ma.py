"""MA plot rendering of binned comparisons."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import PatchCollection
from matplotlib.patches import Rectangle

from dredge.binning import bins_in_brush
from dredge.core.scale import ScaleModel
from dredge.core.types import Bin, PairwiseComparison
from dredge.plotting.styles import DEFAULT_PLOT_STYLE, PlotStyle, apply_plot_style
from dredge.plotting.utils import save_figure
from dredge.selection import BrushSelection

# Sparse bins are drawn smaller than a full cell.
BIN_SIZE_MULTIPLIERS: dict[int, float] = {1: 0.35, 2: 0.5, 3: 0.65, 4: 0.8}
MIN_FILL_COUNT = 5
MAX_FILL_COUNT = 150


def bin_size_multiplier(count: int) -> float:
    return BIN_SIZE_MULTIPLIERS.get(int(count), 1.0)


def bin_fill_level(count: int, domain: tuple[float, float] = (-300.0, 150.0)) -> float:
    """Colormap position in [0, 1] for a bin holding ``count`` transcripts."""
    clamped = float(np.clip(count, MIN_FILL_COUNT, MAX_FILL_COUNT))
    lo, hi = domain
    return float(np.clip((clamped - lo) / (hi - lo), 0.0, 1.0))


def _bin_patch(b: Bin) -> Rectangle:
    scale = bin_size_multiplier(b.count)
    width = b.ata_max - b.ata_min
    height = b.fc_max - b.fc_min
    return Rectangle(
        (b.ata_min + (1.0 - scale) / 2.0 * width, b.fc_min + (1.0 - scale) / 2.0 * height),
        width * scale,
        height * scale,
    )


def plot_ma_bins(
    bins: Sequence[Bin],
    x_scale: ScaleModel,
    y_scale: ScaleModel,
    out_png: Path | None = None,
    *,
    comparison: PairwiseComparison | None = None,
    saved: Iterable[str] = (),
    brush: BrushSelection | None = None,
    selected: Bin | None = None,
    title: str | None = None,
    style: PlotStyle = DEFAULT_PLOT_STYLE,
) -> tuple[plt.Figure, plt.Axes]:
    """Draw non-empty bins as density-colored squares on an MA plot.

    Bins overlapping ``brush`` use the brushed colormap; ``selected`` is
    outlined. Saved transcripts present in ``comparison`` are drawn as
    points. When ``out_png`` is given the figure is saved and closed.
    """
    apply_plot_style(style)
    fig, ax = plt.subplots(figsize=style.figsize_ma)
    filled = [b for b in bins if b.transcripts]
    brushed = set()
    if brush is not None:
        brushed = {id(b) for b in bins_in_brush(filled, brush)}

    if filled:
        cmap = matplotlib.colormaps[style.bin_cmap]
        brushed_cmap = matplotlib.colormaps[style.brushed_cmap]
        colors = [
            brushed_cmap(bin_fill_level(b.count, style.brushed_color_domain))
            if id(b) in brushed
            else cmap(bin_fill_level(b.count, style.bin_color_domain))
            for b in filled
        ]
        ax.add_collection(
            PatchCollection(
                [_bin_patch(b) for b in filled],
                facecolors=colors,
                edgecolors="none",
            )
        )

    if selected is not None and selected.transcripts:
        ax.add_patch(
            Rectangle(
                (selected.ata_min, selected.fc_min),
                selected.ata_max - selected.ata_min,
                selected.fc_max - selected.fc_min,
                fill=False,
                edgecolor=style.selected_edgecolor,
                linewidth=1.2,
            )
        )

    if comparison is not None:
        points = [comparison[name] for name in saved if name in comparison]
        if points:
            ax.scatter(
                [p.log_ata for p in points],
                [p.log_fc for p in points],
                s=style.saved_marker_size,
                facecolors="none",
                edgecolors=style.saved_color,
                linewidths=1.0,
                label="saved",
            )
            ax.legend(loc="upper right")

    x_lo, x_hi = sorted(x_scale.domain())
    y_lo, y_hi = sorted(y_scale.domain())
    ax.set_xlim(x_lo, x_hi)
    ax.set_ylim(y_lo, y_hi)
    ax.axhline(0.0, color="#999999", linewidth=0.6)
    ax.set_xlabel("log2 average transcript abundance")
    ax.set_ylabel("log2 fold change")
    if title is None and comparison is not None:
        title = f"{comparison.treatment_a} vs {comparison.treatment_b}"
    if title:
        ax.set_title(title)
    fig.tight_layout()

    if out_png is not None:
        save_figure(fig, Path(out_png), style=style)
    return fig, ax
