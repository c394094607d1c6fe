"""Shared plotting style settings for deterministic figure outputs."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
import numpy as np


@dataclass(frozen=True)
class PlotStyle:
    """Centralized plotting defaults used for MA plot figures."""

    dpi: int = 200
    figsize_ma: tuple[float, float] = (8.0, 6.0)
    bin_cmap: str = "Blues"
    brushed_cmap: str = "Purples"
    bin_color_domain: tuple[float, float] = (-300.0, 150.0)
    brushed_color_domain: tuple[float, float] = (-500.0, 150.0)
    selected_edgecolor: str = "red"
    saved_color: str = "#d62728"
    saved_marker_size: float = 28.0
    axis_label_fontsize: int = 10
    title_fontsize: int = 11
    legend_fontsize: int = 8


DEFAULT_PLOT_STYLE = PlotStyle()


def apply_plot_style(style: PlotStyle = DEFAULT_PLOT_STYLE) -> None:
    """Apply deterministic matplotlib rcParams for MA plots."""
    plt.rcParams.update(
        {
            "figure.dpi": style.dpi,
            "savefig.dpi": style.dpi,
            "savefig.facecolor": "white",
            "font.family": "DejaVu Sans",
            "axes.titlesize": style.title_fontsize,
            "axes.labelsize": style.axis_label_fontsize,
            "legend.fontsize": style.legend_fontsize,
            "axes.grid": False,
        }
    )


def plot_style_dict(style: PlotStyle = DEFAULT_PLOT_STYLE) -> dict[str, Any]:
    """Return style + dependency versions for output manifests."""
    d = asdict(style)
    d["matplotlib_version"] = str(matplotlib.__version__)
    d["numpy_version"] = str(np.__version__)
    return d
