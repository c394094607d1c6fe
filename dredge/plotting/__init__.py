"""Plotting API for DrEdGE MA plots."""

from dredge.plotting.ma import (
    bin_fill_level,
    bin_size_multiplier,
    plot_ma_bins,
)
from dredge.plotting.styles import (
    DEFAULT_PLOT_STYLE,
    PlotStyle,
    apply_plot_style,
    plot_style_dict,
)
from dredge.plotting.utils import save_figure

__all__ = [
    "PlotStyle",
    "DEFAULT_PLOT_STYLE",
    "apply_plot_style",
    "plot_style_dict",
    "save_figure",
    "plot_ma_bins",
    "bin_fill_level",
    "bin_size_multiplier",
]
