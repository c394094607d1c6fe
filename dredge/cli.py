"""Command-line interface running one pairwise comparison end to end."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Iterable

import matplotlib
import pandas as pd

from dredge.binning import compute_bins, p_value_filter
from dredge.config import BinningConfig
from dredge.core.scale import LinearScale
from dredge.core.types import Bin, SortSpec, TranscriptRecord
from dredge.loader import PairwiseComparisonLoader
from dredge.project import Project
from dredge.selection import BrushSelection, resolve_selection, select_display
from dredge.sorting import sort_by_spec
from dredge.utils import ensure_dir, format_number, setup_logger

DISPLAY_COLUMNS: tuple[tuple[str, str], ...] = (
    ("name", "name"),
    ("pValue", "p_value"),
    ("logATA", "log_ata"),
    ("logFC", "log_fc"),
    ("treatmentA_AbundanceMean", "treatment_a_abundance_mean"),
    ("treatmentA_AbundanceMedian", "treatment_a_abundance_median"),
    ("treatmentB_AbundanceMean", "treatment_b_abundance_mean"),
    ("treatmentB_AbundanceMedian", "treatment_b_abundance_median"),
)


def _parse_names(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [n.strip() for n in raw.split(",") if n.strip()]


def _parse_brush(raw: str | None) -> BrushSelection | None:
    if not raw:
        return None
    try:
        values = [float(v) for v in raw.split(",")]
    except ValueError as exc:
        raise ValueError(f"Invalid --brush '{raw}': bounds must be numbers.") from exc
    return BrushSelection.from_sequence(values)


def display_frame(rows: Iterable[TranscriptRecord]) -> pd.DataFrame:
    """Table rows with numbers formatted for display."""
    data = []
    for row in rows:
        entry = {}
        for column, attr in DISPLAY_COLUMNS:
            value = getattr(row, attr)
            entry[column] = value if column == "name" else format_number(value)
        data.append(entry)
    return pd.DataFrame(data, columns=[c for c, _ in DISPLAY_COLUMNS])


def bins_frame(bins: Iterable[Bin]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "fc_min": b.fc_min,
                "fc_max": b.fc_max,
                "ata_min": b.ata_min,
                "ata_max": b.ata_max,
                "x0": b.x0,
                "x1": b.x1,
                "y0": b.y0,
                "y1": b.y1,
                "n_transcripts": b.count,
                "transcripts": ",".join(t.name for t in b.transcripts),
            }
            for b in bins
        ],
        columns=[
            "fc_min", "fc_max", "ata_min", "ata_max",
            "x0", "x1", "y0", "y1", "n_transcripts", "transcripts",
        ],
    )


def compare_main(argv: Iterable[str] | None = None) -> int:
    """Load one comparison, bin it, select rows and write outputs.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code (0 for success).
    """
    defaults = BinningConfig()
    parser = argparse.ArgumentParser(description="DrEdGE pairwise comparison")
    parser.add_argument("--project", required=True, help="Path to project .json config")
    parser.add_argument("--treatment-a", default=None, help="First treatment key")
    parser.add_argument("--treatment-b", default=None, help="Second treatment key")
    parser.add_argument("--p-threshold", type=float, default=1.0, help="p-value cutoff")
    parser.add_argument("--sort-field", default="name", help="Table sort field")
    parser.add_argument("--order", default="asc", choices=["asc", "desc"])
    parser.add_argument("--watch", default=None, help="Comma-separated saved transcripts")
    parser.add_argument(
        "--brush", default=None, help="minATA,maxFC,maxATA,minFC in data coordinates"
    )
    parser.add_argument("--unit", type=int, default=defaults.unit_pixels, help="Bin size in pixels")
    parser.add_argument("--width", type=int, default=defaults.width, help="Plot width in pixels")
    parser.add_argument("--height", type=int, default=defaults.height, help="Plot height in pixels")
    parser.add_argument("--outdir", default=".", help="Output directory")
    parser.add_argument("--no-plot", action="store_true", help="Skip the MA plot PNG")
    args = parser.parse_args(list(argv) if argv is not None else None)

    outdir = Path(args.outdir)
    ensure_dir(outdir)
    logger = setup_logger(outdir / "dredge.log", "dredge_cli")
    package_logger = logging.getLogger("dredge")
    package_logger.setLevel(logging.INFO)
    package_logger.handlers = list(logger.handlers)

    project = Project.from_config(args.project)
    if args.treatment_a is None or args.treatment_b is None:
        treatment_a, treatment_b = project.default_pair()
    else:
        treatment_a, treatment_b = args.treatment_a, args.treatment_b

    loader = PairwiseComparisonLoader(project)
    comparison = asyncio.run(loader.load(treatment_a, treatment_b))
    logger.info(
        "Comparison %s vs %s: transcripts=%d min_p=%s anomalies=%d",
        treatment_a,
        treatment_b,
        len(comparison),
        comparison.min_p_value,
        len(comparison.anomalies),
    )

    limits = project.config.abundance_limits or comparison.abundance_limits()
    x_scale = LinearScale(limits[0], (0, args.width))
    y_scale = LinearScale(limits[1], (args.height, 0))
    bins = compute_bins(
        comparison, p_value_filter(args.p_threshold), x_scale, y_scale, args.unit
    )
    n_binned = sum(b.count for b in bins)
    logger.info(
        "Binned %d transcripts into %d non-empty bins (unit=%dpx)",
        n_binned,
        sum(1 for b in bins if b.transcripts),
        args.unit,
    )

    sort = SortSpec.parse(args.sort_field, args.order)
    sorted_rows = sort_by_spec(comparison, sort)
    saved = _parse_names(args.watch)
    brush = _parse_brush(args.brush)
    selection = resolve_selection(brush=brush, saved=saved)
    rows = select_display(
        sorted_rows,
        comparison,
        selection,
        args.p_threshold,
        sort=sort,
        canonical_label=project.canonical_label,
    )
    logger.info("Displaying %d rows (%s)", len(rows), type(selection).__name__)

    display_frame(rows).to_csv(outdir / "displayed.tsv", sep="\t", index=False)
    bins_frame(b for b in bins if b.transcripts).to_csv(
        outdir / "bins.tsv", sep="\t", index=False
    )

    if not args.no_plot:
        matplotlib.use("Agg")
        from dredge.plotting.ma import plot_ma_bins

        plot_ma_bins(
            bins,
            x_scale,
            y_scale,
            outdir / "ma_plot.png",
            comparison=comparison,
            saved=saved,
            brush=brush,
        )
    logger.info("Outputs written to %s", outdir.as_posix())
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(description="DrEdGE CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("compare", help="Run one pairwise comparison")

    args, remainder = parser.parse_known_args(list(argv) if argv is not None else None)
    if args.command == "compare":
        return compare_main(remainder)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
