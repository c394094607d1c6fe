from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd
import pytest

from dredge import cli


DEFAULT_ROWS = (
    "g1\t2.0\t5.0\t0.01\n"
    "g2\t-1.0\t5.2\t0.2\n"
    "g3\t0.5\t1.0\t0.04\n"
)


def _make_project(root: Path, rows: str = DEFAULT_ROWS, **extra) -> Path:
    tests_dir = root / "pairwise_tests"
    tests_dir.mkdir(parents=True)
    (tests_dir / "ctl_vs_heat.txt").write_text(
        "id\tlogFC\tlogATA\tpValue\n" + rows,
        encoding="utf-8",
    )
    (root / "abundances.tsv").write_text(
        "transcript\tc1\tc2\th1\n"
        "g1\t1\t3\t10\n"
        "g2\t2\t2\t4\n"
        "g3\t0\t0\t1\n",
        encoding="utf-8",
    )
    payload = {
        "label": "Toy",
        "abundances": "abundances.tsv",
        "treatments": {
            "ctl": {"label": "Control", "replicates": ["c1", "c2"]},
            "heat": {"label": "Heat", "replicates": ["h1"]},
        },
    }
    payload.update(extra)
    config = root / "project.json"
    config.write_text(json.dumps(payload), encoding="utf-8")
    return config


def _close_cli_logger() -> None:
    for name in ("dredge_cli", "dredge"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def _read_tsv(path: Path) -> pd.DataFrame:
    return pd.read_csv(path, sep="\t", dtype=str, keep_default_na=False)


def test_compare_writes_outputs(tmp_path: Path):
    config = _make_project(tmp_path / "proj")
    outdir = tmp_path / "out"

    code = cli.compare_main(
        ["--project", str(config), "--watch", "g1,gX", "--outdir", str(outdir)]
    )
    _close_cli_logger()

    assert code == 0
    displayed = _read_tsv(outdir / "displayed.tsv")
    assert displayed["name"].tolist() == ["g1", "gX"]
    g1 = displayed.iloc[0]
    assert g1["logFC"] == "2"
    assert g1["pValue"] == "0.01"
    assert g1["treatmentA_AbundanceMean"] == "2"
    assert g1["treatmentB_AbundanceMedian"] == "10"
    assert displayed.iloc[1]["logFC"] == "--"

    bins = pd.read_csv(outdir / "bins.tsv", sep="\t")
    assert int(bins["n_transcripts"].sum()) == 3
    assert (outdir / "ma_plot.png").exists()
    log_text = (outdir / "dredge.log").read_text(encoding="utf-8")
    assert "Outputs written" in log_text
    assert "Loaded comparison: pair=ctl,heat" in log_text


def test_compare_handles_single_transcript(tmp_path: Path):
    config = _make_project(tmp_path / "proj", rows="g1\t2.0\t5.0\t0.01\n")
    outdir = tmp_path / "out"

    code = cli.compare_main(["--project", str(config), "--outdir", str(outdir), "--no-plot"])
    _close_cli_logger()

    assert code == 0
    bins = pd.read_csv(outdir / "bins.tsv", sep="\t")
    assert bins["transcripts"].tolist() == ["g1"]
    assert bins.loc[0, "fc_min"] <= 2.0 <= bins.loc[0, "fc_max"]
    assert bins.loc[0, "ata_min"] <= 5.0 <= bins.loc[0, "ata_max"]


def test_parse_anomalies_reach_the_run_log(tmp_path: Path):
    config = _make_project(tmp_path / "proj", rows="g1\t2.0\t5.0\tNA\ng2\t1.0\t4.0\t0.3\n")
    outdir = tmp_path / "out"

    cli.compare_main(["--project", str(config), "--outdir", str(outdir), "--no-plot"])
    _close_cli_logger()

    log_text = (outdir / "dredge.log").read_text(encoding="utf-8")
    assert "| WARNING | Parse anomaly" in log_text
    assert "kind=non_numeric" in log_text


def test_compare_with_brush_threshold_and_reverse_pair(tmp_path: Path):
    config = _make_project(
        tmp_path / "proj", abundanceLimits=[[0, 10], [-5, 5]]
    )
    outdir = tmp_path / "out"

    code = cli.compare_main(
        [
            "--project", str(config),
            "--treatment-a", "heat",
            "--treatment-b", "ctl",
            "--p-threshold", "0.05",
            "--brush", "0,10,10,-10",
            "--sort-field", "logFC",
            "--order", "desc",
            "--unit", "10",
            "--width", "100",
            "--height", "100",
            "--outdir", str(outdir),
            "--no-plot",
        ]
    )
    _close_cli_logger()

    assert code == 0
    displayed = _read_tsv(outdir / "displayed.tsv")
    # Loaded from ctl_vs_heat, so fold changes are negated.
    assert displayed["name"].tolist() == ["g3", "g1"]
    assert displayed["logFC"].tolist() == ["-0.5", "-2"]
    bins = pd.read_csv(outdir / "bins.tsv", sep="\t")
    assert int(bins["n_transcripts"].sum()) == 2
    assert set(bins["transcripts"]) == {"g1", "g3"}
    assert not (outdir / "ma_plot.png").exists()


def test_compare_rejects_malformed_brush(tmp_path: Path):
    config = _make_project(tmp_path / "proj")
    with pytest.raises(ValueError, match="--brush"):
        cli.compare_main(
            ["--project", str(config), "--brush", "a,b,c,d", "--outdir", str(tmp_path / "o"), "--no-plot"]
        )
    _close_cli_logger()


def test_main_dispatches_compare(monkeypatch):
    seen = {}

    def _fake_compare(argv):
        seen["argv"] = list(argv)
        return 0

    monkeypatch.setattr(cli, "compare_main", _fake_compare)
    assert cli.main(["compare", "--project", "p.json", "--no-plot"]) == 0
    assert seen["argv"] == ["--project", "p.json", "--no-plot"]
