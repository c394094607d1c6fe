from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from dredge.config import ProjectConfig, TreatmentConfig
from dredge.errors import UnknownTreatment
from dredge.project import Project


def _config(**kwargs) -> ProjectConfig:
    base = dict(
        treatments={
            "A": TreatmentConfig(label="Control", replicates=("a1", "a2")),
            "B": TreatmentConfig(label="Heat", replicates=("b1", "missing")),
        },
        transcript_aliases={"g1": ("g1-alias", "ALT1")},
    )
    base.update(kwargs)
    return ProjectConfig(**base)


def test_canonical_label_folds_aliases_and_case():
    project = Project(_config())
    assert project.canonical_label("g1-alias") == "g1"
    assert project.canonical_label("G1-ALIAS") == "g1"
    assert project.canonical_label("alt1") == "g1"
    assert project.canonical_label(" g1 ") == "g1"
    assert project.canonical_label("Unlisted") == "Unlisted"


def test_alias_collision_keeps_first_and_warns(caplog):
    caplog.set_level(logging.WARNING)
    project = Project(_config(transcript_aliases={"g1": ("shared",), "g2": ("shared",)}))
    assert project.canonical_label("shared") == "g1"
    assert "Alias collision" in caplog.text


def test_unknown_treatment():
    project = Project(_config())
    assert project.treatment("A").label == "Control"
    with pytest.raises(UnknownTreatment) as excinfo:
        project.treatment("Z")
    assert str(excinfo.value) == "No such treatment: Z"
    assert excinfo.value.key == "Z"
    assert isinstance(excinfo.value, KeyError)


def test_default_pair_needs_two_treatments():
    assert Project(_config()).default_pair() == ("A", "B")
    with pytest.raises(ValueError, match="at least two treatments"):
        Project(_config(treatments={"A": TreatmentConfig(label="A")})).default_pair()


def test_abundance_samples_skip_missing_columns_and_nan():
    abundances = pd.DataFrame(
        {"a1": [1.0, np.nan], "a2": [3.0, np.nan], "b1": [7.0, 2.0]},
        index=["g1", "g2"],
    )
    project = Project(_config(), abundances=abundances)
    np.testing.assert_allclose(project.abundance_samples("A", "g1"), [1.0, 3.0])
    np.testing.assert_allclose(project.abundance_samples("B", "g2"), [2.0])
    assert project.abundance_samples("A", "g2") is None
    assert project.abundance_samples("A", "g9") is None
    assert Project(_config()).abundance_samples("A", "g1") is None


def test_from_config_reads_abundance_matrix(tmp_path: Path):
    (tmp_path / "abundances.tsv").write_text(
        "transcript\ta1\ta2\tb1\ng1\t1\t2\t3\ng2\t4\t5\t6\n", encoding="utf-8"
    )
    (tmp_path / "project.json").write_text(
        json.dumps(
            {
                "label": "Toy",
                "abundances": "abundances.tsv",
                "treatments": {
                    "A": {"label": "Control", "replicates": ["a1", "a2"]},
                    "B": {"label": "Heat", "replicates": ["b1"]},
                },
            }
        ),
        encoding="utf-8",
    )
    project = Project.from_config(tmp_path / "project.json")

    assert project.label == "Toy"
    assert project.abundances.shape == (2, 3)
    assert list(project.abundances.index) == ["g1", "g2"]
    np.testing.assert_allclose(project.abundance_samples("A", "g2"), [4.0, 5.0])
    assert len(project.comparison_cache) == 0
