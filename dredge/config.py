"""Configuration loading utilities for DrEdGE projects."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

DEFAULT_PAIRWISE_NAME = "./pairwise_tests/%A_vs_%B.txt"


class DuplicatePolicy(str, Enum):
    """What to do when two rows canonicalize to the same transcript name."""

    OVERWRITE = "overwrite"
    KEEP_FIRST = "keep_first"
    REJECT = "reject"


def load_json_config(path: str | Path) -> dict[str, Any]:
    """Load and validate a project config from a JSON file."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if config_path.suffix.lower() != ".json":
        raise ValueError(
            f"Unsupported config format for '{config_path}'. Use a .json config file."
        )

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Invalid JSON in config '{config_path}' at line {exc.lineno}, "
            f"column {exc.colno}: {exc.msg}"
        ) from exc

    if not isinstance(data, dict):
        raise ValueError(
            f"Invalid config root in '{config_path}': expected JSON object, got {type(data).__name__}."
        )
    return data


@dataclass(frozen=True)
class TreatmentConfig:
    label: str
    replicates: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectConfig:
    """Project settings as read from a DrEdGE project JSON file."""

    label: str = "DrEdGE project"
    base: str = "."
    pairwise_name: str = DEFAULT_PAIRWISE_NAME
    abundances: str | None = None
    treatments: dict[str, TreatmentConfig] = field(default_factory=dict)
    transcript_aliases: dict[str, tuple[str, ...]] = field(default_factory=dict)
    abundance_limits: tuple[tuple[float, float], tuple[float, float]] | None = None
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.OVERWRITE

    @staticmethod
    def from_dict(payload: dict[str, Any], *, base: str | Path | None = None) -> "ProjectConfig":
        treatments_raw = payload.get("treatments", {})
        if not isinstance(treatments_raw, dict):
            raise ValueError("'treatments' must be an object keyed by treatment name.")
        treatments: dict[str, TreatmentConfig] = {}
        for key, spec in treatments_raw.items():
            if isinstance(spec, str):
                spec = {"label": spec}
            if not isinstance(spec, dict):
                raise ValueError(f"Treatment '{key}' must be an object or a label string.")
            treatments[str(key)] = TreatmentConfig(
                label=str(spec.get("label", key)),
                replicates=tuple(str(r) for r in spec.get("replicates", ())),
            )

        aliases_raw = payload.get("transcriptAliases", {})
        if not isinstance(aliases_raw, dict):
            raise ValueError("'transcriptAliases' must be an object of canonical -> aliases.")
        aliases = {
            str(canonical): tuple(str(a) for a in alias_list)
            for canonical, alias_list in aliases_raw.items()
        }

        limits = payload.get("abundanceLimits")
        if limits is not None:
            try:
                (x0, x1), (y0, y1) = limits
                limits = ((float(x0), float(x1)), (float(y0), float(y1)))
            except (TypeError, ValueError) as exc:
                raise ValueError(
                    "'abundanceLimits' must be [[xmin, xmax], [ymin, ymax]]."
                ) from exc

        try:
            policy = DuplicatePolicy(payload.get("duplicatePolicy", "overwrite"))
        except ValueError as exc:
            allowed = ", ".join(p.value for p in DuplicatePolicy)
            raise ValueError(f"'duplicatePolicy' must be one of: {allowed}.") from exc

        resolved_base = payload.get("base")
        if resolved_base is None:
            resolved_base = "." if base is None else str(base)
        elif base is not None and "://" not in str(resolved_base):
            resolved_base = str(Path(base) / str(resolved_base))

        return ProjectConfig(
            label=str(payload.get("label", "DrEdGE project")),
            base=str(resolved_base),
            pairwise_name=str(payload.get("pairwiseName") or DEFAULT_PAIRWISE_NAME),
            abundances=(
                None if payload.get("abundances") is None else str(payload["abundances"])
            ),
            treatments=treatments,
            transcript_aliases=aliases,
            abundance_limits=limits,
            duplicate_policy=policy,
        )

    @staticmethod
    def from_file(path: str | Path) -> "ProjectConfig":
        config_path = Path(path)
        return ProjectConfig.from_dict(
            load_json_config(config_path), base=config_path.resolve().parent
        )


@dataclass(frozen=True)
class BinningConfig:
    """Pixel geometry of the MA plot used to grid the data."""

    unit_pixels: int = 5
    width: int = 800
    height: int = 600
