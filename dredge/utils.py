"""Shared utilities for DrEdGE workflows."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from urllib.parse import urljoin, urlparse


def ensure_dir(path: str | Path) -> None:
    """Create a directory (and parents) if it does not exist."""
    if str(path) == "":
        return
    Path(path).mkdir(parents=True, exist_ok=True)


def setup_logger(log_path: Path, logger_name: str) -> logging.Logger:
    ensure_dir(log_path.parent)
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    fh.setFormatter(formatter)
    logger.addHandler(fh)
    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    logger.addHandler(sh)
    return logger


def normalize_label(label: str) -> str:
    return str(label).strip().lower()


def is_url(location: str) -> bool:
    return urlparse(str(location)).scheme in {"http", "https", "file"}


def resolve_location(base: str | Path, relative: str) -> str:
    """Resolve ``relative`` against a base URL or base directory.

    Args:
        base: http(s)/file URL or filesystem directory.
        relative: Path or URL fragment, e.g. ``./pairwise_tests/a_vs_b.txt``.

    Returns:
        Absolute URL when ``base`` is a URL, otherwise a filesystem path string.
    """
    if is_url(relative):
        return str(relative)
    base_str = str(base)
    if is_url(base_str):
        if not base_str.endswith("/"):
            base_str = base_str + "/"
        return urljoin(base_str, str(relative))
    return str((Path(base_str) / str(relative)).resolve())


def format_number(number: float | None, places: int = 2) -> str:
    """Format a table value the way the comparison table displays it."""
    if number is None or (isinstance(number, float) and math.isnan(number)):
        return "--"
    if number == 0:
        return "0"
    if abs(number) < 10 ** (-places):
        mantissa, exponent = f"{number:.{max(places - 2, 0)}e}".split("e")
        return f"{mantissa}e{int(exponent)}"
    text = repr(float(number)) if isinstance(number, float) else str(number)
    decimals = text.split(".")[1] if "." in text and "e" not in text else ""
    if "e" not in text and len(decimals) <= places:
        if decimals == "0":
            return text.split(".")[0]
        return text
    return f"{number:.{places}f}"
