"""Exceptions and recoverable parse anomalies raised while loading comparisons."""

from __future__ import annotations

from dataclasses import dataclass


class DredgeError(Exception):
    """Base class for errors raised by this package."""


class UnknownTreatment(DredgeError, KeyError):
    def __init__(self, key: str):
        super().__init__(f"No such treatment: {key}")
        self.key = key

    def __str__(self) -> str:
        return str(self.args[0])


class ComparisonFileUnavailable(DredgeError, FileNotFoundError):
    def __init__(self, location_ab: str, location_ba: str):
        super().__init__(
            f"Could not download pairwise test from {location_ab} or {location_ba}"
        )
        self.locations = (location_ab, location_ba)


class ComparisonParseError(DredgeError, ValueError):
    """Raised when a test-result file cannot be accepted under the active policy."""


@dataclass(frozen=True)
class ParseAnomaly:
    """A row-level problem that was recovered from while parsing.

    ``kind`` is ``"non_numeric"``, ``"short_row"`` or ``"duplicate"``.
    """

    line: int
    transcript: str
    kind: str
    detail: str
