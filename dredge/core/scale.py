"""Continuous linear scales mapping data values onto pixels."""

from __future__ import annotations

from typing import Protocol

import numpy as np


class ScaleModel(Protocol):
    def domain(self) -> tuple[float, float]: ...

    def range(self) -> tuple[float, float]: ...

    def __call__(self, value: float) -> float: ...

    def invert(self, pixel: float) -> float: ...


class LinearScale:
    """Linear map of ``domain`` onto ``range``.

    Either interval may be descending; a plot's y axis usually has
    ``range=(height, 0)`` so larger values are drawn higher up.
    """

    def __init__(self, domain: tuple[float, float], range: tuple[float, float]):
        d = np.asarray(domain, dtype=float).ravel()
        r = np.asarray(range, dtype=float).ravel()
        if d.size != 2 or r.size != 2:
            raise ValueError("domain and range must each contain exactly two values.")
        if not (np.isfinite(d).all() and np.isfinite(r).all()):
            raise ValueError("domain and range must be finite.")
        if d[0] == d[1]:
            raise ValueError("domain must have non-zero width.")
        if r[0] == r[1]:
            raise ValueError("range must have non-zero width.")
        self._d0, self._d1 = float(d[0]), float(d[1])
        self._r0, self._r1 = float(r[0]), float(r[1])

    def domain(self) -> tuple[float, float]:
        return self._d0, self._d1

    def range(self) -> tuple[float, float]:
        return self._r0, self._r1

    def __call__(self, value: float) -> float:
        return self._r0 + (float(value) - self._d0) * (self._r1 - self._r0) / (
            self._d1 - self._d0
        )

    def invert(self, pixel: float) -> float:
        return self._d0 + (float(pixel) - self._r0) * (self._d1 - self._d0) / (
            self._r1 - self._r0
        )

    def __repr__(self) -> str:
        return f"LinearScale(domain={self.domain()}, range={self.range()})"
