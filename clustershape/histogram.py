"""Fixed-width binned histograms with underflow and overflow bins."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class _Axis:
    nbins: int
    low: float
    high: float

    def __post_init__(self) -> None:
        if self.nbins < 1:
            raise ValueError(f"number of bins must be positive, got {self.nbins}")
        if not self.high > self.low:
            raise ValueError(f"axis upper edge {self.high} must exceed lower edge {self.low}")

    def find_bin(self, x: float) -> int:
        """Bin index: 0 is underflow, nbins + 1 overflow (NaN goes to overflow)."""
        if x < self.low:
            return 0
        if not x < self.high:
            return self.nbins + 1
        index = 1 + int(self.nbins * (x - self.low) / (self.high - self.low))
        return min(index, self.nbins)

    def low_edge(self, ibin: int) -> float:
        return self.low + (ibin - 1) * (self.high - self.low) / self.nbins

    def check(self, ibin: int) -> None:
        if not 0 <= ibin <= self.nbins + 1:
            raise IndexError(f"bin {ibin} outside 0..{self.nbins + 1}")


class Hist1D:
    """One-dimensional histogram with per-bin sums of weights and squared weights."""

    def __init__(self, name: str, title: str, nbins: int, low: float, high: float) -> None:
        self.name = name
        self.title = title
        self._axis = _Axis(int(nbins), float(low), float(high))
        self._contents = np.zeros(self._axis.nbins + 2)
        self._sumw2 = np.zeros(self._axis.nbins + 2)
        self.entries = 0

    @property
    def nbins(self) -> int:
        return self._axis.nbins

    @property
    def low(self) -> float:
        return self._axis.low

    @property
    def high(self) -> float:
        return self._axis.high

    def find_bin(self, x: float) -> int:
        return self._axis.find_bin(x)

    def fill(self, x: float, weight: float = 1.0) -> int:
        """Add weight to the bin holding x and return that bin's index."""
        ibin = self.find_bin(x)
        self._contents[ibin] += weight
        self._sumw2[ibin] += weight * weight
        self.entries += 1
        return ibin

    def bin_content(self, ibin: int) -> float:
        self._axis.check(ibin)
        return float(self._contents[ibin])

    def bin_error(self, ibin: int) -> float:
        self._axis.check(ibin)
        return math.sqrt(self._sumw2[ibin])

    def set_bin_content(self, ibin: int, value: float) -> None:
        self._axis.check(ibin)
        self._contents[ibin] = value

    def set_bin_error(self, ibin: int, value: float) -> None:
        self._axis.check(ibin)
        self._sumw2[ibin] = value * value

    def bin_low_edge(self, ibin: int) -> float:
        self._axis.check(ibin)
        return self._axis.low_edge(ibin)

    def integral(self) -> float:
        """Sum of the in-range bins, excluding underflow and overflow."""
        return float(self._contents[1:-1].sum())

    def scale(self, factor: float) -> None:
        self._contents *= factor
        self._sumw2 *= factor * factor

    def __repr__(self) -> str:
        return f"Hist1D({self.name!r}, nbins={self.nbins}, range=[{self.low}, {self.high}))"


class Hist2D:
    """Two-dimensional histogram with underflow and overflow on both axes."""

    def __init__(
        self,
        name: str,
        title: str,
        nbins_x: int,
        low_x: float,
        high_x: float,
        nbins_y: int,
        low_y: float,
        high_y: float,
    ) -> None:
        self.name = name
        self.title = title
        self.x_axis = _Axis(int(nbins_x), float(low_x), float(high_x))
        self.y_axis = _Axis(int(nbins_y), float(low_y), float(high_y))
        shape = (self.x_axis.nbins + 2, self.y_axis.nbins + 2)
        self._contents = np.zeros(shape)
        self._sumw2 = np.zeros(shape)
        self.entries = 0

    def find_bin(self, x: float, y: float) -> tuple[int, int]:
        return self.x_axis.find_bin(x), self.y_axis.find_bin(y)

    def fill(self, x: float, y: float, weight: float = 1.0) -> tuple[int, int]:
        """Add weight to the cell holding (x, y) and return its indices."""
        ix, iy = self.find_bin(x, y)
        self._contents[ix, iy] += weight
        self._sumw2[ix, iy] += weight * weight
        self.entries += 1
        return ix, iy

    def bin_content(self, ix: int, iy: int) -> float:
        self.x_axis.check(ix)
        self.y_axis.check(iy)
        return float(self._contents[ix, iy])

    def integral(self) -> float:
        return float(self._contents[1:-1, 1:-1].sum())

    def scale(self, factor: float) -> None:
        self._contents *= factor
        self._sumw2 *= factor * factor

    def __repr__(self) -> str:
        return f"Hist2D({self.name!r}, {self.x_axis.nbins}x{self.y_axis.nbins})"