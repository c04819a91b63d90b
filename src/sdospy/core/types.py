"""Core data structures for spectral density of states calculations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import numpy as np


Array = np.ndarray
IntTriple = tuple[int, int, int]


class BlockEigensolver(Protocol):
    """Eigensolver collaborator holding a full mode set and a fixed-capacity block."""

    @property
    def grid_shape(self) -> IntTriple: ...

    @property
    def num_bands(self) -> int: ...

    @property
    def block_capacity(self) -> int: ...

    @property
    def block_bands(self) -> int: ...

    @property
    def active_bands(self) -> int: ...

    @property
    def evectors(self) -> Array: ...

    @property
    def freqs(self) -> Array: ...

    @property
    def parity(self) -> str | None: ...

    @property
    def geometry(self) -> CellGeometry: ...

    def set_active_band_count(self, n: int) -> None: ...

    def resize_block(self, n: int) -> None: ...

    def reconstruct_block(self, band_offset: int, band_count: int) -> Array: ...


@dataclass(frozen=True)
class GBox:
    """Inclusive axis-aligned box of reciprocal-lattice multi-indices."""

    g_min: IntTriple
    g_max: IntTriple

    def __post_init__(self) -> None:
        if len(self.g_min) != 3 or len(self.g_max) != 3:
            raise ValueError("g_min and g_max must both have three components.")
        for axis, (lo, hi) in enumerate(zip(self.g_min, self.g_max), start=1):
            if lo > hi:
                raise ValueError(
                    f"req'ed G vectors must be incrementing (min<=max): iG{axis} has min={lo} > max={hi}."
                )

    @property
    def shape(self) -> IntTriple:
        n1, n2, n3 = (int(hi - lo + 1) for lo, hi in zip(self.g_min, self.g_max))
        return (n1, n2, n3)

    @property
    def n_g(self) -> int:
        n1, n2, n3 = self.shape
        return n1 * n2 * n3

    def span(self) -> Array:
        """Return ``(iG1_min, iG1_max, iG2_min, iG2_max, iG3_min, iG3_max)``."""

        return np.array(
            [
                self.g_min[0],
                self.g_max[0],
                self.g_min[1],
                self.g_max[1],
                self.g_min[2],
                self.g_max[2],
            ],
            dtype=float,
        )


@dataclass(frozen=True)
class FrequencySweep:
    """Uniform frequency axis from ``freq_min`` to ``freq_max`` inclusive."""

    freq_min: float
    freq_max: float
    freq_num: int

    def __post_init__(self) -> None:
        if int(self.freq_num) != self.freq_num or self.freq_num < 2:
            raise ValueError(f"freq_num must be an integer >= 2 (got {self.freq_num}).")
        if not (np.isfinite(self.freq_min) and np.isfinite(self.freq_max)):
            raise ValueError("freq_min and freq_max must be finite.")

    @property
    def step(self) -> float:
        return float((self.freq_max - self.freq_min) / (self.freq_num - 1))

    def values(self) -> Array:
        return self.freq_min + self.step * np.arange(int(self.freq_num), dtype=float)

    def span(self) -> Array:
        return np.array([self.freq_min, self.freq_max, self.freq_num], dtype=float)


@dataclass(frozen=True)
class CellGeometry:
    """Unit-cell volume and the wavevector the mode set was computed at."""

    volume: float = 1.0
    kpoint: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if not self.volume > 0.0:
            raise ValueError("volume must be positive.")
        if len(self.kpoint) != 3:
            raise ValueError("kpoint must have three components.")


@dataclass(frozen=True)
class SdosResult:
    """SDOS array (rows: frequency, columns: G-vector) with its metadata."""

    sdos: Array
    sweep: FrequencySweep
    gbox: GBox
    geometry: CellGeometry = field(default_factory=CellGeometry)

    def __post_init__(self) -> None:
        expected = (int(self.sweep.freq_num), self.gbox.n_g)
        if self.sdos.shape != expected:
            raise ValueError(f"sdos must have shape {expected} (got {self.sdos.shape}).")

    @property
    def freqs(self) -> Array:
        return self.sweep.values()

    def unfolded(self) -> Array:
        """Return sdos reshaped to ``(freq_num, nG1, nG2, nG3)``."""

        return self.sdos.reshape((int(self.sweep.freq_num),) + self.gbox.shape)
