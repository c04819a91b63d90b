"""In-memory plane-wave eigenmode sets with a fixed-capacity working block."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from sdospy.core.gindex import unfold_index
from sdospy.core.types import CellGeometry


Array = np.ndarray


class PlaneWaveModes:
    """Full eigenvector set ``B`` plus on-demand reconstruction of ``H`` blocks.

    ``evectors`` is indexed ``[ix, iy, iz, c, band]`` with folded storage
    positions and two transverse polarizations ``c``.  ``H`` is obtained from
    ``B`` by a per-position transfer factor ``h_transfer`` (shape
    ``(nx, ny, nz)``; scalar broadcast allowed).
    """

    def __init__(
        self,
        evectors: Array,
        freqs: Array,
        block_capacity: int,
        *,
        h_transfer: Array | complex | None = None,
        parity: str | None = None,
        geometry: CellGeometry | None = None,
    ) -> None:
        evecs = np.asarray(evectors, dtype=np.complex128)
        if evecs.ndim != 5 or evecs.shape[3] != 2:
            raise ValueError("evectors must have shape (nx, ny, nz, 2, num_bands).")
        freqs_arr = np.asarray(freqs, dtype=float).ravel()
        if freqs_arr.size != evecs.shape[4]:
            raise ValueError("freqs must have one entry per band.")
        if block_capacity <= 0:
            raise ValueError("block_capacity must be positive.")
        grid = evecs.shape[:3]
        if h_transfer is None:
            transfer = np.ones(grid, dtype=np.complex128)
        else:
            transfer = np.broadcast_to(np.asarray(h_transfer, dtype=np.complex128), grid).copy()

        self._evectors = evecs
        self._freqs = freqs_arr
        self._transfer = transfer
        self._capacity = int(block_capacity)
        self._block_bands = self._capacity
        self._active_bands = self._capacity
        self._parity = parity
        self.geometry = CellGeometry() if geometry is None else geometry

    @property
    def grid_shape(self) -> tuple[int, int, int]:
        nx, ny, nz = self._evectors.shape[:3]
        return (int(nx), int(ny), int(nz))

    @property
    def num_bands(self) -> int:
        return int(self._evectors.shape[4])

    @property
    def block_capacity(self) -> int:
        return self._capacity

    @property
    def block_bands(self) -> int:
        return self._block_bands

    @property
    def active_bands(self) -> int:
        return self._active_bands

    @property
    def evectors(self) -> Array:
        return self._evectors

    @property
    def freqs(self) -> Array:
        return self._freqs

    @property
    def h_transfer(self) -> Array:
        return self._transfer

    @property
    def parity(self) -> str | None:
        return self._parity

    def set_active_band_count(self, n: int) -> None:
        if n <= 0:
            raise ValueError("active band count must be positive.")
        self._active_bands = int(n)

    def resize_block(self, n: int) -> None:
        if n <= 0 or n > self._capacity:
            raise ValueError(f"block size must be in [1, {self._capacity}] (got {n}).")
        self._block_bands = int(n)

    def reconstruct_block(self, band_offset: int, band_count: int) -> Array:
        """Return ``H`` for bands ``[band_offset, band_offset + band_count)``."""

        if band_count <= 0 or band_count > self._block_bands:
            raise ValueError(
                f"cannot reconstruct {band_count} bands into a block of {self._block_bands}."
            )
        if band_offset < 0 or band_offset + band_count > self.num_bands:
            raise ValueError("requested block lies outside the available bands.")
        b_block = self._evectors[..., band_offset : band_offset + band_count]
        return self._transfer[:, :, :, None, None] * b_block


@dataclass(frozen=True)
class HomogeneousMediumParams:
    grid_shape: tuple[int, int, int]
    epsilon: float = 1.0
    kpoint: tuple[float, float, float] = (0.0, 0.0, 0.0)
    num_bands: int = 8
    block_capacity: int = 4
    volume: float = 1.0


def homogeneous_medium_modes(params: HomogeneousMediumParams, reciprocal_basis: Array | None = None) -> PlaneWaveModes:
    """Return the lowest bands of a uniform dielectric as plane waves.

    Frequencies are ``|k + G| / sqrt(epsilon)`` in units of ``2*pi*c/a`` with
    ``k`` and ``G`` in reciprocal-lattice coordinates.  Each G-vector gives
    two degenerate bands, one per transverse polarization.
    """

    if params.epsilon <= 0.0:
        raise ValueError("epsilon must be positive.")
    if params.num_bands <= 0:
        raise ValueError("num_bands must be positive.")
    nx, ny, nz = (int(v) for v in params.grid_shape)
    if min(nx, ny, nz) <= 0:
        raise ValueError("grid_shape entries must be positive.")
    n_available = 2 * nx * ny * nz
    if params.num_bands > n_available:
        raise ValueError(f"num_bands={params.num_bands} exceeds the {n_available} plane-wave modes on the grid.")
    basis = np.eye(3) if reciprocal_basis is None else np.asarray(reciprocal_basis, dtype=float)
    if basis.shape != (3, 3):
        raise ValueError("reciprocal_basis must be a 3x3 array (rows are G1, G2, G3).")

    kvec = np.asarray(params.kpoint, dtype=float)
    positions: list[tuple[int, int, int]] = []
    norms: list[float] = []
    for ix in range(nx):
        for iy in range(ny):
            for iz in range(nz):
                g = np.array([unfold_index(ix, nx), unfold_index(iy, ny), unfold_index(iz, nz)], dtype=float)
                positions.append((ix, iy, iz))
                norms.append(float(np.linalg.norm((kvec + g) @ basis)))

    order = np.argsort(np.asarray(norms), kind="stable")
    n_g_needed = (params.num_bands + 1) // 2
    evecs = np.zeros((nx, ny, nz, 2, params.num_bands), dtype=np.complex128)
    freqs = np.zeros(params.num_bands, dtype=float)
    band = 0
    for idx in order[:n_g_needed]:
        ix, iy, iz = positions[int(idx)]
        for c in range(2):
            if band >= params.num_bands:
                break
            evecs[ix, iy, iz, c, band] = 1.0
            freqs[band] = norms[int(idx)] / np.sqrt(params.epsilon)
            band += 1

    geometry = CellGeometry(volume=params.volume, kpoint=tuple(float(v) for v in kvec))
    return PlaneWaveModes(
        evecs,
        freqs,
        params.block_capacity,
        h_transfer=1.0 / params.epsilon,
        geometry=geometry,
    )
