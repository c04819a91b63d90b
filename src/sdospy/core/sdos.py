"""Spectral density of states (SDOS) from band overlaps and a pole sum."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import numpy as np

from sdospy.io.h5writer import write_sdos

from .gindex import validate_gbox
from .overlap import check_band_range, compute_overlap
from .types import BlockEigensolver, CellGeometry, FrequencySweep, SdosResult


Array = np.ndarray
logger = logging.getLogger(__name__)

# Complex elements per (frequency, G, band) tile, about 64 MB.
DEFAULT_CHUNK_ELEMENTS = 1 << 22


def frequency_sweep(freq_min: float, freq_max: float, freq_num: int) -> Array:
    """Return ``freq_num`` uniformly spaced frequencies, both endpoints included."""

    return FrequencySweep(freq_min=float(freq_min), freq_max=float(freq_max), freq_num=int(freq_num)).values()


def sdos_pole_sum(
    bth: Array,
    band_freqs: Iterable[float],
    sweep_freqs: Iterable[float],
    eta: float,
    volume: float = 1.0,
    *,
    chunk_size: int = DEFAULT_CHUNK_ELEMENTS,
) -> Array:
    """Return SDOS with shape ``(n_freq, nG)``.

    ``sdos[i, n] = 2*Vol/pi * f_i * sum_b Im(BtH[n, b] / ((w_b^2 - f_i^2) - i*eta))``.
    A swept frequency sitting on a band eigenfrequency gives a large but
    finite peak of height ``~1/eta``.  The complex temporary is built in
    (frequency, G) tiles of at most ``chunk_size`` elements.
    """

    if not eta > 0.0:
        raise ValueError(f"eta must be positive (got {eta}).")
    bth = np.asarray(bth, dtype=np.complex128)
    if bth.ndim != 2:
        raise ValueError("BtH must be a 2D (nG, n_bands) array.")
    w2 = np.asarray(list(band_freqs), dtype=float) ** 2
    f = np.asarray(list(sweep_freqs), dtype=float)
    if w2.size != bth.shape[1]:
        raise ValueError("band_freqs must match the band dimension of BtH.")
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive.")
    f2 = f * f

    n_g, n_bands = bth.shape
    g_step = max(1, min(n_g, chunk_size // max(n_bands, 1)))
    f_step = max(1, chunk_size // max(g_step * n_bands, 1))

    pref = 2.0 * float(volume) / np.pi
    sdos = np.zeros((f.size, n_g), dtype=float)
    for f0 in range(0, f.size, f_step):
        f1 = min(f0 + f_step, f.size)
        denom = (w2[None, :] - f2[f0:f1, None]) - 1j * float(eta)
        for g0 in range(0, n_g, g_step):
            g1 = min(g0 + g_step, n_g)
            # (freq, G, band), summed over bands
            fraction = bth[None, g0:g1, :] / denom[:, None, :]
            sdos[f0:f1, g0:g1] = pref * f[f0:f1, None] * np.sum(fraction.imag, axis=2)
    return sdos


def compute_sdos(
    solver: BlockEigensolver,
    freq_min: float,
    freq_max: float,
    freq_num: int,
    eta: float,
    band_min: int,
    n_bands: int,
    g_min: Iterable[float],
    g_max: Iterable[float],
    *,
    geometry: CellGeometry | None = None,
    chunk_size: int = DEFAULT_CHUNK_ELEMENTS,
) -> SdosResult:
    """Compute the SDOS for a G-box over bands ``[band_min, band_min + n_bands)``.

    Unit-cell volume and wavevector come from ``solver.geometry`` unless
    ``geometry`` is given.
    """

    geometry = solver.geometry if geometry is None else geometry
    sweep = FrequencySweep(freq_min=float(freq_min), freq_max=float(freq_max), freq_num=int(freq_num))
    if not eta > 0.0:
        raise ValueError(f"eta must be positive (got {eta}).")
    band_min = int(band_min)
    n_bands = int(n_bands)
    check_band_range(solver, band_min, n_bands)
    gbox = validate_gbox(g_min, g_max, solver.grid_shape)

    band_freqs = np.asarray(solver.freqs, dtype=float)[band_min : band_min + n_bands]
    bth = compute_overlap(solver, gbox.g_min, gbox.g_max, band_min=band_min, n_bands=n_bands)
    sdos = sdos_pole_sum(bth, band_freqs, sweep.values(), eta=eta, volume=geometry.volume, chunk_size=chunk_size)
    logger.info("sdos computed: %d frequencies x %d G-vectors", sweep.freq_num, gbox.n_g)
    return SdosResult(sdos=sdos, sweep=sweep, gbox=gbox, geometry=geometry)


def get_sdos(
    solver: BlockEigensolver,
    freq_min: float,
    freq_max: float,
    freq_num: int,
    eta: float,
    band_min: int,
    n_bands: int,
    g_min: Iterable[float],
    g_max: Iterable[float],
    save_prefix: str | Path = "",
    *,
    geometry: CellGeometry | None = None,
    kpoint_index: int = 1,
    chunk_size: int = DEFAULT_CHUNK_ELEMENTS,
) -> Path:
    """Compute the SDOS and write it to ``<save_prefix>-sdos.k<kpoint_index>[.<parity>].h5``."""

    result = compute_sdos(
        solver,
        freq_min,
        freq_max,
        freq_num,
        eta,
        band_min,
        n_bands,
        g_min,
        g_max,
        geometry=geometry,
        chunk_size=chunk_size,
    )
    path = write_sdos(result, save_prefix, kpoint_index=kpoint_index, parity=solver.parity)
    logger.info("wrote %s", path)
    return path
