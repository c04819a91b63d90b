"""Overlap between a full eigenvector set and reconstructed eigenvector blocks."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator

import numpy as np

from .gindex import fold_gbox, validate_gbox
from .types import BlockEigensolver


Array = np.ndarray
logger = logging.getLogger(__name__)


def check_band_range(solver: BlockEigensolver, band_min: int, n_bands: int) -> None:
    if band_min < 0:
        raise ValueError(f"band_min must be non-negative (got {band_min}).")
    if n_bands <= 0:
        raise ValueError(f"n_bands must be positive (got {n_bands}).")
    if band_min + n_bands > solver.num_bands:
        raise ValueError(
            f"not enough bands in overlap: band_min + n_bands = {band_min + n_bands} "
            f"exceeds the {solver.num_bands} available bands."
        )


@contextmanager
def band_window(solver: BlockEigensolver, n_bands: int) -> Iterator[BlockEigensolver]:
    """Temporarily shrink the solver's working block to ``n_bands`` bands.

    The block size and active band count found on entry are put back on exit,
    whether or not the body raised.
    """

    capacity = solver.block_capacity
    if n_bands <= 0 or n_bands > capacity:
        raise ValueError(f"band window must be in [1, {capacity}] (got {n_bands}).")
    prev_block = solver.block_bands
    prev_active = solver.active_bands
    try:
        solver.set_active_band_count(n_bands)
        solver.resize_block(n_bands)
        yield solver
    finally:
        solver.resize_block(prev_block)
        solver.set_active_band_count(prev_active)


def _accumulate_chunk(
    out: Array,
    b_sel: Array,
    h_block: Array,
    col0: int,
) -> None:
    # Tr over the polarization subspace of conj(B) * H at each requested position.
    out[:, col0 : col0 + h_block.shape[-1]] = np.sum(np.conj(b_sel) * h_block, axis=1)


def compute_overlap(
    solver: BlockEigensolver,
    g_min: Iterable[int],
    g_max: Iterable[int],
    band_min: int,
    n_bands: int,
) -> Array:
    """Return the complex overlap matrix ``BtH`` with shape ``(nG, n_bands)``.

    ``BtH[n, b - band_min] = sum_c conj(B[pos_n, c, b]) * H[pos_n, c, b]`` where
    ``pos_n`` is the folded storage position of the n-th requested G-vector
    and ``H`` is rebuilt block by block by the solver.  Bands are processed in
    chunks of at most ``solver.block_capacity``; the solver's block sizing is
    the same after the call as before it, including when it raises.
    """

    band_min = int(band_min)
    n_bands = int(n_bands)
    check_band_range(solver, band_min, n_bands)
    nx, ny, nz = solver.grid_shape
    box = validate_gbox(g_min, g_max, solver.grid_shape)
    ix, iy, iz = fold_gbox(box, solver.grid_shape)
    n_g = int(ix.size)

    logger.info("iG_min = %s, iG_max = %s", box.g_min, box.g_max)
    logger.info("nx = %d, ny = %d, nz = %d", nx, ny, nz)
    logger.info("nG = %d, nG_avail = %d, n_bands = %d", n_g, nx * ny * nz, n_bands)

    evecs = solver.evectors
    capacity = solver.block_capacity
    if capacity <= 0:
        raise ValueError(f"solver block capacity must be positive (got {capacity}).")
    final_band = band_min + n_bands
    bth = np.zeros((n_g, n_bands), dtype=np.complex128)

    for start in range(band_min, final_band, capacity):
        stop = min(start + capacity, final_band)
        count = stop - start
        b_sel = evecs[ix, iy, iz, :, start:stop]
        logger.debug("overlap chunk: bands [%d, %d)", start, stop)
        with band_window(solver, count):
            h_block = solver.reconstruct_block(start, count)
            _accumulate_chunk(bth, b_sel, h_block[ix, iy, iz, :, :count], start - band_min)
    return bth
