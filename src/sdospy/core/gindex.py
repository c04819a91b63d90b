"""Reciprocal-lattice index bookkeeping for folded plane-wave arrays.

We adopt the convention that ``(i1, i2, i3)`` labels the G-vector
``G = i1*G1 + i2*G2 + i3*G3`` (sign flip incorporated), while ``(ix, iy, iz)``
are the associated positions in the folded eigenvector arrays.  Along an axis
with ``n`` samples, ``v <= 0`` is stored at ``-v`` and ``v > 0`` at ``n - v``.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .types import GBox, IntTriple


Array = np.ndarray
_AXES = ("iG1", "iG2", "iG3")


def round_lattice_index(x: float) -> int:
    """Round a float lattice coordinate to the nearest integer, halves away from zero."""

    x = float(x)
    if not np.isfinite(x):
        raise ValueError(f"lattice index must be finite (got {x}).")
    if x >= 0.0:
        return int(np.floor(x + 0.5))
    return -int(np.floor(-x + 0.5))


def fold_index(v: int, n: int) -> int:
    """Return the storage position of lattice index ``v`` on an axis of extent ``n``."""

    return -int(v) if v <= 0 else int(n) - int(v)


def unfold_index(s: int, n: int) -> int:
    """Inverse of :func:`fold_index` onto the range ``(-n/2, n/2]``."""

    if s < 0 or s >= n:
        raise ValueError(f"storage index {s} out of range for extent {n}.")
    return -int(s) if s < (n + 1) // 2 else int(n) - int(s)


def _axis_ok(lo: int, hi: int, n: int) -> bool:
    # -(n // 2) matches truncating integer division of -n/2 for n >= 0.
    half = n // 2
    if lo > -half and hi <= half:
        return True
    return lo == hi and hi == n - 1 and n - 1 == 0


def validate_gbox(g_min: Iterable[int], g_max: Iterable[int], grid_shape: Iterable[int]) -> GBox:
    """Check a G-box against the sampling grid and return it as a :class:`GBox`."""

    box = GBox(g_min=_as_triple(g_min, "g_min"), g_max=_as_triple(g_max, "g_max"))
    shape = _as_triple(grid_shape, "grid_shape")
    for name, lo, hi, n in zip(_AXES, box.g_min, box.g_max, shape):
        if n <= 0:
            raise ValueError(f"grid extent along {name} must be positive (got {n}).")
        if not _axis_ok(lo, hi, n):
            raise ValueError(
                f"{name} out of bounds: [{lo}, {hi}] requires min > {-(n // 2)} and max <= {n // 2} "
                f"for grid extent {n}."
            )
    return box


def gvector_list(g_min: Iterable[int], g_max: Iterable[int]) -> Array:
    """Return requested G-vectors as an ``(nG, 3)`` integer array in row order.

    Axis 1 is the outermost loop and axis 3 the innermost, all ascending.
    """

    box = GBox(g_min=_as_triple(g_min, "g_min"), g_max=_as_triple(g_max, "g_max"))
    axes = [np.arange(lo, hi + 1, dtype=int) for lo, hi in zip(box.g_min, box.g_max)]
    i1, i2, i3 = np.meshgrid(*axes, indexing="ij")
    return np.stack([i1.ravel(), i2.ravel(), i3.ravel()], axis=1)


def storage_indices(
    g_min: Iterable[int],
    g_max: Iterable[int],
    grid_shape: Iterable[int],
) -> tuple[Array, Array, Array]:
    """Validate a G-box and return folded ``(ix, iy, iz)`` arrays for every G-vector."""

    return fold_gbox(validate_gbox(g_min, g_max, grid_shape), grid_shape)


def fold_gbox(box: GBox, grid_shape: Iterable[int]) -> tuple[Array, Array, Array]:
    """Fold every G-vector of an already validated box into storage positions."""

    nx, ny, nz = _as_triple(grid_shape, "grid_shape")
    gvecs = gvector_list(box.g_min, box.g_max)
    ix = np.where(gvecs[:, 0] <= 0, -gvecs[:, 0], nx - gvecs[:, 0])
    iy = np.where(gvecs[:, 1] <= 0, -gvecs[:, 1], ny - gvecs[:, 1])
    iz = np.where(gvecs[:, 2] <= 0, -gvecs[:, 2], nz - gvecs[:, 2])
    return ix.astype(int), iy.astype(int), iz.astype(int)


def _as_triple(values: Iterable[int], name: str) -> IntTriple:
    # Float bounds are rounded, not truncated, so -0.9999999 maps to -1.
    vals = [round_lattice_index(v) for v in values]
    if len(vals) != 3:
        raise ValueError(f"{name} must have three components.")
    return (vals[0], vals[1], vals[2])
