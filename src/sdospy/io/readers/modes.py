"""Load plane-wave eigenmode sets saved as ``.npz`` archives or HDF5 files.

Both formats carry the same fields:

- ``evectors``: complex ``(nx, ny, nz, 2, num_bands)`` in folded storage order,
- ``freqs``: real ``(num_bands,)`` eigenfrequencies,
- optional ``h_transfer`` (``(nx, ny, nz)`` or scalar), ``kpoint`` (3,),
  ``volume`` (scalar) and ``parity`` (string).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import h5py
import numpy as np

from sdospy.core.types import CellGeometry
from sdospy.models.planewave import PlaneWaveModes


def _modes_from_fields(fields: Mapping[str, Any], block_capacity: int, source: Path) -> PlaneWaveModes:
    for key in ("evectors", "freqs"):
        if key not in fields:
            raise ValueError(f"Mode file {source} is missing required field '{key}'.")
    kpoint = np.asarray(fields.get("kpoint", (0.0, 0.0, 0.0)), dtype=float).ravel()
    volume = float(np.asarray(fields.get("volume", 1.0), dtype=float))
    parity_raw = fields.get("parity", None)
    parity = None
    if parity_raw is not None:
        parity_val = np.asarray(parity_raw).item()
        parity = parity_val.decode() if isinstance(parity_val, bytes) else str(parity_val)
        parity = parity or None
    return PlaneWaveModes(
        np.asarray(fields["evectors"]),
        np.asarray(fields["freqs"], dtype=float),
        block_capacity,
        h_transfer=fields.get("h_transfer", None),
        parity=parity,
        geometry=CellGeometry(volume=volume, kpoint=tuple(float(v) for v in kpoint)),
    )


def read_npz_modes(source: Any, *, block_capacity: int) -> PlaneWaveModes:
    """Read a mode set from ``numpy.savez`` output."""

    path = Path(source)
    with np.load(path, allow_pickle=False) as data:
        fields = {key: data[key] for key in data.files}
    return _modes_from_fields(fields, block_capacity, path)


def read_h5_modes(source: Any, *, block_capacity: int) -> PlaneWaveModes:
    """Read a mode set from an HDF5 file with one dataset per field."""

    path = Path(source)
    with h5py.File(path, "r") as fh:
        fields = {key: fh[key][()] for key in fh.keys() if isinstance(fh[key], h5py.Dataset)}
    return _modes_from_fields(fields, block_capacity, path)


def save_npz_modes(path: str | Path, modes: PlaneWaveModes) -> Path:
    """Write a mode set in the layout :func:`read_npz_modes` expects."""

    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    payload: dict[str, Any] = {
        "evectors": modes.evectors,
        "freqs": modes.freqs,
        "h_transfer": modes.h_transfer,
        "kpoint": np.asarray(modes.geometry.kpoint, dtype=float),
        "volume": np.asarray(modes.geometry.volume, dtype=float),
    }
    if modes.parity:
        payload["parity"] = np.asarray(modes.parity)
    with out.open("wb") as fh:
        np.savez(fh, **payload)
    return out
