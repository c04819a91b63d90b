"""HDF5 persistence of SDOS results."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import h5py
import numpy as np

from sdospy.core.types import SdosResult


Array = np.ndarray

FNAME_SUFFIX = ".h5"
SDOS_DATASETS: dict[str, str] = {
    "sdos": "remember to unfold",
    "freqspan": "freq_min, freq_max, freq_num",
    "iGspan": "iG1_min, iG1_max, iG2_min, iG2_max, iG3_min, iG3_max",
    "kpoint": "current k-point (reciprocal-lattice coordinates)",
}


def sdos_filename(save_prefix: str | Path = "", kpoint_index: int = 1, parity: str | None = None) -> Path:
    """Return ``<prefix>-sdos.k<index>[.<parity>].h5``."""

    name = f"{save_prefix}-sdos.k{int(kpoint_index)}"
    if parity:
        name = f"{name}.{parity}"
    return Path(name + FNAME_SUFFIX)


def _write_dataset(fh: h5py.File, name: str, data: Array) -> None:
    arr = np.ascontiguousarray(np.asarray(data, dtype=float).ravel())
    dset = fh.create_dataset(name, data=arr)
    dset.attrs["description"] = SDOS_DATASETS[name]


def write_sdos(
    result: SdosResult,
    save_prefix: str | Path = "",
    *,
    kpoint_index: int = 1,
    parity: str | None = None,
) -> Path:
    """Write the four SDOS datasets and return the file path.

    ``sdos`` is stored flat, row-major by frequency then G-vector.
    """

    path = sdos_filename(save_prefix, kpoint_index=kpoint_index, parity=parity)
    path.parent.mkdir(parents=True, exist_ok=True)
    with h5py.File(path, "w") as fh:
        _write_dataset(fh, "sdos", result.sdos)
        _write_dataset(fh, "freqspan", result.sweep.span())
        _write_dataset(fh, "iGspan", result.gbox.span())
        _write_dataset(fh, "kpoint", np.asarray(result.geometry.kpoint, dtype=float))
    return path


def read_sdos(path: str | Path) -> dict[str, Any]:
    """Read an SDOS file back into arrays plus descriptions and the unfolded sdos."""

    out: dict[str, Any] = {"descriptions": {}}
    with h5py.File(Path(path), "r") as fh:
        missing = [name for name in SDOS_DATASETS if name not in fh]
        if missing:
            raise ValueError(f"SDOS file {path} is missing datasets: {', '.join(missing)}")
        for name in SDOS_DATASETS:
            out[name] = np.asarray(fh[name][()], dtype=float)
            desc = fh[name].attrs.get("description", "")
            out["descriptions"][name] = desc.decode() if isinstance(desc, bytes) else str(desc)
    out["unfolded"] = unfold_sdos(out["sdos"], out["freqspan"], out["iGspan"])
    return out


def unfold_sdos(flat: Array, freqspan: Array, igspan: Array) -> Array:
    """Reshape a flat sdos dataset to ``(freq_num, nG1, nG2, nG3)``."""

    freq_num = int(round(float(freqspan[2])))
    g = [int(round(float(v))) for v in igspan]
    shape = (freq_num, g[1] - g[0] + 1, g[3] - g[2] + 1, g[5] - g[4] + 1)
    flat = np.asarray(flat, dtype=float)
    if flat.size != int(np.prod(shape)):
        raise ValueError(f"sdos has {flat.size} entries, expected {int(np.prod(shape))} for shape {shape}.")
    return flat.reshape(shape)
