from .gindex import fold_gbox, fold_index, gvector_list, round_lattice_index, storage_indices, unfold_index, validate_gbox
from .overlap import band_window, check_band_range, compute_overlap
from .sdos import compute_sdos, frequency_sweep, get_sdos, sdos_pole_sum
from .types import BlockEigensolver, CellGeometry, FrequencySweep, GBox, SdosResult

__all__ = [
    "BlockEigensolver",
    "CellGeometry",
    "FrequencySweep",
    "GBox",
    "SdosResult",
    "fold_gbox",
    "fold_index",
    "unfold_index",
    "round_lattice_index",
    "validate_gbox",
    "gvector_list",
    "storage_indices",
    "band_window",
    "check_band_range",
    "compute_overlap",
    "frequency_sweep",
    "sdos_pole_sum",
    "compute_sdos",
    "get_sdos",
]
