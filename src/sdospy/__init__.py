from .core import CellGeometry, GBox, compute_overlap, compute_sdos, get_sdos, storage_indices
from .models import HomogeneousMediumParams, PlaneWaveModes, homogeneous_medium_modes

__all__ = [
    "CellGeometry",
    "GBox",
    "storage_indices",
    "compute_overlap",
    "compute_sdos",
    "get_sdos",
    "PlaneWaveModes",
    "HomogeneousMediumParams",
    "homogeneous_medium_modes",
]
