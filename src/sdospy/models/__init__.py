from .planewave import HomogeneousMediumParams, PlaneWaveModes, homogeneous_medium_modes

__all__ = [
    "PlaneWaveModes",
    "HomogeneousMediumParams",
    "homogeneous_medium_modes",
]
