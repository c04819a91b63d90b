from .modes import read_h5_modes, read_npz_modes, save_npz_modes

__all__ = ["read_npz_modes", "read_h5_modes", "save_npz_modes"]
