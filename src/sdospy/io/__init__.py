from sdospy.io.h5writer import read_sdos, sdos_filename, unfold_sdos, write_sdos
from sdospy.io.readers import read_h5_modes, read_npz_modes, save_npz_modes
from sdospy.io.registry import get_reader, list_readers, read_modes, register_reader


register_reader("npz", read_npz_modes)
register_reader("h5", read_h5_modes)

__all__ = [
    "register_reader",
    "get_reader",
    "list_readers",
    "read_modes",
    "read_npz_modes",
    "read_h5_modes",
    "save_npz_modes",
    "write_sdos",
    "read_sdos",
    "sdos_filename",
    "unfold_sdos",
]
