"""Write an SDOS .h5 file for a 2D (nz = 1) uniform-medium mode set and read it back."""

from sdospy.core import get_sdos
from sdospy.io import read_sdos
from sdospy.models import HomogeneousMediumParams, homogeneous_medium_modes


modes = homogeneous_medium_modes(
    HomogeneousMediumParams(grid_shape=(16, 16, 1), epsilon=12.0, num_bands=16, block_capacity=5)
)
path = get_sdos(
    modes,
    0.0,
    0.6,
    121,
    1e-3,
    0,
    modes.num_bands,
    (-2, -2, 0),
    (2, 2, 0),
    save_prefix="uniform2d",
)

data = read_sdos(path)
print(f"wrote {path}")
print("freqspan:", data["freqspan"])
print("iGspan:", data["iGspan"])
print("unfolded shape:", data["unfolded"].shape)
