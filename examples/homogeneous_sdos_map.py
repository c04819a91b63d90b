"""Plot the SDOS of a uniform dielectric along a line of G-vectors."""

import numpy as np
import matplotlib.pyplot as plt

from sdospy.core import compute_sdos
from sdospy.models import HomogeneousMediumParams, homogeneous_medium_modes


params = HomogeneousMediumParams(
    grid_shape=(8, 8, 8),
    epsilon=2.25,
    kpoint=(0.1, 0.0, 0.0),
    num_bands=24,
    block_capacity=6,
)
modes = homogeneous_medium_modes(params)

result = compute_sdos(
    modes,
    freq_min=0.0,
    freq_max=1.5,
    freq_num=400,
    eta=2e-3,
    band_min=0,
    n_bands=modes.num_bands,
    g_min=(-3, 0, 0),
    g_max=(4, 0, 0),
)

gline = np.arange(-3, 5)
plt.pcolormesh(gline, result.freqs, result.sdos, shading="nearest", cmap="magma")
plt.colorbar(label="SDOS")
plt.xlabel(r"$i_1$ ($G = i_1 G_1$)")
plt.ylabel(r"Frequency ($2\pi c/a$)")
plt.title("Uniform dielectric SDOS, eps = 2.25")
plt.tight_layout()
plt.show()
