from dataclasses import replace

import numpy as np
import pytest

from sdospy.core import CellGeometry, compute_sdos, frequency_sweep, get_sdos, sdos_pole_sum
from sdospy.io import read_sdos
from sdospy.models import HomogeneousMediumParams, PlaneWaveModes, homogeneous_medium_modes


def _single_band_modes(volume: float = 1.0) -> PlaneWaveModes:
    evecs = np.zeros((4, 4, 4, 2, 1), dtype=np.complex128)
    evecs[0, 0, 0, 0, 0] = 1.0
    return PlaneWaveModes(evecs, np.array([1.0]), 1, geometry=CellGeometry(volume=volume))


def _analytic(freqs: np.ndarray, w: float, eta: float, volume: float) -> np.ndarray:
    return 2.0 * volume / np.pi * freqs * eta / ((w * w - freqs * freqs) ** 2 + eta * eta)


def test_frequency_sweep_includes_both_endpoints() -> None:
    f = frequency_sweep(0.5, 1.5, 3)
    np.testing.assert_allclose(f, [0.5, 1.0, 1.5])
    assert frequency_sweep(0.0, 1.0, 11)[-1] == pytest.approx(1.0)


def test_frequency_sweep_requires_two_points() -> None:
    with pytest.raises(ValueError, match="freq_num"):
        frequency_sweep(0.0, 1.0, 1)


def test_single_band_peak_matches_analytic_pole() -> None:
    modes = _single_band_modes(volume=2.0)
    result = compute_sdos(
        modes,
        0.5,
        1.5,
        3,
        0.01,
        0,
        1,
        (0, 0, 0),
        (0, 0, 0),
    )
    assert result.sdos.shape == (3, 1)
    expected = _analytic(np.array([0.5, 1.0, 1.5]), 1.0, 0.01, 2.0)
    np.testing.assert_allclose(result.sdos[:, 0], expected, rtol=1e-12)
    assert result.sdos[1, 0] == pytest.approx(4.0 / np.pi * 100.0)
    assert result.sdos[1, 0] > 1e3 * result.sdos[0, 0]
    assert result.sdos[1, 0] > 1e3 * result.sdos[2, 0]


def test_sdos_is_finite_and_decays_at_high_frequency() -> None:
    rng = np.random.default_rng(3)
    bth = rng.normal(size=(5, 4)) + 1j * rng.normal(size=(5, 4))
    band_freqs = np.array([0.2, 0.4, 0.4, 0.9])
    sweep = np.concatenate([np.linspace(0.0, 1.0, 101), [1e6, 1e8]])
    sdos = sdos_pole_sum(bth, band_freqs, sweep, eta=1e-6)
    assert np.all(np.isfinite(sdos))
    assert np.max(np.abs(sdos[-1])) < np.max(np.abs(sdos[-2])) < 1e-5


def test_resonant_denominator_uses_complex_division() -> None:
    sdos = sdos_pole_sum(np.array([[1.0 + 0.0j]]), [1.0], [1.0], eta=1e-12)
    assert np.isfinite(sdos[0, 0])
    assert sdos[0, 0] == pytest.approx(2.0 / np.pi * 1e12)


def test_non_positive_eta_is_rejected() -> None:
    modes = _single_band_modes()
    with pytest.raises(ValueError, match="eta"):
        compute_sdos(modes, 0.5, 1.5, 3, 0.0, 0, 1, (0, 0, 0), (0, 0, 0))


def test_one_band_too_many_is_fatal() -> None:
    modes = _single_band_modes()
    with pytest.raises(ValueError, match="not enough bands"):
        compute_sdos(modes, 0.5, 1.5, 3, 0.01, 0, 2, (0, 0, 0), (0, 0, 0))


def test_out_of_range_gbox_is_fatal() -> None:
    modes = _single_band_modes()
    with pytest.raises(ValueError, match="iG3 out of bounds"):
        compute_sdos(modes, 0.5, 1.5, 3, 0.01, 0, 1, (0, 0, -2), (0, 0, 0))


def test_float_gbox_bounds_are_rounded() -> None:
    modes = _single_band_modes()
    result = compute_sdos(modes, 0.5, 1.5, 3, 0.01, 0, 1, (-0.9999999, 0.0, 0.0), (1.0000001, 0.0, 0.0))
    assert result.gbox.g_min == (-1, 0, 0)
    assert result.gbox.g_max == (1, 0, 0)


def test_sdos_rows_follow_gvector_order() -> None:
    evecs = np.zeros((4, 4, 4, 2, 1), dtype=np.complex128)
    evecs[3, 0, 0, 1, 0] = 2.0  # G = (1, 0, 0)
    modes = PlaneWaveModes(evecs, np.array([1.0]), 1)
    result = compute_sdos(modes, 0.5, 1.5, 3, 0.01, 0, 1, (-1, 0, 0), (1, 0, 0))
    assert np.all(result.sdos[:, :2] == 0.0)
    np.testing.assert_allclose(result.sdos[:, 2], 4.0 * _analytic(np.array([0.5, 1.0, 1.5]), 1.0, 0.01, 1.0))


def test_get_sdos_writes_four_described_datasets(tmp_path) -> None:
    modes = _single_band_modes()
    geometry = CellGeometry(volume=1.0, kpoint=(0.5, 0.0, 0.25))
    path = get_sdos(
        modes,
        0.5,
        1.5,
        3,
        0.01,
        0,
        1,
        (-1, 0, 0),
        (1, 1, 2),
        save_prefix=tmp_path / "run",
        geometry=geometry,
        kpoint_index=7,
    )
    assert path == tmp_path / "run-sdos.k7.h5"
    data = read_sdos(path)
    assert data["sdos"].shape == (3 * 3 * 2 * 3,)
    np.testing.assert_allclose(data["freqspan"], [0.5, 1.5, 3.0])
    np.testing.assert_allclose(data["iGspan"], [-1, 1, 0, 1, 0, 2])
    np.testing.assert_allclose(data["kpoint"], [0.5, 0.0, 0.25])
    assert data["descriptions"]["sdos"] == "remember to unfold"
    assert data["descriptions"]["iGspan"] == "iG1_min, iG1_max, iG2_min, iG2_max, iG3_min, iG3_max"
    assert data["unfolded"].shape == (3, 3, 2, 3)
    assert modes.block_bands == modes.block_capacity


def test_get_sdos_takes_volume_and_kpoint_from_solver(tmp_path) -> None:
    params = HomogeneousMediumParams(grid_shape=(4, 4, 4), epsilon=2.0, kpoint=(0.25, 0.0, 0.0), num_bands=4)
    unit = compute_sdos(homogeneous_medium_modes(params), 0.1, 1.0, 10, 0.01, 0, 4, (-1, 0, 0), (1, 0, 0))
    modes = homogeneous_medium_modes(replace(params, volume=3.0))
    path = get_sdos(modes, 0.1, 1.0, 10, 0.01, 0, 4, (-1, 0, 0), (1, 0, 0), save_prefix=tmp_path / "vol")
    data = read_sdos(path)
    np.testing.assert_allclose(data["kpoint"], [0.25, 0.0, 0.0])
    np.testing.assert_allclose(data["sdos"], 3.0 * unit.sdos.ravel(), rtol=1e-12)
    assert np.max(np.abs(unit.sdos)) > 0.0


def test_explicit_geometry_overrides_solver_geometry() -> None:
    modes = _single_band_modes(volume=2.0)
    result = compute_sdos(modes, 0.5, 1.5, 3, 0.01, 0, 1, (0, 0, 0), (0, 0, 0), geometry=CellGeometry(volume=5.0))
    np.testing.assert_allclose(result.sdos[:, 0], _analytic(np.array([0.5, 1.0, 1.5]), 1.0, 0.01, 5.0), rtol=1e-12)


def test_pole_sum_tiling_does_not_change_result() -> None:
    rng = np.random.default_rng(5)
    bth = rng.normal(size=(7, 3)) + 1j * rng.normal(size=(7, 3))
    sweep = np.linspace(0.0, 1.2, 13)
    ref = sdos_pole_sum(bth, [0.3, 0.6, 0.9], sweep, eta=0.02)
    for chunk_size in (1, 2, 3, 5, 22, 100):
        tiled = sdos_pole_sum(bth, [0.3, 0.6, 0.9], sweep, eta=0.02, chunk_size=chunk_size)
        np.testing.assert_allclose(tiled, ref, rtol=1e-13, atol=1e-13)


def test_compute_sdos_forwards_chunk_size() -> None:
    modes = homogeneous_medium_modes(HomogeneousMediumParams(grid_shape=(4, 4, 4), num_bands=6, block_capacity=4))
    ref = compute_sdos(modes, 0.0, 1.5, 16, 0.05, 0, 6, (-1, -1, 0), (1, 1, 0))
    small = compute_sdos(modes, 0.0, 1.5, 16, 0.05, 0, 6, (-1, -1, 0), (1, 1, 0), chunk_size=4)
    np.testing.assert_allclose(small.sdos, ref.sdos, rtol=1e-13, atol=1e-13)
    with pytest.raises(ValueError, match="chunk_size"):
        compute_sdos(modes, 0.0, 1.5, 16, 0.05, 0, 6, (0, 0, 0), (0, 0, 0), chunk_size=0)
