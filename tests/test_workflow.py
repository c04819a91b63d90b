import json

import numpy as np

from sdospy.io import read_sdos, save_npz_modes
from sdospy.models import PlaneWaveModes
from sdospy.workflows.sdos_run import run_sdos, write_input_template


def test_template_round_trips_through_json(tmp_path) -> None:
    out = write_input_template(tmp_path / "cfg.json")
    cfg = json.loads(out.read_text(encoding="utf-8"))
    assert cfg["model"]["type"] == "homogeneous"
    assert cfg["sdos"]["freq_num"] >= 2


def test_run_sdos_homogeneous(tmp_path) -> None:
    cfg = {
        "run": {"name": "homog", "output_dir": "out", "kpoint_index": 2},
        "model": {"type": "homogeneous", "grid_shape": [4, 4, 4], "epsilon": 2.0, "num_bands": 6, "block_capacity": 4},
        "sdos": {
            "freq_min": 0.0,
            "freq_max": 1.0,
            "freq_num": 21,
            "eta": 0.01,
            "band_min": 0,
            "n_bands": 6,
            "g_min": [-1, 0, 0],
            "g_max": [1, 0, 0],
        },
    }
    cfg_path = tmp_path / "cfg.json"
    cfg_path.write_text(json.dumps(cfg), encoding="utf-8")

    report = run_sdos(cfg_path)
    h5_path = tmp_path / "out" / "homog-sdos.k2.h5"
    assert report["outputs"]["sdos_h5"] == str(h5_path)
    data = read_sdos(h5_path)
    assert data["unfolded"].shape == (21, 3, 1, 1)
    assert np.all(np.isfinite(data["sdos"]))
    assert (tmp_path / "out" / "homog-sdos.k2_report.json").exists()


def test_run_sdos_from_mode_file_appends_parity(tmp_path) -> None:
    evecs = np.zeros((2, 2, 1, 2, 2), dtype=np.complex128)
    evecs[0, 0, 0, 0, 0] = 1.0
    evecs[1, 0, 0, 1, 1] = 1.0
    save_npz_modes(tmp_path / "modes.npz", PlaneWaveModes(evecs, [0.4, 0.8], 2, parity="tm"))
    cfg = {
        "run": {"name": "file run", "output_dir": "out", "write_report": False},
        "model": {"type": "file", "reader": "npz", "path": "modes.npz", "block_capacity": 1},
        "sdos": {
            "freq_min": 0.2,
            "freq_max": 1.0,
            "freq_num": 5,
            "eta": 0.05,
            "band_min": 0,
            "n_bands": 2,
            "g_min": [0, 0, 0],
            "g_max": [1, 1, 0],
        },
    }
    cfg_path = tmp_path / "cfg.json"
    cfg_path.write_text(json.dumps(cfg), encoding="utf-8")

    report = run_sdos(cfg_path)
    h5_path = tmp_path / "out" / "file_run-sdos.k1.tm.h5"
    assert report["outputs"]["sdos_h5"] == str(h5_path)
    assert "report" not in report["outputs"]
    data = read_sdos(h5_path)
    sdos = data["unfolded"]
    # G=(0,0,0) sees band 0, G=(1,0,0) (stored at ix=1) sees band 1
    assert np.argmax(sdos[:, 0, 0, 0]) == 1
    assert np.argmax(sdos[:, 1, 0, 0]) == 3
    assert np.all(sdos[:, 0, 1, 0] == 0.0)
