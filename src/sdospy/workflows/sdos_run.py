"""Config-driven SDOS runs over a plane-wave mode set."""

from __future__ import annotations

import argparse
import json
import logging
import re
import socket
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import numpy as np

from sdospy.core import compute_sdos
from sdospy.core.types import SdosResult
from sdospy.io import read_modes, write_sdos
from sdospy.models import HomogeneousMediumParams, PlaneWaveModes, homogeneous_medium_modes


logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _sanitize_token(value: str) -> str:
    token = re.sub(r"[^A-Za-z0-9._-]+", "_", value.strip())
    return token if token else "unnamed"


def _resolve_path(base_dir: Path, path_like: str | Path) -> Path:
    p = Path(path_like)
    return p if p.is_absolute() else (base_dir / p)


def _to_builtin(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, (np.floating, np.integer)):
        return value.item()
    if isinstance(value, dict):
        return {str(k): _to_builtin(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_builtin(v) for v in value]
    return value


def _load_json_config(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8-sig") as fh:
        cfg = json.load(fh)
    if not isinstance(cfg, dict):
        raise ValueError("Input config must be a JSON object.")
    return cfg


def _save_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(_to_builtin(payload), fh, indent=2, sort_keys=True)
        fh.write("\n")


def _triple(value: Any, name: str) -> tuple[float, float, float]:
    vals = [float(v) for v in value]
    if len(vals) != 3:
        raise ValueError(f"{name} must be a list of three numbers.")
    return (vals[0], vals[1], vals[2])


def _build_modes(model_cfg: dict[str, Any], cfg_dir: Path) -> PlaneWaveModes:
    kind = str(model_cfg.get("type", "homogeneous")).lower()
    block_capacity = int(model_cfg.get("block_capacity", 4))
    if kind == "homogeneous":
        grid = tuple(int(v) for v in model_cfg.get("grid_shape", [8, 8, 8]))
        if len(grid) != 3:
            raise ValueError("model.grid_shape must be a list of three integers.")
        params = HomogeneousMediumParams(
            grid_shape=grid,
            epsilon=float(model_cfg.get("epsilon", 1.0)),
            kpoint=_triple(model_cfg.get("kpoint", [0.0, 0.0, 0.0]), "model.kpoint"),
            num_bands=int(model_cfg.get("num_bands", 8)),
            block_capacity=block_capacity,
            volume=float(model_cfg.get("volume", 1.0)),
        )
        return homogeneous_medium_modes(params)
    if kind == "file":
        path = model_cfg.get("path", None)
        if path is None:
            raise ValueError("model.path is required when model.type is 'file'.")
        reader = str(model_cfg.get("reader", "npz"))
        return read_modes(_resolve_path(cfg_dir, path), reader, block_capacity=block_capacity)
    raise ValueError("model.type must be one of: homogeneous, file.")


def _plot_sdos(path: Path, result: SdosResult, *, title: str) -> None:
    import matplotlib.pyplot as plt

    path.parent.mkdir(parents=True, exist_ok=True)
    freqs = result.freqs
    fig, ax = plt.subplots(figsize=(7.2, 4.6))
    mesh = ax.pcolormesh(
        np.arange(result.gbox.n_g),
        freqs,
        result.sdos,
        shading="nearest",
        cmap="viridis",
    )
    fig.colorbar(mesh, ax=ax, label="SDOS")
    ax.set_xlabel("G-vector index")
    ax.set_ylabel(r"Frequency ($2\pi c/a$)")
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(path, dpi=220)
    plt.close(fig)


def _default_template() -> dict[str, Any]:
    return {
        "run": {
            "name": "sdos_run",
            "output_dir": "outputs/sdos_runs",
            "save_prefix": None,
            "kpoint_index": 1,
            "write_plot": False,
            "write_report": True,
        },
        "model": {
            "type": "homogeneous",
            "grid_shape": [8, 8, 8],
            "epsilon": 1.0,
            "kpoint": [0.0, 0.0, 0.0],
            "num_bands": 8,
            "block_capacity": 4,
            "volume": 1.0,
            "reader": "npz",
            "path": None,
        },
        "sdos": {
            "freq_min": 0.0,
            "freq_max": 1.5,
            "freq_num": 151,
            "eta": 1e-2,
            "band_min": 0,
            "n_bands": 8,
            "g_min": [-1, -1, -1],
            "g_max": [1, 1, 1],
        },
    }


def write_input_template(path: str | Path) -> Path:
    out = Path(path)
    _save_json(out, _default_template())
    return out


def run_sdos(config_path: str | Path) -> dict[str, Any]:
    cfg_path = Path(config_path)
    cfg_dir = cfg_path.parent if cfg_path.parent != Path("") else Path(".")
    cfg = _load_json_config(cfg_path)
    defaults = _default_template()
    run_cfg = {**defaults["run"], **dict(cfg.get("run", {}))}
    model_cfg = {**defaults["model"], **dict(cfg.get("model", {}))}
    sdos_cfg = {**defaults["sdos"], **dict(cfg.get("sdos", {}))}

    run_name = str(run_cfg["name"])
    output_dir = _resolve_path(cfg_dir, run_cfg["output_dir"])
    prefix_name = run_cfg["save_prefix"] if run_cfg["save_prefix"] else _sanitize_token(run_name)
    save_prefix = output_dir / str(prefix_name)
    kpoint_index = int(run_cfg["kpoint_index"])

    started = _utc_now_iso()
    t0 = time.perf_counter()
    modes = _build_modes(model_cfg, cfg_dir)
    logger.info(
        "mode set: grid=%s, num_bands=%d, block_capacity=%d",
        modes.grid_shape,
        modes.num_bands,
        modes.block_capacity,
    )

    result = compute_sdos(
        modes,
        float(sdos_cfg["freq_min"]),
        float(sdos_cfg["freq_max"]),
        int(sdos_cfg["freq_num"]),
        float(sdos_cfg["eta"]),
        int(sdos_cfg["band_min"]),
        int(sdos_cfg["n_bands"]),
        _triple(sdos_cfg["g_min"], "sdos.g_min"),
        _triple(sdos_cfg["g_max"], "sdos.g_max"),
    )
    h5_path = write_sdos(result, save_prefix, kpoint_index=kpoint_index, parity=modes.parity)
    outputs: dict[str, Any] = {"sdos_h5": str(h5_path)}

    if bool(run_cfg["write_plot"]):
        plot_path = Path(f"{save_prefix}-sdos.k{kpoint_index}.png")
        _plot_sdos(plot_path, result, title=f"SDOS: {run_name}")
        outputs["plot"] = str(plot_path)

    runtime = time.perf_counter() - t0
    report: dict[str, Any] = {
        "run": {
            "name": run_name,
            "started_utc": started,
            "finished_utc": _utc_now_iso(),
            "runtime_seconds": runtime,
            "hostname": socket.gethostname(),
        },
        "model": {
            "type": model_cfg["type"],
            "grid_shape": list(modes.grid_shape),
            "num_bands": modes.num_bands,
            "block_capacity": modes.block_capacity,
            "parity": modes.parity,
            "kpoint": list(modes.geometry.kpoint),
            "volume": modes.geometry.volume,
        },
        "sdos": {
            "freqspan": result.sweep.span(),
            "iGspan": result.gbox.span(),
            "n_g": result.gbox.n_g,
            "eta": float(sdos_cfg["eta"]),
            "band_min": int(sdos_cfg["band_min"]),
            "n_bands": int(sdos_cfg["n_bands"]),
            "max": float(np.max(result.sdos)),
            "min": float(np.min(result.sdos)),
        },
        "outputs": outputs,
    }
    if bool(run_cfg["write_report"]):
        report_path = Path(f"{save_prefix}-sdos.k{kpoint_index}_report.json")
        _save_json(report_path, report)
        report["outputs"]["report"] = str(report_path)
    return report


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--input", type=Path, default=None, help="Path to JSON run configuration.")
    parser.add_argument("--write-template", type=Path, default=None, help="Write template config and exit.")
    parser.add_argument("--log-level", default="INFO", help="Logging level for the sdospy loggers.")
    args = parser.parse_args()

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("sdospy").setLevel(str(args.log_level).upper())

    if args.write_template is not None:
        out = write_input_template(args.write_template)
        print(f"Wrote template: {out}")
        return
    if args.input is None:
        raise ValueError("Provide --input <config.json> or --write-template <path>.")

    report = run_sdos(args.input)
    print(f"Run complete: {report['run']['name']}")
    print(f"runtime_seconds={report['run']['runtime_seconds']:.3f}")
    print(f"outputs={report['outputs']}")


if __name__ == "__main__":
    main()
