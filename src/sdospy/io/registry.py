"""Named loaders that turn a file on disk into a :class:`PlaneWaveModes` solver.

A reader is called as ``reader(source, block_capacity=...)``.  The block
capacity is a property of the working buffer, not of the stored modes, so it
is always chosen by the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from sdospy.models.planewave import PlaneWaveModes


ModeReader = Callable[..., PlaneWaveModes]
_MODE_READERS: dict[str, ModeReader] = {}


def register_reader(name: str, reader: ModeReader) -> None:
    key = name.strip().lower()
    if not key:
        raise ValueError("Mode reader name must be non-empty.")
    if not callable(reader):
        raise TypeError(f"Mode reader '{name}' must be callable.")
    _MODE_READERS[key] = reader


def get_reader(name: str) -> ModeReader:
    try:
        return _MODE_READERS[name.strip().lower()]
    except KeyError as exc:
        available = ", ".join(sorted(_MODE_READERS)) or "<none>"
        raise KeyError(f"Unknown mode reader '{name}'. Available readers: {available}") from exc


def list_readers() -> tuple[str, ...]:
    return tuple(sorted(_MODE_READERS))


def read_modes(source: Any, reader: str, *, block_capacity: int) -> PlaneWaveModes:
    """Load a mode set with the named reader and check what it returned."""

    if int(block_capacity) <= 0:
        raise ValueError(f"block_capacity must be positive (got {block_capacity}).")
    modes = get_reader(reader)(source, block_capacity=int(block_capacity))
    if not isinstance(modes, PlaneWaveModes):
        raise TypeError(f"Mode reader '{reader}' returned {type(modes).__name__}, expected PlaneWaveModes.")
    return modes
