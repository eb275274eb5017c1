from __future__ import annotations

from pathlib import Path

from xv2_core.errors import SpillIOError
from xv2_core.protocol import SPILL_SUFFIX


def spill_path(input_path: str | Path) -> Path:
    """Leftovers file that belongs to ``input_path`` (``<input>.leftovers.dec``)."""
    return Path(str(input_path) + SPILL_SUFFIX)


def write_spill(input_path: str | Path, removed: bytes) -> Path:
    p = spill_path(input_path)
    try:
        p.write_bytes(removed)
    except OSError as e:
        raise SpillIOError(f"Failed to write leftovers file: {p} ({e})", path=str(p), length=len(removed)) from e
    return p


def read_spill(input_path: str | Path) -> bytes | None:
    """Leftovers bytes, or None when the file does not exist."""
    p = spill_path(input_path)
    if not p.exists():
        return None
    try:
        return p.read_bytes()
    except OSError as e:
        raise SpillIOError(f"Failed to read leftovers file: {p} ({e})", path=str(p)) from e
