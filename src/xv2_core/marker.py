"""Format marker codec and #SAV magic checks."""
from __future__ import annotations

from typing import NamedTuple

from .protocol import (
    MAGIC,
    MARKER_OFFSET,
    MARKER_LEN,
    MARKER_ID,
    MARKER_FIXED6,
    SpillFlag,
    FormatVersion,
    SaveLayout,
    XV2_LAYOUT,
)


class Marker(NamedTuple):
    version: FormatVersion
    spill: SpillFlag


def has_magic_at(data: bytes, offset: int) -> bool:
    if offset < 0 or offset + len(MAGIC) > len(data):
        return False
    return data[offset:offset + len(MAGIC)] == MAGIC


def has_dual_magic(data: bytes, layout: SaveLayout = XV2_LAYOUT) -> bool:
    """True if #SAV sits at both console sentinel offsets (0x20 and 0xA0)."""
    return all(has_magic_at(data, off) for off in layout.console_magic_offsets)


def make_marker(version: int, spill: int) -> bytes:
    return MARKER_ID + bytes([int(spill), MARKER_FIXED6, int(version)])


def try_read_marker(data: bytes) -> Marker | None:
    """Decode the marker at 0x08, or None if it is absent or malformed."""
    if len(data) < MARKER_OFFSET + MARKER_LEN:
        return None

    raw = data[MARKER_OFFSET:MARKER_OFFSET + MARKER_LEN]
    if raw[:5] != MARKER_ID or raw[6] != MARKER_FIXED6:
        return None

    try:
        spill = SpillFlag(raw[5])
        version = FormatVersion(raw[7])
    except ValueError:
        return None
    return Marker(version, spill)


def has_any_marker(data: bytes) -> bool:
    return try_read_marker(data) is not None


def looks_like_v2(data: bytes, layout: SaveLayout = XV2_LAYOUT) -> bool:
    """Marker plausibility plus structural plausibility of an editor buffer.

    The tail byte in front of the #SAV block is opaque and accepted as-is.
    """
    m = try_read_marker(data)
    if m is None or m.version != FormatVersion.V2:
        return False
    if len(data) != layout.editor_size:
        return False
    return has_magic_at(data, layout.editor_sentinel_offset)
