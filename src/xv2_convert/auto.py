from __future__ import annotations

from pathlib import Path

from xv2_core.errors import MarkerError
from xv2_core.marker import has_any_marker, has_dual_magic, looks_like_v2, try_read_marker
from xv2_core.protocol import FormatVersion, SpillFlag, SaveLayout, XV2_LAYOUT

from xv2_convert.unpack import pcready_to_ps4

PS4_TO_PC = "ps4topc"
PC_TO_PS4 = "pctops4"
AUTO = "auto"
MODES = (PS4_TO_PC, PC_TO_PS4, AUTO)


def detect_direction(data: bytes, layout: SaveLayout = XV2_LAYOUT) -> str:
    """PS4 saves are recognised by dual #SAV magic, PC-ready ones by the marker."""
    if has_dual_magic(data, layout):
        return PS4_TO_PC
    if has_any_marker(data):
        return PC_TO_PS4
    raise MarkerError("Unknown format detected", length=len(data))


def convert_auto(data: bytes, input_path: str | Path, layout: SaveLayout = XV2_LAYOUT) -> bytes:
    """Unpack a PC-ready buffer after checking its marker and structure."""
    marker = try_read_marker(data)
    if marker is None:
        raise MarkerError("Marker not recognized at 0x08.")

    if marker.version != FormatVersion.V2:
        raise MarkerError("Only v2 format is supported now.", version=int(marker.version))
    if not looks_like_v2(data, layout):
        raise MarkerError(
            "Marker says v2 but layout sanity checks failed.",
            length=len(data),
            sentinel_offset=layout.editor_sentinel_offset,
        )

    return pcready_to_ps4(data, input_path, marker.spill == SpillFlag.PRESENT, layout)
