"""PC-ready -> PS4 unpacking, the inverse of ``pack``."""
from __future__ import annotations

from pathlib import Path
from warnings import warn

from xv2_core.errors import GeometryError, MagicError, SizeError
from xv2_core.marker import has_magic_at
from xv2_core.protocol import LEADING_LEN, MARKER_LEN, SaveLayout, XV2_LAYOUT

from xv2_convert.spill import read_spill, spill_path


def _recover_hcd_tail(input_path: str | Path, missing: int, has_leftovers: bool) -> bytes:
    """Bytes cut off the HCD section by packing.

    Best effort: missing or short leftovers are zero-filled with a warning.
    """
    tail = bytearray(missing)
    if not has_leftovers:
        return bytes(tail)

    lf = read_spill(input_path)
    if lf is None:
        warn(
            f"v2 unpack: marker indicates leftovers, but {spill_path(input_path).name} "
            f"not found; filling 0x{missing:X} missing bytes with zeros."
        )
        return bytes(tail)

    take = min(missing, len(lf))
    tail[:take] = lf[:take]
    print(f"v2 unpack: used leftovers {spill_path(input_path).name} (0x{take:X} bytes)")
    if take < missing:
        warn(f"v2 unpack: leftovers file short by 0x{missing - take:X} bytes; zero-filled.")
    return bytes(tail)


def pcready_to_ps4(
    data: bytes,
    input_path: str | Path,
    has_leftovers: bool,
    layout: SaveLayout = XV2_LAYOUT,
) -> bytes:
    """Rebuild the PS4 save from a PC-ready buffer."""
    if len(data) != layout.editor_size:
        raise SizeError(
            f"v2 unpack expects editor size 0x{layout.editor_size:X}, got 0x{len(data):X}.",
            expected=layout.editor_size,
            actual=len(data),
        )

    sav_start = layout.editor_sentinel_offset
    z_index = layout.editor_tail_index
    if not has_magic_at(data, sav_start):
        raise MagicError("v2 unpack sanity failed: #SAV not found at start of the #SAV block.", offset=sav_start)

    md5_header = data[len(data) - layout.checksum_size:]
    sav_header = data[sav_start:sav_start + layout.sentinel_size]
    z_byte = data[z_index]
    first_8 = data[:LEADING_LEN]

    hcd_start = layout.aligned_start_in_middle
    if hcd_start < LEADING_LEN:
        raise GeometryError("Bad constants: middle segment length negative.", hcd_start=hcd_start)
    seg_len = hcd_start - LEADING_LEN

    seg_start = LEADING_LEN + MARKER_LEN
    if seg_start + seg_len > z_index:
        raise GeometryError(
            "v2 unpack: middle segment out of range.",
            segment_end=seg_start + seg_len,
            z_index=z_index,
        )
    middle_segment = data[seg_start:seg_start + seg_len]

    # HCD data present in the PC-ready file runs from its fixed start up to Z.
    if layout.aligned_start_editor > z_index:
        raise GeometryError(
            "v2 unpack: HCD section start beyond Z byte.",
            hcd_start=layout.aligned_start_editor,
            z_index=z_index,
        )
    hcd_present = data[layout.aligned_start_editor:z_index]

    hcd_full_len = layout.aligned_full_len
    if len(hcd_present) > hcd_full_len:
        raise GeometryError(
            f"v2 unpack: HCD section present is larger than HCD section full "
            f"(surplus=0x{len(hcd_present) - hcd_full_len:X}). Refusing.",
            present=len(hcd_present),
            full=hcd_full_len,
        )
    missing = hcd_full_len - len(hcd_present)

    middle = first_8 + middle_segment + hcd_present
    if missing > 0:
        middle += _recover_hcd_tail(input_path, missing, has_leftovers)

    if len(middle) != layout.middle_len:
        raise GeometryError(
            "v2 unpack: middle length mismatch.",
            middle_len=len(middle),
            expected=layout.middle_len,
        )

    ps4 = md5_header + sav_header + middle + bytes([z_byte])

    for off in layout.console_magic_offsets:
        if not has_magic_at(ps4, off):
            raise MagicError(f"v2 unpack produced PS4 without #SAV at 0x{off:X}.", offset=off)

    return bytes(ps4)
