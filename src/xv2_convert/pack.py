"""PS4 -> PC-ready packing.

PS4:      [MD5 header][#SAV block][middle ...................][Z]
PC-ready: [first 8][marker][middle segment][fill][HCD data][Z][#SAV block][MD5 header]

The HCD data must start at a fixed absolute offset in the PC-ready file, so
zero fill is inserted in front of it. PC-ready is the smaller file; whatever
falls off the end of the HCD data is kept in a leftovers file when non-zero.
"""
from __future__ import annotations

from pathlib import Path

from xv2_core.errors import GeometryError, MagicError, SizeError
from xv2_core.marker import has_magic_at, make_marker
from xv2_core.protocol import (
    CURRENT_VERSION,
    LEADING_LEN,
    MARKER_LEN,
    MARKER_OFFSET,
    SpillFlag,
    SaveLayout,
    XV2_LAYOUT,
)

from xv2_convert.spill import write_spill


def ps4_to_pcready(data: bytes, input_path: str | Path, layout: SaveLayout = XV2_LAYOUT) -> bytes:
    """Repack a PS4 save into the PC-ready layout.

    May create ``<input_path>.leftovers.dec``; raises ConversionError on any
    size, geometry or magic inconsistency.
    """
    if len(data) != layout.console_size:
        raise SizeError(
            f"PS4 size expected 0x{layout.console_size:X}, got 0x{len(data):X}.",
            expected=layout.console_size,
            actual=len(data),
        )

    cs, ss = layout.checksum_size, layout.sentinel_size
    md5_header = data[:cs]
    sav_header = data[cs:cs + ss]
    z_byte = data[-1]
    middle = data[cs + ss:-1]

    # The #SAV block is copied unchanged; refuse before any leftovers are written.
    if not has_magic_at(sav_header, 0):
        raise MagicError("#SAV not found at start of the PS4 #SAV block.", offset=cs)

    if len(middle) <= LEADING_LEN:
        raise SizeError("PS4 structure too small.", middle_len=len(middle))

    hcd_start = layout.aligned_start_in_middle
    if hcd_start < LEADING_LEN:
        raise GeometryError("Bad HCD start offset (middle segment would be negative).", hcd_start=hcd_start)
    if hcd_start >= len(middle):
        raise GeometryError(
            "Bad HCD start offset (HCD section empty).",
            hcd_start=hcd_start,
            middle_len=len(middle),
        )

    first_8 = middle[:LEADING_LEN]
    middle_segment = middle[LEADING_LEN:hcd_start]
    hcd_section = middle[hcd_start:]

    base_start = LEADING_LEN + MARKER_LEN + len(middle_segment)
    if base_start > layout.aligned_start_editor:
        raise GeometryError(
            f"fillLen negative (0x{base_start - layout.aligned_start_editor:X}). "
            "Expected HCD start too early vs data. Refusing.",
            base_start=base_start,
            expected_start=layout.aligned_start_editor,
        )
    fill_len = layout.aligned_start_editor - base_start

    prefix = bytearray()
    prefix += first_8
    prefix += make_marker(CURRENT_VERSION, SpillFlag.NONE)
    prefix += middle_segment
    prefix += bytes(fill_len)
    prefix += hcd_section

    required = layout.required_prefix_len
    leftovers = False

    if len(prefix) < required:
        prefix += bytes(required - len(prefix))
    elif len(prefix) > required:
        excess = len(prefix) - required
        if excess > len(prefix):
            raise GeometryError("Excess trim larger than prefix; refusing.", excess=excess, prefix_len=len(prefix))

        removed = bytes(prefix[-excess:])
        del prefix[-excess:]

        if any(removed):
            leftovers = True
            p = write_spill(input_path, removed)
            print(f"LEFTOVERS → {p.name} (0x{excess:X} bytes)")

    if len(prefix) != required:
        raise GeometryError(
            f"Internal size mismatch: prefix 0x{len(prefix):X} != required 0x{required:X}.",
            prefix_len=len(prefix),
            required=required,
        )

    out = bytearray(prefix)
    out.append(z_byte)
    out += sav_header
    out += md5_header

    if leftovers:
        out[MARKER_OFFSET + 5] = SpillFlag.PRESENT

    if len(out) != layout.editor_size:
        raise SizeError(
            "Packed output size mismatch.",
            expected=layout.editor_size,
            actual=len(out),
        )
    if not has_magic_at(out, layout.editor_sentinel_offset):
        raise MagicError(
            "Packed v2 sanity failed: #SAV not found at start of the #SAV block.",
            offset=layout.editor_sentinel_offset,
        )

    return bytes(out)
