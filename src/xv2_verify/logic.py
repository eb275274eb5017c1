from pathlib import Path

from xv2_core.errors import ConversionError, GeometryError, MagicError, MarkerError, SizeError
from xv2_core.marker import has_dual_magic, looks_like_v2, try_read_marker
from xv2_core.protocol import LEADING_LEN, MARKER_LEN, SpillFlag, SaveLayout, XV2_LAYOUT
from xv2_convert.spill import spill_path


def _fail(fmt, err: ConversionError) -> dict:
    errors = [err.to_dict()]
    return {"status": "FAIL", "format": fmt, "error_count": len(errors), "errors": errors}


def _check_ps4(data: bytes, layout: SaveLayout):
    if len(data) != layout.console_size:
        raise SizeError("PS4 size mismatch", expected=layout.console_size, actual=len(data))
    hcd_start = layout.aligned_start_in_middle
    if hcd_start < LEADING_LEN or hcd_start >= layout.middle_len:
        raise GeometryError("Bad HCD start offset for this PS4 size.",
                            hcd_start=hcd_start, middle_len=layout.middle_len)
    base_start = LEADING_LEN + MARKER_LEN + layout.middle_segment_len
    if base_start > layout.aligned_start_editor:
        raise GeometryError("HCD data cannot reach its PC-ready offset (negative fill).",
                            base_start=base_start, expected_start=layout.aligned_start_editor)


def _check_pc(data: bytes, path: Path, layout: SaveLayout) -> dict:
    marker = try_read_marker(data)
    if marker is None:
        raise MarkerError("Marker not recognized at 0x08.")
    if not looks_like_v2(data, layout):
        if len(data) != layout.editor_size:
            raise SizeError("Marker says v2 but editor size mismatch",
                            expected=layout.editor_size, actual=len(data))
        raise MagicError("Marker says v2 but #SAV block missing", offset=layout.editor_sentinel_offset)
    spill = marker.spill == SpillFlag.PRESENT
    return {
        "version": int(marker.version),
        "leftovers_flag": spill,
        "leftovers_file": spill_path(path).exists() if spill else False,
    }


def verify_save(path: Path, layout: SaveLayout = XV2_LAYOUT) -> dict:
    """Check that ``path`` is a convertible PS4 or PC-ready save without converting it."""
    data = Path(path).read_bytes()

    if has_dual_magic(data, layout):
        try:
            _check_ps4(data, layout)
        except ConversionError as e:
            return _fail("ps4", e)
        return {"status": "PASS", "format": "ps4", "error_count": 0, "errors": []}

    try:
        info = _check_pc(data, Path(path), layout)
    except ConversionError as e:
        return _fail("pc" if try_read_marker(data) else None, e)

    result = {"status": "PASS", "format": "pc", "error_count": 0, "errors": []}
    result.update(info)
    return result
