import pytest

from conftest import EXACT_LAYOUT, PAD_LAYOUT, TRIM_LAYOUT, build_ps4
from xv2_convert.auto import PC_TO_PS4, PS4_TO_PC, convert_auto, detect_direction
from xv2_convert.pack import ps4_to_pcready
from xv2_convert.spill import spill_path
from xv2_convert.unpack import pcready_to_ps4
from xv2_core.errors import ConversionError, GeometryError, MagicError, MarkerError, SizeError, SpillIOError
from xv2_core.marker import has_magic_at, try_read_marker
from xv2_core.protocol import (
    EDITOR_SIZE,
    HCD_START_PC_READY,
    MAGIC,
    PS4_SIZE,
    XV2_LAYOUT,
    SaveLayout,
    SpillFlag,
)

LEFTOVER_LEN = 0xA0


def test_xv2_geometry():
    assert XV2_LAYOUT.required_prefix_len == 0x12A157
    assert XV2_LAYOUT.aligned_full_len - (XV2_LAYOUT.editor_tail_index - HCD_START_PC_READY) == LEFTOVER_LEN


def test_roundtrip_without_leftovers(save_path):
    ps4 = build_ps4(XV2_LAYOUT, seed=1, zero_tail=LEFTOVER_LEN)
    pc = ps4_to_pcready(ps4, save_path)

    assert len(pc) == EDITOR_SIZE
    assert has_magic_at(pc, XV2_LAYOUT.editor_sentinel_offset)
    assert try_read_marker(pc).spill == SpillFlag.NONE
    assert not spill_path(save_path).exists()
    # HCD data sits at its fixed PC-ready offset, fill in front of it is zero
    assert pc[HCD_START_PC_READY:HCD_START_PC_READY + 64] == ps4[0x07BCA0 - 0x80 + 0xA0:][:64]
    assert pc[HCD_START_PC_READY - 0x90:HCD_START_PC_READY] == bytes(0x90)

    back = convert_auto(pc, save_path)
    assert len(back) == PS4_SIZE
    assert back == ps4


def test_roundtrip_with_leftovers(save_path, capsys):
    ps4 = build_ps4(XV2_LAYOUT, seed=2)
    pc = ps4_to_pcready(ps4, save_path)

    assert try_read_marker(pc).spill == SpillFlag.PRESENT
    sp = spill_path(save_path)
    assert sp.name == "SDATA000.DAT.leftovers.dec"
    assert sp.read_bytes() == ps4[-1 - LEFTOVER_LEN:-1]
    assert "LEFTOVERS" in capsys.readouterr().out

    assert convert_auto(pc, save_path) == ps4


def test_missing_leftovers_zero_fills_with_warning(save_path):
    ps4 = build_ps4(XV2_LAYOUT, seed=3)
    pc = ps4_to_pcready(ps4, save_path)
    spill_path(save_path).unlink()

    with pytest.warns(UserWarning, match="not found"):
        back = pcready_to_ps4(pc, save_path, has_leftovers=True)

    assert len(back) == PS4_SIZE
    assert back[:-1 - LEFTOVER_LEN] == ps4[:-1 - LEFTOVER_LEN]
    assert back[-1 - LEFTOVER_LEN:-1] == bytes(LEFTOVER_LEN)
    assert back[-1] == ps4[-1]


def test_short_leftovers_are_used_then_zero_filled(save_path):
    ps4 = build_ps4(XV2_LAYOUT, seed=4)
    pc = ps4_to_pcready(ps4, save_path)
    sp = spill_path(save_path)
    sp.write_bytes(sp.read_bytes()[:16])

    with pytest.warns(UserWarning, match="short"):
        back = pcready_to_ps4(pc, save_path, has_leftovers=True)

    tail = back[-1 - LEFTOVER_LEN:-1]
    assert tail[:16] == ps4[-1 - LEFTOVER_LEN:-1 - LEFTOVER_LEN + 16]
    assert tail[16:] == bytes(LEFTOVER_LEN - 16)


def test_leftovers_ignored_when_flag_clear(save_path):
    ps4 = build_ps4(XV2_LAYOUT, seed=5)
    pc = ps4_to_pcready(ps4, save_path)
    back = pcready_to_ps4(pc, save_path, has_leftovers=False)
    assert back[-1 - LEFTOVER_LEN:-1] == bytes(LEFTOVER_LEN)


def test_exact_fit_neither_pads_nor_trims(save_path):
    ps4 = build_ps4(EXACT_LAYOUT, seed=6)
    pc = ps4_to_pcready(ps4, save_path, EXACT_LAYOUT)

    assert len(pc) == EXACT_LAYOUT.editor_size
    assert try_read_marker(pc).spill == SpillFlag.NONE
    assert not spill_path(save_path).exists()
    # last HCD byte sits right before Z
    assert pc[EXACT_LAYOUT.editor_tail_index - 1] == ps4[-2]
    assert pcready_to_ps4(pc, save_path, False, EXACT_LAYOUT) == ps4


def test_small_layout_trims_into_leftovers(save_path):
    ps4 = build_ps4(TRIM_LAYOUT, seed=7)
    pc = ps4_to_pcready(ps4, save_path, TRIM_LAYOUT)

    assert try_read_marker(pc).spill == SpillFlag.PRESENT
    assert spill_path(save_path).read_bytes() == ps4[-9:-1]
    assert convert_auto(pc, save_path, TRIM_LAYOUT) == ps4


def test_padding_layout_pads_with_zeros_but_cannot_unpack(save_path):
    ps4 = build_ps4(PAD_LAYOUT, seed=8)
    pc = ps4_to_pcready(ps4, save_path, PAD_LAYOUT)

    tail = PAD_LAYOUT.editor_tail_index
    assert len(pc) == PAD_LAYOUT.editor_size
    assert pc[tail - 8:tail] == bytes(8)
    assert pc[tail] == ps4[-1]

    with pytest.raises(GeometryError, match="larger than HCD section full"):
        pcready_to_ps4(pc, save_path, False, PAD_LAYOUT)


def test_pack_rejects_wrong_size(save_path):
    with pytest.raises(SizeError) as exc:
        ps4_to_pcready(bytes(100), save_path)
    assert exc.value.context == {"expected": PS4_SIZE, "actual": 100}


def test_pack_rejects_tiny_middle(save_path):
    layout = SaveLayout(console_size=0xA0 + 1 + 8, editor_size=0x200,
                        aligned_start_console=0x84, aligned_start_editor=0x20)
    with pytest.raises(SizeError, match="too small"):
        ps4_to_pcready(build_ps4(layout), save_path, layout)


def test_pack_rejects_negative_fill(save_path):
    layout = SaveLayout(console_size=1024, editor_size=1040,
                        aligned_start_console=0x200, aligned_start_editor=300)
    with pytest.raises(GeometryError, match="fillLen negative"):
        ps4_to_pcready(build_ps4(layout), save_path, layout)


@pytest.mark.parametrize("aligned_start", [0x80 + 4, 1024])
def test_pack_rejects_bad_hcd_start(save_path, aligned_start):
    layout = SaveLayout(console_size=1024, editor_size=1040,
                        aligned_start_console=aligned_start, aligned_start_editor=400)
    with pytest.raises(GeometryError, match="Bad HCD start"):
        ps4_to_pcready(build_ps4(layout), save_path, layout)


def test_pack_output_without_magic_fails(save_path):
    ps4 = bytearray(build_ps4(EXACT_LAYOUT))
    ps4[0x20] = 0
    with pytest.raises(MagicError):
        ps4_to_pcready(bytes(ps4), save_path, EXACT_LAYOUT)


def test_unpack_rejects_wrong_size(save_path):
    with pytest.raises(SizeError, match="editor size"):
        pcready_to_ps4(bytes(EDITOR_SIZE - 1), save_path, False)


def test_unpack_requires_sav_block(save_path):
    pc = bytearray(ps4_to_pcready(build_ps4(EXACT_LAYOUT), save_path, EXACT_LAYOUT))
    pc[EXACT_LAYOUT.editor_sentinel_offset] ^= 0xFF
    with pytest.raises(MagicError):
        pcready_to_ps4(bytes(pc), save_path, False, EXACT_LAYOUT)


def test_unpack_requires_second_magic(save_path):
    # the second #SAV lives in the first 8 middle bytes
    pc = bytearray(ps4_to_pcready(build_ps4(EXACT_LAYOUT), save_path, EXACT_LAYOUT))
    pc[0] ^= 0xFF
    with pytest.raises(MagicError, match="0xA0"):
        pcready_to_ps4(bytes(pc), save_path, False, EXACT_LAYOUT)


@pytest.mark.parametrize("idx", range(5))
def test_corrupt_marker_is_rejected(save_path, idx):
    pc = bytearray(ps4_to_pcready(build_ps4(XV2_LAYOUT, zero_tail=LEFTOVER_LEN), save_path))
    pc[8 + idx] ^= 0x01
    with pytest.raises(MarkerError, match="not recognized"):
        convert_auto(bytes(pc), save_path)
    with pytest.raises(MarkerError, match="Unknown format"):
        detect_direction(bytes(pc))


def test_marker_without_structure_is_rejected(save_path):
    pc = bytearray(ps4_to_pcready(build_ps4(XV2_LAYOUT, zero_tail=LEFTOVER_LEN), save_path))
    pc[XV2_LAYOUT.editor_sentinel_offset] = 0
    with pytest.raises(MarkerError, match="sanity"):
        convert_auto(bytes(pc), save_path)


def test_detect_direction(save_path):
    ps4 = build_ps4(XV2_LAYOUT, zero_tail=LEFTOVER_LEN)
    assert detect_direction(ps4) == PS4_TO_PC
    assert detect_direction(ps4_to_pcready(ps4, save_path)) == PC_TO_PS4


def test_error_context_is_reportable(save_path):
    with pytest.raises(ConversionError) as exc:
        pcready_to_ps4(bytes(10), save_path, False)
    d = exc.value.to_dict()
    assert d["code"] == "E_SIZE"
    assert d["actual"] == 10


def test_pack_is_deterministic(save_path):
    ps4 = build_ps4(XV2_LAYOUT, seed=9)
    assert ps4_to_pcready(ps4, save_path) == ps4_to_pcready(ps4, save_path)


def test_leftovers_write_failure_is_spill_io_error(tmp_path):
    ps4 = build_ps4(XV2_LAYOUT, seed=2)
    with pytest.raises(SpillIOError) as exc:
        ps4_to_pcready(ps4, tmp_path / "nodir" / "SDATA000.DAT")
    d = exc.value.to_dict()
    assert d["code"] == "E_SPILL_IO"
    assert d["length"] == LEFTOVER_LEN


def test_leftovers_read_failure_is_spill_io_error(save_path):
    pc = ps4_to_pcready(build_ps4(XV2_LAYOUT, seed=3), save_path)
    spill_path(save_path).unlink()
    spill_path(save_path).mkdir()
    with pytest.raises(SpillIOError, match="Failed to read leftovers"):
        pcready_to_ps4(pc, save_path, has_leftovers=True)


def test_bad_sav_block_leaves_no_leftovers(save_path):
    ps4 = bytearray(build_ps4(XV2_LAYOUT, seed=2))
    ps4[0x20] = 0
    with pytest.raises(MagicError):
        ps4_to_pcready(bytes(ps4), save_path)
    assert not spill_path(save_path).exists()


def _bare_pc(layout: SaveLayout) -> bytes:
    buf = bytearray(layout.editor_size)
    sav = layout.editor_sentinel_offset
    buf[sav:sav + len(MAGIC)] = MAGIC
    return bytes(buf)


def test_unpack_middle_segment_past_z_byte(save_path):
    # middle segment ends at 0x188, Z sits at 0xEF
    layout = SaveLayout(console_size=1024, editor_size=400,
                        aligned_start_console=0x200, aligned_start_editor=400)
    with pytest.raises(GeometryError, match="middle segment out of range"):
        pcready_to_ps4(_bare_pc(layout), save_path, False, layout)


def test_unpack_hcd_start_past_z_byte(save_path):
    layout = SaveLayout(console_size=1024, editor_size=600,
                        aligned_start_console=0x200, aligned_start_editor=500)
    with pytest.raises(GeometryError, match="beyond Z byte") as exc:
        pcready_to_ps4(_bare_pc(layout), save_path, False, layout)
    assert exc.value.context == {"hcd_start": 500, "z_index": 439}
