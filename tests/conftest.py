import random

import pytest

from xv2_core.protocol import MAGIC, SaveLayout

# Small geometries with 0x20/0x80 header blocks, same shape as the real saves.
# Prefix lands exactly on the required length.
EXACT_LAYOUT = SaveLayout(
    console_size=1024,
    editor_size=1040,
    aligned_start_console=0x200,
    aligned_start_editor=400,
)
# 8 bytes cut from the HCD tail.
TRIM_LAYOUT = SaveLayout(
    console_size=1024,
    editor_size=1032,
    aligned_start_console=0x200,
    aligned_start_editor=400,
)
# 8 bytes of zero padding after the HCD section.
PAD_LAYOUT = SaveLayout(
    console_size=1024,
    editor_size=1048,
    aligned_start_console=0x200,
    aligned_start_editor=400,
)


def build_ps4(layout: SaveLayout, seed: int = 0, zero_tail: int = 0) -> bytes:
    rng = random.Random(seed)
    buf = bytearray(rng.randbytes(layout.console_size))
    for off in layout.console_magic_offsets:
        buf[off:off + len(MAGIC)] = MAGIC
    if zero_tail:
        buf[-1 - zero_tail:-1] = bytes(zero_tail)
    else:
        # keep the tail that packing may cut off non-zero
        buf[-2] = 0xFF
    return bytes(buf)


@pytest.fixture
def save_path(tmp_path):
    return tmp_path / "SDATA000.DAT"
