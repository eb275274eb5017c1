"""XV2 save layout constants.

Single source of truth for on-disk sizes, offsets and magic values of both
encodings. Converter and verifier must remain synchronized with this file.

Console (PS4) layout:  [Checksum(0x20)][#SAV block(0x80)][Middle][Z]
Editor (PC) layout:    [Prefix][Z][#SAV block(0x80)][Checksum(0x20)]
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

# Fixed file sizes
PS4_SIZE = 0x12A200
EDITOR_SIZE = 0x12A1F8

# Section sizes
MD5_HEADER_SIZE = 0x20  # checksum block, first in PS4, last in PC
SAV_HEADER_SIZE = 0x80  # sentinel block, starts with MAGIC

# Hero Coliseum data: absolute offset in each encoding
HCD_START_PS4 = 0x07BCA0
HCD_START_PC_READY = 0x07BCB8

MAGIC = b"#SAV"

# Marker: "XV2SA" <flag> D6 <version>, placed right after the leading 8 bytes
LEADING_LEN = 8
MARKER_OFFSET = 0x08
MARKER_LEN = 8
MARKER_ID = b"XV2SA"
MARKER_FIXED6 = 0xD6

SPILL_SUFFIX = ".leftovers.dec"

# Output names written by the orchestration layer
EDITOR_OUTPUT_NAME = "EditorReady.sav"
PS4_OUTPUT_NAME = "SDATA000.DAT"


class SpillFlag(IntEnum):
    NONE = 0x54  # 'T'
    PRESENT = 0x2B  # '+'


class FormatVersion(IntEnum):
    V2 = 0x31


CURRENT_VERSION = FormatVersion.V2


@dataclass(frozen=True)
class SaveLayout:
    """Geometry of one console/editor encoding pair."""

    console_size: int = PS4_SIZE
    editor_size: int = EDITOR_SIZE
    checksum_size: int = MD5_HEADER_SIZE
    sentinel_size: int = SAV_HEADER_SIZE
    aligned_start_console: int = HCD_START_PS4
    aligned_start_editor: int = HCD_START_PC_READY

    @property
    def middle_len(self) -> int:
        return self.console_size - self.checksum_size - self.sentinel_size - 1

    @property
    def aligned_start_in_middle(self) -> int:
        # Measured from the end of the sentinel block only.
        return self.aligned_start_console - self.sentinel_size

    @property
    def middle_segment_len(self) -> int:
        return self.aligned_start_in_middle - LEADING_LEN

    @property
    def aligned_full_len(self) -> int:
        return self.middle_len - self.aligned_start_in_middle

    @property
    def required_prefix_len(self) -> int:
        return self.editor_size - 1 - self.sentinel_size - self.checksum_size

    @property
    def editor_sentinel_offset(self) -> int:
        return self.editor_size - self.checksum_size - self.sentinel_size

    @property
    def editor_tail_index(self) -> int:
        return self.editor_sentinel_offset - 1

    @property
    def console_magic_offsets(self) -> tuple[int, int]:
        return self.checksum_size, self.checksum_size + self.sentinel_size


XV2_LAYOUT = SaveLayout()
