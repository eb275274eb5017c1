"""Flip one "XV2SA" byte of a PC-ready marker so detection must refuse the file."""
import sys
from pathlib import Path

from xv2_core.protocol import MARKER_ID, MARKER_OFFSET


def flip_marker_byte(path: Path, index: int = 0) -> tuple[int, int]:
    data = bytearray(path.read_bytes())
    if len(data) < MARKER_OFFSET + len(MARKER_ID):
        raise SystemExit(f"{path}: shorter than the marker at 0x{MARKER_OFFSET:02X}, nothing to corrupt.")

    pos = MARKER_OFFSET + index
    before = data[pos]
    data[pos] ^= 0x01
    path.write_bytes(bytes(data))
    return before, data[pos]


def main():
    args = sys.argv[1:]
    if len(args) not in (1, 2):
        print("Usage: corrupt_one_byte.py <EditorReady.sav> [marker index 0-4]")
        raise SystemExit(2)

    index = int(args[1]) if len(args) == 2 else 0
    if not 0 <= index < len(MARKER_ID):
        raise SystemExit(f"marker index must be 0-{len(MARKER_ID) - 1}, got {index}")

    p = Path(args[0])
    before, after = flip_marker_byte(p, index)
    print(
        f"Flipped marker byte {chr(MARKER_ID[index])!r} at 0x{MARKER_OFFSET + index:02X}: "
        f"0x{before:02X} -> 0x{after:02X} in {p}"
    )


if __name__ == "__main__":
    main()
