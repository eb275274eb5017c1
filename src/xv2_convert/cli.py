"""XV2 save converter - PS4 <-> PC-ready."""
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

import click

from xv2_core.errors import MagicError, MarkerError, SizeError
from xv2_core.marker import has_any_marker, has_dual_magic
from xv2_core.protocol import EDITOR_OUTPUT_NAME, PS4_OUTPUT_NAME, SaveLayout, XV2_LAYOUT

from xv2_convert.auto import AUTO, MODES, PC_TO_PS4, PS4_TO_PC, convert_auto, detect_direction
from xv2_convert.pack import ps4_to_pcready


def sha1_hex(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


@dataclass
class ConversionResult:
    chosen: str
    out_path: Path
    data: bytes
    input_sha1: str
    output_sha1: str


def convert_file(
    input_path: Path,
    mode: str = AUTO,
    out_dir: Path | None = None,
    layout: SaveLayout = XV2_LAYOUT,
) -> ConversionResult:
    """Convert one save file and write the result next to it (or into ``out_dir``).

    The output file is only written once the converted buffer passed every check.
    """
    input_path = Path(input_path)
    out_dir = Path(out_dir) if out_dir is not None else input_path.parent
    raw = input_path.read_bytes()

    if mode == AUTO:
        mode = detect_direction(raw, layout)

    if mode == PS4_TO_PC:
        if not has_dual_magic(raw, layout):
            a, b = layout.console_magic_offsets
            raise MagicError(f"Refusing to pack: '#SAV' not present at both 0x{a:X} and 0x{b:X}.")
        if len(raw) != layout.console_size:
            raise SizeError(
                f"Refusing to pack: PS4 size expected 0x{layout.console_size:X}, got 0x{len(raw):X}.",
                expected=layout.console_size,
                actual=len(raw),
            )
        out_data = ps4_to_pcready(raw, input_path, layout)
        out_path = out_dir / EDITOR_OUTPUT_NAME
        chosen = "PS4→PC"
    elif mode == PC_TO_PS4:
        if not has_any_marker(raw):
            raise MarkerError("Refusing to unpack: marker not found at 0x08.")
        out_data = convert_auto(raw, input_path, layout)
        out_path = out_dir / PS4_OUTPUT_NAME
        chosen = "PC→PS4"
    else:
        raise ValueError(f"Unknown mode {mode!r}; expected one of {', '.join(MODES)}")

    out_dir.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(out_data)

    return ConversionResult(
        chosen=chosen,
        out_path=out_path,
        data=out_data,
        input_sha1=sha1_hex(raw),
        output_sha1=sha1_hex(out_data),
    )


@click.command()
@click.argument("input_file", type=click.Path(path_type=Path))
@click.argument("mode", type=click.Choice(MODES), default=AUTO, required=False)
@click.option("--out-dir", type=click.Path(file_okay=False, path_type=Path), help="Directory for the converted file")
def main(input_file: Path, mode: str, out_dir: Path | None) -> None:
    """Convert Xenoverse 2 saves between PS4 and PC-ready formats."""
    if not input_file.exists():
        click.echo(f"Input not found: {input_file}", err=True)
        raise SystemExit(2)

    try:
        result = convert_file(input_file, mode, out_dir)
    except Exception as e:
        # Fail closed with a single-line reason.
        print(f"FATAL: {e}")
        raise SystemExit(1)

    print(f"{result.chosen} → {result.out_path.name}")
    print(f"Input  SHA1: {result.input_sha1}")
    print(f"Output SHA1: {result.output_sha1}")


if __name__ == "__main__":
    main()
