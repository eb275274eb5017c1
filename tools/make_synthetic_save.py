import random
from pathlib import Path

from xv2_core.protocol import MAGIC, XV2_LAYOUT, SaveLayout


def generate_save(out_path: str, leftovers: bool = False, seed: int | None = None,
                  layout: SaveLayout = XV2_LAYOUT) -> Path:
    """Write a PS4-layout save with random payload and #SAV at both sentinel offsets.

    Without ``leftovers`` the bytes packing would cut off are zero, so the PC-ready
    file round-trips without a leftovers file.
    """
    rng = random.Random(seed)
    buf = bytearray(rng.randbytes(layout.console_size))

    for off in layout.console_magic_offsets:
        buf[off:off + len(MAGIC)] = MAGIC

    excess = max(0, (layout.aligned_start_editor + layout.aligned_full_len) - layout.required_prefix_len)
    if excess:
        if leftovers:
            buf[-2] = buf[-2] or 0xFF
        else:
            buf[-1 - excess:-1] = bytes(excess)

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(bytes(buf))
    print(f"GENERATED: {out}")
    return out


if __name__ == "__main__":
    import sys

    # Usage:
    #   python tools/make_synthetic_save.py OUT_FILE [--leftovers] [--seed N]

    args = [a for a in sys.argv[1:] if a]

    def pop_flag(arg_list: list[str], flag: str) -> tuple[bool, list[str]]:
        """Remove a boolean flag from an argv-style list."""
        if flag in arg_list:
            return True, [a for a in arg_list if a != flag]
        return False, arg_list

    leftovers, args = pop_flag(args, "--leftovers")

    seed = None
    if "--seed" in args:
        i = args.index("--seed")
        if i + 1 >= len(args):
            raise SystemExit("--seed requires a value")
        seed = int(args[i + 1])
        args = args[:i] + args[i + 2:]

    out = args[0] if args else "SDATA000.DAT"
    generate_save(out, leftovers=leftovers, seed=seed)
