from __future__ import annotations

import hashlib
from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from xv2_core.protocol import LEADING_LEN, MARKER_LEN, MARKER_OFFSET, SaveLayout, XV2_LAYOUT

REGION_SCHEMA = pa.schema(
    [
        ("region", pa.string()),
        ("offset", pa.int64()),
        ("length", pa.int64()),
        ("sha256", pa.string()),
    ]
)


def _spans_ps4(layout: SaveLayout) -> list[tuple[str, int, int]]:
    cs, ss = layout.checksum_size, layout.sentinel_size
    mid = cs + ss
    hcd = mid + layout.aligned_start_in_middle
    return [
        ("md5_header", 0, cs),
        ("sav_header", cs, ss),
        ("first_8", mid, LEADING_LEN),
        ("middle_segment", mid + LEADING_LEN, layout.middle_segment_len),
        ("hcd_section", hcd, layout.console_size - 1 - hcd),
        ("z_byte", layout.console_size - 1, 1),
    ]


def _spans_pc(layout: SaveLayout) -> list[tuple[str, int, int]]:
    seg_start = LEADING_LEN + MARKER_LEN
    seg_end = seg_start + layout.middle_segment_len
    z = layout.editor_tail_index
    return [
        ("first_8", 0, LEADING_LEN),
        ("marker", MARKER_OFFSET, MARKER_LEN),
        ("middle_segment", seg_start, layout.middle_segment_len),
        ("fill", seg_end, layout.aligned_start_editor - seg_end),
        ("hcd_section", layout.aligned_start_editor, z - layout.aligned_start_editor),
        ("z_byte", z, 1),
        ("sav_header", layout.editor_sentinel_offset, layout.sentinel_size),
        ("md5_header", layout.editor_size - layout.checksum_size, layout.checksum_size),
    ]


def region_map(data: bytes, fmt: str, layout: SaveLayout = XV2_LAYOUT) -> list[dict]:
    """Named byte regions of a ``ps4`` or ``pc`` buffer with content hashes."""
    spans = _spans_ps4(layout) if fmt == "ps4" else _spans_pc(layout)
    rows: list[dict] = []
    for name, off, length in spans:
        if length <= 0:
            continue
        rows.append(
            {
                "region": name,
                "offset": int(off),
                "length": int(length),
                "sha256": hashlib.sha256(data[off:off + length]).hexdigest(),
            }
        )
    return rows


def write_region_map(rows: list[dict], out_path: Path) -> None:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(rows, columns=[f.name for f in REGION_SCHEMA])
    table = pa.Table.from_pandas(df, schema=REGION_SCHEMA, preserve_index=False)
    pq.write_table(table, out_path)
