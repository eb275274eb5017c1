"""XV2 Core - Shared save layout and marker handling."""
from .protocol import SaveLayout, XV2_LAYOUT, SpillFlag, FormatVersion
from .marker import Marker, make_marker, try_read_marker, looks_like_v2, has_magic_at, has_dual_magic
from .errors import ConversionError

__all__ = [
    "SaveLayout", "XV2_LAYOUT", "SpillFlag", "FormatVersion",
    "Marker", "make_marker", "try_read_marker", "looks_like_v2", "has_magic_at", "has_dual_magic",
    "ConversionError",
]
