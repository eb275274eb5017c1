"""Error taxonomy shared by converter and verifier."""
from __future__ import annotations

ERRORS = {
    "E_SIZE": "Buffer size does not match the fixed layout size",
    "E_GEOMETRY": "Layout geometry inconsistent with buffer contents",
    "E_MAGIC": "#SAV magic missing at required offset",
    "E_MARKER": "Format marker absent, malformed or unsupported",
    "E_SPILL_IO": "Leftovers file could not be read or written",
}


class ConversionError(ValueError):
    """Fatal failure of a single conversion.

    ``context`` holds the offsets and lengths involved so callers can report
    them without parsing the message.
    """

    code = "E_GEOMETRY"

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.context = context

    def to_dict(self) -> dict:
        out = {"code": self.code, "message": ERRORS[self.code], "detail": str(self)}
        out.update(self.context)
        return out


class SizeError(ConversionError):
    code = "E_SIZE"


class GeometryError(ConversionError):
    code = "E_GEOMETRY"


class MagicError(ConversionError):
    code = "E_MAGIC"


class MarkerError(ConversionError):
    code = "E_MARKER"


class SpillIOError(ConversionError):
    code = "E_SPILL_IO"
