"""Payloads to burn: named byte images plus how much to dump afterwards."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from shiftprom.exceptions import InvalidParameterError
from shiftprom.models.snapshot import ROW_STRIDE


class Payload(Protocol):
    """Anything that can supply an image for ``Programmer.run``."""

    name: str
    data: bytes
    dump_lines: int


# Active-low segment patterns (a..g on bits 6..0) for hex digits 0-F
SEGMENT_DECODER_TABLE = bytes([
    0x01, 0x4F, 0x12, 0x06, 0x4C, 0x24, 0x20, 0x0F,
    0x00, 0x04, 0x08, 0x60, 0x31, 0x42, 0x30, 0x38,
])


@dataclass(frozen=True)
class SegmentDecoderPayload:
    """Seven-segment hex digit decoder lookup table."""

    name: str = "segment-decoder"
    data: bytes = SEGMENT_DECODER_TABLE
    dump_lines: int = 1


@dataclass(frozen=True)
class FilePayload:
    """Raw binary image loaded from disk."""

    name: str
    data: bytes = field(repr=False)
    dump_lines: int = 1

    @classmethod
    def from_path(cls, path: str | Path) -> FilePayload:
        path = Path(path)
        data = path.read_bytes()
        lines = max(math.ceil(len(data) / ROW_STRIDE), 1)
        return cls(name=path.name, data=data, dump_lines=lines)


_PAYLOADS: dict[str, Payload] = {
    "segment-decoder": SegmentDecoderPayload(),
}


def payload_names() -> list[str]:
    return sorted(_PAYLOADS)


def get_payload(name: str) -> Payload:
    """Look up a built-in payload by name."""
    try:
        return _PAYLOADS[name]
    except KeyError:
        raise InvalidParameterError(
            f"Unknown payload {name!r} (available: {', '.join(payload_names())})"
        ) from None
