"""Content snapshot produced by a dump."""

from __future__ import annotations

from pydantic import BaseModel, Field

ROW_STRIDE = 16


class SnapshotRow(BaseModel):
    """One hex-dump row: a start address and up to 16 byte values."""

    address: int
    values: list[int] = Field(default_factory=list)

    def render(self) -> str:
        cells = "".join(
            f" {value:02X}{' ' if i == 7 else ''}"
            for i, value in enumerate(self.values)
        )
        return f"{self.address:03X}: {cells}"


class ContentSnapshot(BaseModel):
    """Ordered (address, byte) content read back from the device."""

    rows: list[SnapshotRow] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return sum(len(row.values) for row in self.rows)

    def items(self) -> list[tuple[int, int]]:
        return [
            (row.address + i, value)
            for row in self.rows
            for i, value in enumerate(row.values)
        ]

    def render(self) -> str:
        return "".join(f"{row.render()}\n" for row in self.rows)


class Mismatch(BaseModel):
    """A verified address whose content differs from the expected byte."""

    address: int
    expected: int
    actual: int
