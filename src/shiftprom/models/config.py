"""Programmer configuration: pinout, device geometry, and timing."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

from shiftprom.exceptions import InvalidParameterError

# Two cascaded 8-bit shift registers feed the address bus.
MAX_CAPACITY = 1 << 16


class PinRole(StrEnum):
    """Logical role of each bridge pin."""
    SHIFT_DATA = "shift_data"
    SHIFT_CLOCK = "shift_clock"
    LATCH_CLOCK = "latch_clock"
    DATA0 = "data0"
    DATA1 = "data1"
    DATA2 = "data2"
    DATA3 = "data3"
    DATA4 = "data4"
    DATA5 = "data5"
    DATA6 = "data6"
    DATA7 = "data7"
    WRITE_ENABLE = "write_enable"
    OUTPUT_ENABLE = "output_enable"


class PinMap(BaseModel):
    """Mapping of pin roles to microcontroller pin numbers."""

    model_config = {"frozen": True}

    shift_data: int = Field(2, ge=0, le=255)
    shift_clock: int = Field(3, ge=0, le=255)
    latch_clock: int = Field(4, ge=0, le=255)
    data0: int = Field(5, ge=0, le=255)
    data1: int = Field(6, ge=0, le=255)
    data2: int = Field(7, ge=0, le=255)
    data3: int = Field(8, ge=0, le=255)
    data4: int = Field(9, ge=0, le=255)
    data5: int = Field(10, ge=0, le=255)
    data6: int = Field(11, ge=0, le=255)
    data7: int = Field(12, ge=0, le=255)
    write_enable: int = Field(13, ge=0, le=255)
    output_enable: int = Field(14, ge=0, le=255)

    @model_validator(mode="after")
    def validate_distinct(self) -> PinMap:
        seen: dict[int, str] = {}
        for role in PinRole:
            pin = getattr(self, role.value)
            if pin in seen:
                raise ValueError(
                    f"pin {pin} assigned to both {seen[pin]} and {role.value}"
                )
            seen[pin] = role.value
        return self

    def pin(self, role: PinRole) -> int:
        return getattr(self, role.value)

    @property
    def data_pins(self) -> tuple[int, ...]:
        """Data pins ordered from bit 0 to bit 7."""
        return (
            self.data0, self.data1, self.data2, self.data3,
            self.data4, self.data5, self.data6, self.data7,
        )


class ProgrammerConfig(BaseModel):
    """Device geometry and timing for one programmer setup.

    Timing defaults follow the reference hardware: only the latch pulse is
    held explicitly, the write-enable pulse and post-write settle rely on
    the bridge round trip being slower than the chip minimums.
    """

    model_config = {"frozen": True}

    pins: PinMap = Field(default_factory=PinMap)
    capacity: int = Field(2048, ge=1, le=MAX_CAPACITY, description="Device size in bytes")
    default_byte: int = Field(0xFF, ge=0, le=0xFF, description="Erased cell value")
    latch_pulse_us: int = Field(10, ge=0, description="Latch clock high time")
    write_pulse_ns: int = Field(0, ge=0, description="Write-enable low time, 0 = round trip only")
    write_settle_us: int = Field(0, ge=0, description="Delay after write-enable before polling")
    poll_limit: int | None = Field(
        None, ge=1, description="Max data-polling reads per write, None = wait forever"
    )

    @property
    def max_dump_lines(self) -> int:
        return max(self.capacity // 16, 1)

    @classmethod
    def load(cls, path: str | Path) -> ProgrammerConfig:
        """Load a configuration from a JSON file.

        Raises:
            InvalidParameterError: If the file content fails validation.
        """
        text = Path(path).read_text()
        try:
            return cls.model_validate_json(text)
        except ValidationError as exc:
            raise InvalidParameterError(f"Invalid configuration in {path}: {exc}") from exc
