"""Abstract pin transport: GPIO primitives executed by the bridge MCU."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum, StrEnum


class PinMode(StrEnum):
    """Direction of a bridge pin."""
    INPUT = "input"
    OUTPUT = "output"


class PinLevel(IntEnum):
    """Digital level of a bridge pin."""
    LOW = 0
    HIGH = 1


class BitOrder(StrEnum):
    """Bit order for shift-out transfers."""
    MSB_FIRST = "msb_first"
    LSB_FIRST = "lsb_first"


@dataclass(frozen=True)
class SerialConfig:
    """Serial link settings for the GPIO bridge."""
    port: str = "/dev/ttyUSB0"
    baud_rate: int = 115200
    timeout: float = 2.0


class PinTransport(ABC):
    """Synchronous request/response GPIO primitives.

    Every call is a blocking round trip to the bridge. Failures raise
    TransportError; no call is retried here.
    """

    def __init__(self) -> None:
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Establish the link to the bridge."""

    @abstractmethod
    def disconnect(self) -> None:
        """Release the link to the bridge."""

    @abstractmethod
    def set_pin_mode(self, pin: int, mode: PinMode) -> None:
        """Configure *pin* as input or output."""

    @abstractmethod
    def digital_write(self, pin: int, level: PinLevel) -> None:
        """Drive *pin* high or low."""

    @abstractmethod
    def digital_read(self, pin: int) -> int:
        """Sample *pin*, returning 0 or 1."""

    @abstractmethod
    def shift_out(self, data_pin: int, clock_pin: int, bit_order: BitOrder, value: int) -> None:
        """Clock one byte out on *data_pin*/*clock_pin*."""

    def __enter__(self) -> PinTransport:
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        self.disconnect()
