"""Exception hierarchy for the EEPROM programmer."""

from __future__ import annotations


class ShiftpromError(Exception):
    """Base exception for all shiftprom errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)

    @property
    def kind(self) -> str:
        """Short error kind used for user-facing reports."""
        return type(self).__name__


class TransportError(ShiftpromError):
    """A pin transport request failed (link down, bad or missing response)."""


class ConnectionError(TransportError):
    """Failed to establish or maintain a connection to the GPIO bridge."""


class DeviceNotConnectedError(ShiftpromError):
    """Programmer or transport is not connected."""


class InvalidParameterError(ShiftpromError):
    """An address, value, or configuration entry is out of range."""


class CapacityExceededError(ShiftpromError):
    """A block write does not fit in the device."""

    def __init__(self, size: int, capacity: int) -> None:
        self.size = size
        self.capacity = capacity
        super().__init__(
            f"Written data must fit within the EEPROM: {size} bytes > {capacity} bytes"
        )


class WriteTimeoutError(ShiftpromError):
    """Data polling did not observe write completion in time."""

    def __init__(self, address: int, attempts: int) -> None:
        self.address = address
        self.attempts = attempts
        super().__init__(
            f"Write at 0x{address:03X} did not complete after {attempts} polls"
        )
