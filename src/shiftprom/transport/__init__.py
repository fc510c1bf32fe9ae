"""Pin transports for the GPIO bridge."""

from shiftprom.transport.base import (
    BitOrder,
    PinLevel,
    PinMode,
    PinTransport,
    SerialConfig,
)
from shiftprom.transport.serial_link import SerialPinTransport, scan_ports
from shiftprom.transport.simulated import SimulatedPinTransport

__all__ = [
    "BitOrder",
    "PinLevel",
    "PinMode",
    "PinTransport",
    "SerialConfig",
    "SerialPinTransport",
    "SimulatedPinTransport",
    "scan_ports",
]
