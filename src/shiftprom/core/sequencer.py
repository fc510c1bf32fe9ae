"""Cached address and data-bus state for the EEPROM bridge.

The address reaches the chip through two cascaded shift registers and
the 8 data lines are shared by host and chip. Both setters skip the
transport entirely when the requested state is already in place, and
report whether any request was issued.
"""

from __future__ import annotations

from dataclasses import dataclass

from shiftprom.core.timer import Timer
from shiftprom.models.config import PinMap
from shiftprom.transport.base import BitOrder, PinLevel, PinMode, PinTransport
from shiftprom.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class BusState:
    """Last hardware state successfully driven through the transport.

    A None field is unknown: the next setter for it always issues its
    requests. ``address`` is None until the first latch.
    """

    address: int | None = None
    direction: PinMode | None = PinMode.INPUT
    output_enabled: bool | None = False

    def invalidate(self) -> None:
        """Mark every field unknown so the next setters re-drive the pins."""
        self.address = None
        self.direction = None
        self.output_enabled = None


class AddressSequencer:
    """Latches addresses into the shift-register address bus."""

    def __init__(
        self,
        transport: PinTransport,
        pins: PinMap,
        state: BusState,
        timer: Timer,
        latch_pulse_us: int = 10,
    ) -> None:
        self._transport = transport
        self._pins = pins
        self._state = state
        self._timer = timer
        self._latch_pulse_us = latch_pulse_us

    def set_address(self, address: int) -> bool:
        if self._state.address == address:
            return False

        data, clock = self._pins.shift_data, self._pins.shift_clock
        self._transport.shift_out(data, clock, BitOrder.MSB_FIRST, (address >> 8) & 0xFF)
        self._transport.shift_out(data, clock, BitOrder.MSB_FIRST, address & 0xFF)

        self._transport.digital_write(self._pins.latch_clock, PinLevel.HIGH)
        if self._latch_pulse_us:
            self._timer.delay_us(self._latch_pulse_us)
        self._transport.digital_write(self._pins.latch_clock, PinLevel.LOW)

        self._state.address = address
        logger.debug("address_latched", address=f"0x{address:03X}")
        return True


class DataBusController:
    """Tracks data pin direction and the active-low output-enable line."""

    def __init__(self, transport: PinTransport, pins: PinMap, state: BusState) -> None:
        self._transport = transport
        self._pins = pins
        self._state = state

    def set_mode(self, direction: PinMode) -> bool:
        if self._state.direction == direction:
            return False
        for pin in self._pins.data_pins:
            self._transport.set_pin_mode(pin, direction)
        self._state.direction = direction
        return True

    def set_output_enabled(self, enabled: bool) -> bool:
        if self._state.output_enabled == enabled:
            return False
        level = PinLevel.LOW if enabled else PinLevel.HIGH
        self._transport.digital_write(self._pins.output_enable, level)
        self._state.output_enabled = enabled
        return True
