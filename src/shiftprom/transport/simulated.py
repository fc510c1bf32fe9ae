"""In-memory 28C16-style EEPROM behind two 74HC595 shift registers.

Stands in for the bridge and the chip so the sequencing logic can run
without hardware: shifted bits only reach the address bus on a latch
rising edge, a write-enable rising edge with output disabled stores the
byte driven on the data pins, and for ``write_cycle_reads`` reads
afterwards DATA7 returns the complement of the stored bit 7 (data
polling). Every primitive is recorded in ``calls``.
"""

from __future__ import annotations

from shiftprom.exceptions import DeviceNotConnectedError, TransportError
from shiftprom.models.config import PinMap
from shiftprom.transport.base import BitOrder, PinLevel, PinMode, PinTransport
from shiftprom.utils.logging import get_logger

logger = get_logger(__name__)


class SimulatedPinTransport(PinTransport):
    """Simulated bridge and EEPROM."""

    def __init__(
        self,
        pins: PinMap | None = None,
        capacity: int = 2048,
        write_cycle_reads: int = 2,
        write_protected: bool = False,
        fail_after: int | None = None,
    ) -> None:
        super().__init__()
        self.pins = pins or PinMap()
        self.capacity = capacity
        self.write_cycle_reads = write_cycle_reads
        self.write_protected = write_protected
        self.fail_after = fail_after

        self.memory = bytearray([0xFF] * capacity)
        self.calls: list[tuple[str, tuple[int, ...]]] = []
        self.modes: dict[int, PinMode] = {}
        self.levels: dict[int, PinLevel] = {}
        self.shift_register = 0
        self.address = 0
        self.latch_count = 0
        self.write_count = 0
        self._busy_reads = 0
        self._pending = 0
        self._stuck = False

    # --- Connection ---

    def connect(self) -> None:
        if self._connected:
            return
        self._connected = True
        logger.debug("simulator_connected", capacity=self.capacity)

    def disconnect(self) -> None:
        self._connected = False

    # --- Recording helpers ---

    def count(self, name: str, pin: int | None = None) -> int:
        """Number of recorded *name* calls, optionally for one pin."""
        return sum(
            1 for call, args in self.calls
            if call == name and (pin is None or args[0] == pin)
        )

    def reset_calls(self) -> None:
        self.calls.clear()

    def _record(self, name: str, *args: int) -> None:
        if not self._connected:
            raise DeviceNotConnectedError("Simulator not connected. Call connect() first.")
        if self.fail_after is not None and len(self.calls) >= self.fail_after:
            raise TransportError(f"{name}: simulated link failure")
        self.calls.append((name, args))

    # --- Primitives ---

    def set_pin_mode(self, pin: int, mode: PinMode) -> None:
        self._record("set_pin_mode", pin)
        self.modes[pin] = mode

    def digital_write(self, pin: int, level: PinLevel) -> None:
        self._record("digital_write", pin, int(level))
        previous = self.levels.get(pin, PinLevel.LOW)
        self.levels[pin] = PinLevel(level)
        rising = previous == PinLevel.LOW and level == PinLevel.HIGH

        if pin == self.pins.latch_clock and rising:
            self.address = self.shift_register % self.capacity
            self.latch_count += 1
        elif pin == self.pins.write_enable and rising:
            self._commit_write()

    def digital_read(self, pin: int) -> int:
        self._record("digital_read", pin)
        data_pins = self.pins.data_pins
        if pin not in data_pins or self.modes.get(pin) != PinMode.INPUT:
            return int(self.levels.get(pin, PinLevel.LOW))
        if not self._output_enabled:
            return 0

        if pin == self.pins.data7 and (self._busy_reads or self._stuck):
            if self._busy_reads:
                self._busy_reads -= 1
            return ((self._pending >> 7) & 1) ^ 1
        return (self.memory[self.address] >> data_pins.index(pin)) & 1

    def shift_out(self, data_pin: int, clock_pin: int, bit_order: BitOrder, value: int) -> None:
        self._record("shift_out", data_pin, clock_pin, value)
        if (data_pin, clock_pin) != (self.pins.shift_data, self.pins.shift_clock):
            return
        bits = range(7, -1, -1) if bit_order == BitOrder.MSB_FIRST else range(8)
        for i in bits:
            self.shift_register = ((self.shift_register << 1) | ((value >> i) & 1)) & 0xFFFF

    # --- Chip model ---

    @property
    def _output_enabled(self) -> bool:
        return self.levels.get(self.pins.output_enable, PinLevel.LOW) == PinLevel.LOW

    def _commit_write(self) -> None:
        if self._output_enabled:
            return
        if any(self.modes.get(p) != PinMode.OUTPUT for p in self.pins.data_pins):
            return

        value = 0
        for bit, pin in enumerate(self.pins.data_pins):
            value |= int(self.levels.get(pin, PinLevel.LOW)) << bit

        self.write_count += 1
        self._pending = value
        if self.write_protected:
            self._stuck = True
            return
        self.memory[self.address] = value
        self._busy_reads = self.write_cycle_reads
