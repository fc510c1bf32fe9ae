"""EEPROM programmer: byte I/O and bulk operations over a pin transport."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shiftprom.core.sequencer import AddressSequencer, BusState, DataBusController
from shiftprom.core.timer import TickTimer, Timer
from shiftprom.exceptions import (
    CapacityExceededError,
    DeviceNotConnectedError,
    InvalidParameterError,
    TransportError,
    WriteTimeoutError,
)
from shiftprom.models.config import ProgrammerConfig
from shiftprom.models.snapshot import ROW_STRIDE, ContentSnapshot, Mismatch, SnapshotRow
from shiftprom.transport.base import PinLevel, PinMode, PinTransport
from shiftprom.utils.logging import get_logger

if TYPE_CHECKING:
    from shiftprom.core.payloads import Payload

logger = get_logger(__name__)


class Programmer:
    """Parallel EEPROM programmer driven through a GPIO bridge.

    The address bus is fed by two shift registers and the data lines are
    shared, so every operation runs strictly in sequence. Not safe for
    concurrent use from several threads.

    Usage:
        with Programmer(SerialPinTransport(SerialConfig(port="/dev/ttyUSB0"))) as prog:
            prog.write_block(data)
            print(prog.dump(4))
    """

    def __init__(
        self,
        transport: PinTransport,
        config: ProgrammerConfig | None = None,
        timer: Timer | None = None,
        auto_connect: bool = True,
    ) -> None:
        self._transport = transport
        self._config = config or ProgrammerConfig()
        self._timer = timer or TickTimer()
        self._state = BusState()
        self._ready = False

        pins = self._config.pins
        self._sequencer = AddressSequencer(
            transport, pins, self._state, self._timer, self._config.latch_pulse_us
        )
        self._bus = DataBusController(transport, pins, self._state)

        if auto_connect:
            self.connect()

    @property
    def config(self) -> ProgrammerConfig:
        return self._config

    @property
    def transport(self) -> PinTransport:
        return self._transport

    @property
    def state(self) -> BusState:
        """Cached bus state. Mutated only by the sequencer and bus setters, or invalidated on transport failure."""
        return self._state

    @property
    def sequencer(self) -> AddressSequencer:
        return self._sequencer

    @property
    def bus(self) -> DataBusController:
        return self._bus

    @property
    def is_connected(self) -> bool:
        return self._ready and self._transport.is_connected

    # --- Lifecycle ---

    def connect(self) -> None:
        """Connect the transport and put the control pins in their idle state."""
        if self.is_connected:
            return
        self._transport.connect()
        try:
            self._setup()
        except Exception:
            self._transport.disconnect()
            raise
        self._ready = True
        logger.info("programmer_ready", capacity=self._config.capacity)

    def disconnect(self) -> None:
        """Release the transport."""
        self._ready = False
        if self._transport.is_connected:
            self._transport.disconnect()
            logger.info("programmer_disconnected")

    def __enter__(self) -> Programmer:
        if not self.is_connected:
            self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        self.disconnect()

    def _setup(self) -> None:
        t = self._transport
        pins = self._config.pins

        # Pin state left by an earlier session cannot be trusted
        self._state.invalidate()

        t.set_pin_mode(pins.shift_data, PinMode.OUTPUT)
        t.set_pin_mode(pins.shift_clock, PinMode.OUTPUT)
        t.set_pin_mode(pins.latch_clock, PinMode.OUTPUT)

        # Write enable is active low, park it high
        t.set_pin_mode(pins.write_enable, PinMode.OUTPUT)
        t.digital_write(pins.write_enable, PinLevel.HIGH)

        t.set_pin_mode(pins.output_enable, PinMode.OUTPUT)
        self._bus.set_mode(PinMode.INPUT)
        self._bus.set_output_enabled(True)

    def _require_connection(self) -> None:
        if not self.is_connected:
            raise DeviceNotConnectedError("Programmer not connected. Call connect() first.")

    def _check_address(self, address: int) -> None:
        if not 0 <= address < self._config.capacity:
            raise InvalidParameterError(
                f"Address 0x{address:X} outside device range 0x000-0x{self._config.capacity - 1:X}"
            )

    def _check_value(self, value: int, index: int | None = None) -> None:
        if not 0 <= value <= 0xFF:
            where = f"data[{index}] = " if index is not None else "Value "
            raise InvalidParameterError(f"{where}{value} is not a valid byte (0-255)")

    # --- Byte I/O ---

    def read_byte(self, address: int) -> int:
        """Read the byte stored at *address*."""
        self._check_address(address)
        self._require_connection()

        try:
            self._sequencer.set_address(address)
            self._bus.set_mode(PinMode.INPUT)
            self._bus.set_output_enabled(True)

            value = 0
            for pin in reversed(self._config.pins.data_pins):
                value = (value << 1) | self._transport.digital_read(pin)
        except TransportError:
            self._state.invalidate()
            raise
        return value

    def write_byte(self, address: int, value: int) -> None:
        """Write *value* at *address* and wait for the chip's write cycle.

        Completion is detected by data polling: while the internal write is
        in progress the chip returns the complement of bit 7 on DATA7.

        A transport failure leaves every cached pin state unknown, so a retried
        write re-issues the full address, output-enable and mode sequence.

        Raises:
            WriteTimeoutError: If ``poll_limit`` is set and DATA7 never settles.
        """
        self._check_address(address)
        self._check_value(value)
        self._require_connection()

        try:
            attempts = self._write_cycle(address, value)
        except TransportError:
            self._state.invalidate()
            raise

        if attempts is None:
            logger.warning(
                "write_timeout", address=f"0x{address:03X}", attempts=self._config.poll_limit
            )
            raise WriteTimeoutError(address, self._config.poll_limit)
        logger.debug("byte_written", address=f"0x{address:03X}", value=f"0x{value:02X}", polls=attempts)

    def _write_cycle(self, address: int, value: int) -> int | None:
        t = self._transport
        pins = self._config.pins

        self._sequencer.set_address(address)
        self._bus.set_output_enabled(False)
        self._bus.set_mode(PinMode.OUTPUT)

        msb = value >> 7
        bits = value
        for pin in pins.data_pins:
            t.digital_write(pin, PinLevel(bits & 1))
            bits >>= 1

        t.digital_write(pins.write_enable, PinLevel.LOW)
        if self._config.write_pulse_ns:
            self._timer.delay_ns(self._config.write_pulse_ns)
        t.digital_write(pins.write_enable, PinLevel.HIGH)
        if self._config.write_settle_us:
            self._timer.delay_us(self._config.write_settle_us)

        # DATA7 alone goes to input for polling and must always come back
        try:
            t.set_pin_mode(pins.data7, PinMode.INPUT)
            self._bus.set_output_enabled(True)
            return self._poll_data7(msb)
        finally:
            t.set_pin_mode(pins.data7, PinMode.OUTPUT)

    def _poll_data7(self, expected: int) -> int | None:
        """Read DATA7 until it equals *expected*.

        Returns the number of reads taken, or None when ``poll_limit`` ran out.
        """
        limit = self._config.poll_limit
        pin = self._config.pins.data7
        attempts = 0
        while limit is None or attempts < limit:
            attempts += 1
            if self._transport.digital_read(pin) == expected:
                return attempts
        return None

    # --- Bulk operations ---

    def write_block(self, data: bytes | bytearray | list[int]) -> None:
        """Write *data* sequentially starting at address 0.

        Raises:
            CapacityExceededError: If *data* is larger than the device.
            InvalidParameterError: If any entry is not a byte.
        """
        if len(data) > self._config.capacity:
            raise CapacityExceededError(len(data), self._config.capacity)
        for index, value in enumerate(data):
            self._check_value(value, index)

        logger.info("block_write_started", size=len(data))
        for address, value in enumerate(data):
            self.write_byte(address, value)
        logger.info("block_write_finished", size=len(data))

    def read_block(self, start: int, count: int) -> bytes:
        """Read *count* bytes starting at *start*."""
        if count < 0:
            raise InvalidParameterError(f"Byte count must be positive, got {count}")
        if count:
            self._check_address(start + count - 1)
        return bytes(self.read_byte(start + i) for i in range(count))

    def snapshot(self, lines: int = 16) -> ContentSnapshot:
        """Read the first *lines* rows of 16 bytes, clamped to the device size."""
        lines = min(max(lines, 1), self._config.max_dump_lines)
        stride = min(ROW_STRIDE, self._config.capacity)
        rows = [
            SnapshotRow(address=start, values=list(self.read_block(start, stride)))
            for start in range(0, lines * stride, stride)
        ]
        return ContentSnapshot(rows=rows)

    def dump(self, lines: int = 16) -> str:
        """Return a hex dump of the first *lines* rows of the device."""
        logger.info("dump_started", lines=lines)
        return self.snapshot(lines).render()

    def clear(self, count: int = 256) -> None:
        """Reset the first *count* bytes to the erased value."""
        count = min(max(count, 0), self._config.capacity)
        logger.info("clear_started", size=count, value=f"0x{self._config.default_byte:02X}")
        for address in range(count):
            self.write_byte(address, self._config.default_byte)
        logger.info("clear_finished", size=count)

    def verify(self, data: bytes | bytearray | list[int]) -> list[Mismatch]:
        """Read back ``len(data)`` bytes from 0 and list differing addresses."""
        if len(data) > self._config.capacity:
            raise CapacityExceededError(len(data), self._config.capacity)
        mismatches = [
            Mismatch(address=address, expected=expected, actual=actual)
            for address, (expected, actual) in enumerate(zip(data, self.read_block(0, len(data))))
            if expected != actual
        ]
        logger.info("verify_finished", size=len(data), mismatches=len(mismatches))
        return mismatches

    def run(self, payload: Payload) -> str:
        """Burn *payload* and return a dump of its region."""
        logger.info("payload_burn", payload=payload.name, size=len(payload.data))
        self.write_block(payload.data)
        return self.dump(payload.dump_lines)
