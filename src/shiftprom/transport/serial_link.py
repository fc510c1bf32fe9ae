"""Pin transport over a serial link to the bridge firmware (pyserial)."""

from __future__ import annotations

import serial
from serial.tools.list_ports import comports

from shiftprom.exceptions import ConnectionError, DeviceNotConnectedError, TransportError
from shiftprom.transport.base import BitOrder, PinLevel, PinMode, PinTransport, SerialConfig
from shiftprom.utils.logging import get_logger

logger = get_logger(__name__)

# Request opcodes understood by the bridge firmware
OP_PIN_MODE = 0x01
OP_DIGITAL_WRITE = 0x02
OP_DIGITAL_READ = 0x03
OP_SHIFT_OUT = 0x04
OP_HANDSHAKE = 0xAA

ACK = 0x06
NAK = 0x15

_MODE_CODES: dict[PinMode, int] = {PinMode.INPUT: 0x00, PinMode.OUTPUT: 0x01}
_ORDER_CODES: dict[BitOrder, int] = {BitOrder.LSB_FIRST: 0x00, BitOrder.MSB_FIRST: 0x01}


def scan_ports() -> list[str]:
    """List serial ports that could host the bridge."""
    return [p.device for p in comports()]


class SerialPinTransport(PinTransport):
    """GPIO bridge reached over a USB serial port.

    Each primitive is one request frame (opcode followed by argument
    bytes) answered by ACK, plus a value byte for digital reads.
    """

    def __init__(self, config: SerialConfig | None = None) -> None:
        super().__init__()
        self._config = config or SerialConfig()
        self._serial: serial.Serial | None = None

    @property
    def config(self) -> SerialConfig:
        return self._config

    def connect(self) -> None:
        if self._connected:
            return
        logger.info("bridge_connecting", port=self._config.port, baud=self._config.baud_rate)
        try:
            self._serial = serial.Serial(
                port=self._config.port,
                baudrate=self._config.baud_rate,
                timeout=self._config.timeout,
            )
        except serial.SerialException as exc:
            raise ConnectionError(f"Cannot open {self._config.port}: {exc}") from exc

        self._connected = True
        try:
            self._request(bytes([OP_HANDSHAKE]), "handshake")
        except TransportError as exc:
            self.disconnect()
            raise ConnectionError(f"No bridge answering on {self._config.port}: {exc}") from exc
        logger.info("bridge_connected", port=self._config.port)

    def disconnect(self) -> None:
        if self._serial is None:
            self._connected = False
            return
        logger.info("bridge_disconnecting", port=self._config.port)
        try:
            self._serial.close()
        finally:
            self._serial = None
            self._connected = False
        logger.info("bridge_disconnected", port=self._config.port)

    def set_pin_mode(self, pin: int, mode: PinMode) -> None:
        self._request(bytes([OP_PIN_MODE, pin, _MODE_CODES[mode]]), "pin_mode")

    def digital_write(self, pin: int, level: PinLevel) -> None:
        self._request(bytes([OP_DIGITAL_WRITE, pin, int(level)]), "digital_write")

    def digital_read(self, pin: int) -> int:
        value = self._request(bytes([OP_DIGITAL_READ, pin]), "digital_read", reply_size=1)
        if value[0] not in (0, 1):
            raise TransportError(f"digital_read: invalid pin value 0x{value[0]:02X}")
        return value[0]

    def shift_out(self, data_pin: int, clock_pin: int, bit_order: BitOrder, value: int) -> None:
        frame = bytes([OP_SHIFT_OUT, data_pin, clock_pin, _ORDER_CODES[bit_order], value & 0xFF])
        self._request(frame, "shift_out")

    def _request(self, frame: bytes, operation: str, reply_size: int = 0) -> bytes:
        """Send *frame*, check the ACK, and return *reply_size* payload bytes."""
        if not self._connected or self._serial is None:
            raise DeviceNotConnectedError("Bridge not connected. Call connect() first.")
        try:
            self._serial.write(frame)
            status = self._serial.read(1)
            if not status:
                raise TransportError(f"{operation}: no response from bridge")
            if status[0] == NAK:
                raise TransportError(f"{operation}: request rejected by bridge")
            if status[0] != ACK:
                raise TransportError(f"{operation}: unexpected status 0x{status[0]:02X}")
            payload = self._serial.read(reply_size) if reply_size else b""
        except serial.SerialException as exc:
            raise TransportError(f"{operation}: {exc}") from exc

        if len(payload) != reply_size:
            raise TransportError(
                f"{operation}: short reply ({len(payload)} of {reply_size} bytes)"
            )
        return payload
