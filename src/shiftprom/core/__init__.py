"""Programmer core: timing, bus sequencing, byte and bulk operations."""

from shiftprom.core.payloads import FilePayload, Payload, SegmentDecoderPayload, get_payload
from shiftprom.core.programmer import Programmer
from shiftprom.core.sequencer import AddressSequencer, BusState, DataBusController
from shiftprom.core.timer import TickTimer, Timer

__all__ = [
    "AddressSequencer",
    "BusState",
    "DataBusController",
    "FilePayload",
    "Payload",
    "Programmer",
    "SegmentDecoderPayload",
    "TickTimer",
    "Timer",
    "get_payload",
]
