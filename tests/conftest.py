"""Pytest configuration and shared fixtures."""

import pytest

from shiftprom.core.programmer import Programmer
from shiftprom.core.timer import Timer
from shiftprom.models.config import PinMap, ProgrammerConfig
from shiftprom.transport.simulated import SimulatedPinTransport


class RecordingTimer(Timer):
    """Timer that records requested delays instead of waiting."""

    def __init__(self):
        self.delays: list[int] = []

    def delay_ns(self, nanoseconds: int) -> None:
        self.delays.append(nanoseconds)


@pytest.fixture
def pins():
    return PinMap()


@pytest.fixture
def timer():
    return RecordingTimer()


@pytest.fixture
def sim(pins):
    """Simulated bridge with a blank 2K EEPROM."""
    return SimulatedPinTransport(pins=pins, capacity=2048, write_cycle_reads=2)


@pytest.fixture
def programmer(sim, timer):
    """Connected programmer on the simulator, setup traffic already cleared."""
    prog = Programmer(sim, ProgrammerConfig(), timer=timer)
    sim.reset_calls()
    yield prog
    prog.disconnect()
