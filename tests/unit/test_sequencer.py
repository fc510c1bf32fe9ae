"""Unit tests for the cached address sequencer and data bus controller."""

from __future__ import annotations

import pytest

from shiftprom.core.sequencer import AddressSequencer, BusState, DataBusController
from shiftprom.exceptions import TransportError
from shiftprom.transport.base import PinLevel, PinMode


@pytest.fixture
def connected_sim(sim):
    sim.connect()
    return sim


class TestAddressSequencer:
    """Test shift-register address latching."""

    def _make(self, sim, pins, timer, latch_us=10):
        state = BusState()
        return AddressSequencer(sim, pins, state, timer, latch_us), state

    def test_first_address_always_latches(self, connected_sim, pins, timer):
        seq, state = self._make(connected_sim, pins, timer)
        assert state.address is None

        assert seq.set_address(0) is True
        assert connected_sim.latch_count == 1
        assert state.address == 0

    def test_high_byte_shifted_before_low_byte(self, connected_sim, pins, timer):
        seq, _ = self._make(connected_sim, pins, timer)

        seq.set_address(0x5A3)

        shifts = [args[2] for name, args in connected_sim.calls if name == "shift_out"]
        assert shifts == [0x05, 0xA3]
        assert connected_sim.address == 0x5A3

    def test_latch_pulse_high_then_low_with_delay(self, connected_sim, pins, timer):
        seq, _ = self._make(connected_sim, pins, timer, latch_us=10)

        seq.set_address(1)

        latch_writes = [args[1] for name, args in connected_sim.calls
                        if name == "digital_write" and args[0] == pins.latch_clock]
        assert latch_writes == [PinLevel.HIGH, PinLevel.LOW]
        assert timer.delays == [10_000]

    def test_zero_latch_pulse_skips_delay(self, connected_sim, pins, timer):
        seq, _ = self._make(connected_sim, pins, timer, latch_us=0)
        seq.set_address(1)
        assert timer.delays == []

    def test_same_address_is_noop(self, connected_sim, pins, timer):
        seq, _ = self._make(connected_sim, pins, timer)
        seq.set_address(0x123)
        calls_after_first = len(connected_sim.calls)

        assert seq.set_address(0x123) is False
        assert len(connected_sim.calls) == calls_after_first
        assert connected_sim.count("shift_out") == 2
        assert connected_sim.latch_count == 1

    def test_transport_failure_keeps_cached_address(self, connected_sim, pins, timer):
        seq, state = self._make(connected_sim, pins, timer)
        seq.set_address(0x010)

        connected_sim.fail_after = len(connected_sim.calls) + 1
        with pytest.raises(TransportError):
            seq.set_address(0x020)
        assert state.address == 0x010

        connected_sim.fail_after = None
        assert seq.set_address(0x020) is True
        assert connected_sim.address == 0x020

    def test_invalidate_forces_relatch(self, connected_sim, pins, timer):
        seq, state = self._make(connected_sim, pins, timer)
        seq.set_address(7)
        state.invalidate()

        assert state.address is None
        assert seq.set_address(7) is True
        assert connected_sim.latch_count == 2


class TestDataBusController:
    """Test direction and output-enable caching."""

    def test_initial_state(self):
        state = BusState()
        assert state.direction == PinMode.INPUT
        assert state.output_enabled is False

    def test_set_mode_switches_all_data_pins(self, connected_sim, pins):
        bus = DataBusController(connected_sim, pins, BusState())

        assert bus.set_mode(PinMode.OUTPUT) is True

        touched = [args[0] for name, args in connected_sim.calls if name == "set_pin_mode"]
        assert touched == list(pins.data_pins)
        assert all(connected_sim.modes[p] == PinMode.OUTPUT for p in pins.data_pins)

    def test_set_mode_unchanged_is_noop(self, connected_sim, pins):
        bus = DataBusController(connected_sim, pins, BusState())
        assert bus.set_mode(PinMode.INPUT) is False
        assert connected_sim.calls == []

    def test_output_enable_is_active_low(self, connected_sim, pins):
        state = BusState()
        bus = DataBusController(connected_sim, pins, state)

        assert bus.set_output_enabled(True) is True
        assert connected_sim.levels[pins.output_enable] == PinLevel.LOW
        assert bus.set_output_enabled(False) is True
        assert connected_sim.levels[pins.output_enable] == PinLevel.HIGH
        assert state.output_enabled is False

    def test_output_enable_unchanged_is_noop(self, connected_sim, pins):
        bus = DataBusController(connected_sim, pins, BusState())
        assert bus.set_output_enabled(False) is False
        assert connected_sim.calls == []

    def test_failed_mode_change_keeps_cached_direction(self, connected_sim, pins):
        state = BusState()
        bus = DataBusController(connected_sim, pins, state)
        connected_sim.fail_after = 3

        with pytest.raises(TransportError):
            bus.set_mode(PinMode.OUTPUT)
        assert state.direction == PinMode.INPUT

    def test_invalidated_state_reissues_mode_and_output_enable(self, connected_sim, pins):
        state = BusState()
        bus = DataBusController(connected_sim, pins, state)
        state.invalidate()

        assert bus.set_mode(PinMode.INPUT) is True
        assert bus.set_output_enabled(False) is True
        assert connected_sim.count("set_pin_mode") == len(pins.data_pins)
        assert connected_sim.count("digital_write", pins.output_enable) == 1
        assert state.direction == PinMode.INPUT
        assert state.output_enabled is False
