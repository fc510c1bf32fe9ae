"""shiftprom - parallel EEPROM programmer over a microcontroller GPIO bridge."""

__version__ = "0.1.0"
