"""Pydantic models for configuration and device content."""

from shiftprom.models.config import MAX_CAPACITY, PinMap, PinRole, ProgrammerConfig
from shiftprom.models.snapshot import ContentSnapshot, Mismatch, SnapshotRow

__all__ = [
    "MAX_CAPACITY",
    "ContentSnapshot",
    "Mismatch",
    "PinMap",
    "PinRole",
    "ProgrammerConfig",
    "SnapshotRow",
]
