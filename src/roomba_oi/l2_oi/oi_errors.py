"""
oi_errors.py
============
Exception hierarchy for the Roomba Open Interface (OI) codec.

All codec errors derive from `OIError`, which itself is a `ValueError`, so
callers that only know "bad bytes / bad values raise ValueError" keep working.

- Encoding / validation / decoding errors are raised to the immediate caller.
- Streaming errors (ChecksumMismatch, TruncatedFrame, UnknownPacket) are
  raised internally by the stream parser and handled there: the frame is
  dropped and parsing resumes at the next header byte.
"""

from __future__ import annotations


class OIError(ValueError):
    """Base class for every OI codec error."""


class InvalidOpcode(OIError):
    """Command code is not in the opcode catalog."""

    def __init__(self, opcode: int) -> None:
        super().__init__(f"unknown opcode {opcode}")
        self.opcode = opcode


class InvalidArgument(OIError):
    """
    A command argument (or a packet value) violates its declared domain.

    Attributes:
        opcode: command code (or packet id when raised by `encode_value`).
        index: zero-based argument position in the frame's data bytes.
        name: human name of the argument.
        value: the offending value.
        reason: the violated constraint, e.g. "not in [-500, 500]".
    """

    def __init__(self, opcode: int, index: int, name: str, value: object, reason: str) -> None:
        super().__init__(f"opcode {opcode}: argument {index} ({name}) = {value!r}: {reason}")
        self.opcode = opcode
        self.index = index
        self.name = name
        self.value = value
        self.reason = reason


class LengthMismatch(OIError):
    """Wrong byte count (or argument count) for a fixed-size opcode or packet."""

    def __init__(self, what: str, expected: int, actual: int) -> None:
        super().__init__(f"{what}: expected {expected}, got {actual}")
        self.what = what
        self.expected = expected
        self.actual = actual


class ChecksumMismatch(OIError):
    """Streamed frame failed the modulo-256 sum check."""

    def __init__(self, total: int) -> None:
        super().__init__(f"frame checksum mismatch (sum & 0xFF = {total})")
        self.total = total


class TruncatedFrame(OIError):
    """Frame payload ended before a packet's declared width was satisfied."""

    def __init__(self, packet_id: int, needed: int, available: int) -> None:
        super().__init__(
            f"packet {packet_id} needs {needed} byte(s), only {available} left in payload"
        )
        self.packet_id = packet_id
        self.needed = needed
        self.available = available


class UnknownPacket(OIError):
    """Packet id is not in the packet catalog."""

    def __init__(self, packet_id: int) -> None:
        super().__init__(f"unknown packet id {packet_id}")
        self.packet_id = packet_id
