"""
roomba_oi.l2_oi
Open Interface protocol layer.

Public API:
- Opcode, argument_spec_for, encode, validate, parse_command, Command
- PacketId, descriptor_for, members_of, decode, DecodedReading, GroupReading
- StreamParser
- OIError and its subclasses
"""

from .oi_errors import (  # noqa: F401
    OIError, InvalidOpcode, InvalidArgument, LengthMismatch,
    ChecksumMismatch, TruncatedFrame, UnknownPacket,
)
from .oi_opcodes import Opcode, OpcodeSpec, ArgSpec, argument_spec_for  # noqa: F401
from .oi_packets import PacketId, PacketDescriptor, descriptor_for, members_of  # noqa: F401
from .oi_codec import Command, encode, validate, parse_command  # noqa: F401
from .oi_decode import DecodedReading, GroupReading, decode  # noqa: F401
from .oi_stream import StreamParser  # noqa: F401

__all__ = [
    "OIError", "InvalidOpcode", "InvalidArgument", "LengthMismatch",
    "ChecksumMismatch", "TruncatedFrame", "UnknownPacket",
    "Opcode", "OpcodeSpec", "ArgSpec", "argument_spec_for",
    "PacketId", "PacketDescriptor", "descriptor_for", "members_of",
    "Command", "encode", "validate", "parse_command",
    "DecodedReading", "GroupReading", "decode",
    "StreamParser",
]
