"""
oi_fields.py
============
Named-field views of decoded sensor readings.

Several single-value packets are bitfields or enumerations. `interpret`
expands them into plain dicts, e.g. packet 7 value 0b0101 →
{"bump_right": True, "bump_left": False, "wheel_drop_right": True, ...}.
Packets without a schema here map to {name: value}.
"""

from __future__ import annotations

from typing import Mapping

from construct import BitStruct, Construct, Enum, Flag, Int8ub, Padding

from .oi_decode import DecodedReading, GroupReading, Reading
from .oi_packets import PacketId, require_descriptor

# BitStruct fields run from bit 7 down to bit 0.

BumpsWheelDrops = BitStruct(
    Padding(4),
    "wheel_drop_left" / Flag,    # bit3
    "wheel_drop_right" / Flag,   # bit2
    "bump_left" / Flag,          # bit1
    "bump_right" / Flag,         # bit0
)

WheelOvercurrents = BitStruct(
    Padding(3),
    "left_wheel" / Flag,         # bit4
    "right_wheel" / Flag,        # bit3
    "main_brush" / Flag,         # bit2
    Padding(1),                  # bit1 reserved
    "side_brush" / Flag,         # bit0
)

Buttons = BitStruct(
    "clock" / Flag,              # bit7
    "schedule" / Flag,
    "day" / Flag,
    "hour" / Flag,
    "minute" / Flag,
    "dock" / Flag,
    "spot" / Flag,
    "clean" / Flag,              # bit0
)

ChargingSources = BitStruct(
    Padding(6),
    "home_base" / Flag,          # bit1
    "internal_charger" / Flag,   # bit0
)

LightBumper = BitStruct(
    Padding(2),
    "right" / Flag,              # bit5
    "front_right" / Flag,
    "center_right" / Flag,
    "center_left" / Flag,
    "front_left" / Flag,
    "left" / Flag,               # bit0
)

ChargingState = Enum(
    Int8ub,
    NOT_CHARGING=0,
    RECONDITIONING=1,
    FULL_CHARGING=2,
    TRICKLE_CHARGING=3,
    WAITING=4,
    FAULT=5,
)

OIMode = Enum(
    Int8ub,
    OFF=0,        # OI inactive; send START
    PASSIVE=1,    # after START: sensors and songs, no actuators
    SAFE=2,       # actuators with cliff / wheel-drop safety
    FULL=3,       # actuators, no safety
)

FIELD_SCHEMAS: Mapping[int, Construct] = {
    PacketId.BUMPS_WHEEL_DROPS: BumpsWheelDrops,
    PacketId.OVERCURRENTS: WheelOvercurrents,
    PacketId.BUTTONS: Buttons,
    PacketId.CHARGING_STATE: ChargingState,
    PacketId.CHARGING_SOURCES: ChargingSources,
    PacketId.OI_MODE: OIMode,
    PacketId.LIGHT_BUMPER: LightBumper,
}
"""Packet id -> construct schema of its single data byte."""


def _interpret_single(reading: DecodedReading) -> dict[str, object]:
    name = require_descriptor(reading.packet_id).name
    schema = FIELD_SCHEMAS.get(reading.packet_id)
    if schema is None:
        return {name: reading.value}

    parsed = schema.parse(bytes([reading.value & 0xFF]))
    if isinstance(parsed, dict):
        return {k: bool(v) for k, v in parsed.items() if not k.startswith("_")}
    # Enum: known codes come back as a str subclass, unknown ones as int
    return {name: str(parsed) if isinstance(parsed, str) else int(parsed)}


def interpret(reading: Reading) -> dict[str, object]:
    """
    Expand a reading into named fields.

    Group readings are flattened in member order.

    Example:
        >>> interpret(DecodedReading(35, 2))
        {'oi_mode': 'SAFE'}
    """
    if isinstance(reading, GroupReading):
        out: dict[str, object] = {}
        for member in reading:
            out.update(_interpret_single(member))
        return out
    return _interpret_single(reading)
