"""
oi_packets.py
=============
Sensor packet catalog of the iRobot Roomba Open Interface (OI) (RX side).

This file is the single source of truth for:
- Packet ids 7–58 (single values): byte width and signedness.
- Group packet ids 0–6, 100, 101, 106, 107: the fixed, ordered list of
  member packets whose concatenated bytes form the group's payload.
- The `construct` format used to parse / build each packet.

Two-byte packets are 16-bit values sent high byte first (big-endian,
two's complement when signed).

Reference: iRobot Create 2 / Roomba 600 Open Interface Specification
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Mapping

from construct import Construct, Int8sb, Int8ub, Int16sb, Int16ub, Struct

from .oi_errors import UnknownPacket


class PacketId(IntEnum):
    """Enumeration of Roomba Open Interface sensor packet ids."""

    # Groups
    GROUP_0   = 0      # 7–26
    GROUP_1   = 1      # 7–16
    GROUP_2   = 2      # 17–20
    GROUP_3   = 3      # 21–26
    GROUP_4   = 4      # 27–34
    GROUP_5   = 5      # 35–42
    GROUP_6   = 6      # 7–42
    GROUP_100 = 100    # 7–58 (all packets)
    GROUP_101 = 101    # 43–58
    GROUP_106 = 106    # 46–51 (light bump signals)
    GROUP_107 = 107    # 54–58 (motor currents + stasis)

    # Single values
    BUMPS_WHEEL_DROPS        = 7
    WALL                     = 8
    CLIFF_LEFT               = 9
    CLIFF_FRONT_LEFT         = 10
    CLIFF_FRONT_RIGHT        = 11
    CLIFF_RIGHT              = 12
    VIRTUAL_WALL             = 13
    OVERCURRENTS             = 14
    DIRT_DETECT              = 15
    UNUSED_16                = 16
    IR_OPCODE                = 17
    BUTTONS                  = 18
    DISTANCE                 = 19
    ANGLE                    = 20
    CHARGING_STATE           = 21
    VOLTAGE                  = 22
    CURRENT                  = 23
    TEMPERATURE              = 24
    BATTERY_CHARGE           = 25
    BATTERY_CAPACITY         = 26
    WALL_SIGNAL              = 27
    CLIFF_LEFT_SIGNAL        = 28
    CLIFF_FRONT_LEFT_SIGNAL  = 29
    CLIFF_FRONT_RIGHT_SIGNAL = 30
    CLIFF_RIGHT_SIGNAL       = 31
    UNUSED_32                = 32
    UNUSED_33                = 33
    CHARGING_SOURCES         = 34
    OI_MODE                  = 35
    SONG_NUMBER              = 36
    SONG_PLAYING             = 37
    STREAM_NUM_PACKETS       = 38
    REQUESTED_VELOCITY       = 39
    REQUESTED_RADIUS         = 40
    REQUESTED_RIGHT_VELOCITY = 41
    REQUESTED_LEFT_VELOCITY  = 42
    LEFT_ENCODER_COUNTS      = 43
    RIGHT_ENCODER_COUNTS     = 44
    LIGHT_BUMPER             = 45
    LIGHT_BUMP_LEFT          = 46
    LIGHT_BUMP_FRONT_LEFT    = 47
    LIGHT_BUMP_CENTER_LEFT   = 48
    LIGHT_BUMP_CENTER_RIGHT  = 49
    LIGHT_BUMP_FRONT_RIGHT   = 50
    LIGHT_BUMP_RIGHT         = 51
    IR_OPCODE_LEFT           = 52
    IR_OPCODE_RIGHT          = 53
    LEFT_MOTOR_CURRENT       = 54
    RIGHT_MOTOR_CURRENT      = 55
    MAIN_BRUSH_CURRENT       = 56
    SIDE_BRUSH_CURRENT       = 57
    STASIS                   = 58


STREAM_HEADER = 19
"""First byte of every streamed telemetry frame (opcode 148 reply)."""


@dataclass(frozen=True, slots=True)
class PacketDescriptor:
    """
    Immutable description of one sensor packet.

    Fields:
      - packet_id: OI packet id.
      - name: snake_case field name (used as the `construct` field name).
      - width: payload size in bytes (sum of member widths for groups).
      - signed: two's-complement value (single packets only).
      - members: ordered member ids for group packets; empty otherwise.
      - fmt: `construct` parser/builder for the payload.
    """
    packet_id: int
    name: str
    width: int
    signed: bool = False
    members: tuple[int, ...] = ()
    fmt: Construct = field(default=None, compare=False, repr=False)

    @property
    def is_group(self) -> bool:
        return bool(self.members)


_FORMATS = {
    (1, False): Int8ub,
    (1, True):  Int8sb,
    (2, False): Int16ub,
    (2, True):  Int16sb,
}

# (id, name, width, signed), from the OI reference packet tables
_SINGLE_PACKETS = (
    (7,  "bumps_wheel_drops",        1, False),  # bit0..3
    (8,  "wall",                     1, False),  # 0 = no wall, 1 = wall
    (9,  "cliff_left",               1, False),
    (10, "cliff_front_left",         1, False),
    (11, "cliff_front_right",        1, False),
    (12, "cliff_right",              1, False),
    (13, "virtual_wall",             1, False),
    (14, "overcurrents",             1, False),  # bit0..4
    (15, "dirt_detect",              1, False),
    (16, "unused_16",                1, False),
    (17, "ir_opcode",                1, False),
    (18, "buttons",                  1, False),
    (19, "distance",                 2, True),   # mm since last request
    (20, "angle",                    2, True),   # degrees since last request
    (21, "charging_state",           1, False),  # 0–5
    (22, "voltage",                  2, False),  # mV
    (23, "current",                  2, True),   # mA (+in, -out)
    (24, "temperature",              1, True),   # °C
    (25, "battery_charge",           2, False),  # mAh
    (26, "battery_capacity",         2, False),  # mAh
    (27, "wall_signal",              2, False),  # 0–1023
    (28, "cliff_left_signal",        2, False),  # 0–4095
    (29, "cliff_front_left_signal",  2, False),
    (30, "cliff_front_right_signal", 2, False),
    (31, "cliff_right_signal",       2, False),
    (32, "unused_32",                1, False),
    (33, "unused_33",                2, False),
    (34, "charging_sources",         1, False),  # bit0 internal, bit1 home base
    (35, "oi_mode",                  1, False),  # 0–3
    (36, "song_number",              1, False),
    (37, "song_playing",             1, False),
    (38, "stream_num_packets",       1, False),
    (39, "requested_velocity",       2, True),   # mm/s
    (40, "requested_radius",         2, True),   # mm
    (41, "requested_right_velocity", 2, True),
    (42, "requested_left_velocity",  2, True),
    (43, "left_encoder_counts",      2, False),  # rolls over at 65535
    (44, "right_encoder_counts",     2, False),
    (45, "light_bumper",             1, False),  # bit0..5
    (46, "light_bump_left",          2, False),  # 0–4095
    (47, "light_bump_front_left",    2, False),
    (48, "light_bump_center_left",   2, False),
    (49, "light_bump_center_right",  2, False),
    (50, "light_bump_front_right",   2, False),
    (51, "light_bump_right",         2, False),
    (52, "ir_opcode_left",           1, False),
    (53, "ir_opcode_right",          1, False),
    (54, "left_motor_current",       2, True),   # mA
    (55, "right_motor_current",      2, True),
    (56, "main_brush_current",       2, True),
    (57, "side_brush_current",       2, True),
    (58, "stasis",                   1, False),  # 0–3
)

# group id -> (first member, last member), inclusive
_GROUP_RANGES = {
    0:   (7, 26),
    1:   (7, 16),
    2:   (17, 20),
    3:   (21, 26),
    4:   (27, 34),
    5:   (35, 42),
    6:   (7, 42),
    100: (7, 58),
    101: (43, 58),
    106: (46, 51),
    107: (54, 58),
}


def _build_catalog() -> Mapping[int, PacketDescriptor]:
    table: dict[int, PacketDescriptor] = {}
    for pid, name, width, signed in _SINGLE_PACKETS:
        table[pid] = PacketDescriptor(pid, name, width, signed, fmt=_FORMATS[(width, signed)])
    for gid, (first, last) in _GROUP_RANGES.items():
        members = tuple(range(first, last + 1))
        parts = [table[m] for m in members]
        table[gid] = PacketDescriptor(
            gid,
            f"group_{gid}",
            sum(p.width for p in parts),
            members=members,
            fmt=Struct(*(p.name / p.fmt for p in parts)),
        )
    return MappingProxyType(table)


PACKETS: Mapping[int, PacketDescriptor] = _build_catalog()
"""Read-only mapping of packet id -> PacketDescriptor (singles and groups)."""

GROUP_PACKET_IDS = frozenset(pid for pid, d in PACKETS.items() if d.is_group)
PACKET_IDS = frozenset(PACKETS)


# ============================================================
# Lookups
# ============================================================

def descriptor_for(packet_id: int) -> PacketDescriptor | None:
    """Return the descriptor for `packet_id`, or None when it is not catalogued."""
    return PACKETS.get(packet_id)


def require_descriptor(packet_id: int) -> PacketDescriptor:
    """Like `descriptor_for`, but raises UnknownPacket for uncatalogued ids."""
    d = PACKETS.get(packet_id)
    if d is None:
        raise UnknownPacket(packet_id)
    return d


def members_of(group_id: int) -> tuple[int, ...] | None:
    """
    Return the ordered member ids of a group packet.

    Returns None for ids that are not group packets (including single-value
    packet ids and unknown ids).
    """
    d = PACKETS.get(group_id)
    if d is None or not d.is_group:
        return None
    return d.members


def is_group(packet_id: int) -> bool:
    return packet_id in GROUP_PACKET_IDS


def packet_length(packet_id: int) -> int:
    """
    Return expected data length (in bytes) for a given sensor packet ID.

    Args:
        packet_id: Numeric packet identifier defined by the OI spec.

    Returns:
        Length in bytes of the packet's payload, or 0 when the packet is
        unknown.
    """
    d = PACKETS.get(packet_id)
    return d.width if d else 0
