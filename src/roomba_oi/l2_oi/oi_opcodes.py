"""
oi_opcodes.py
=============
Command opcode catalog of the iRobot Roomba Open Interface (OI) (TX side).

This file is the single source of truth for:
- OI command opcodes (`Opcode`).
- The data-byte layout of each command: argument width, signedness and the
  numeric domain every argument must satisfy (`OpcodeSpec` / `ArgSpec`).

Other modules should import from here:
- oi_codec.py → to validate and build outgoing commands.

Reference: iRobot Create 2 / Roomba 600 Open Interface Specification
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Mapping

from .oi_packets import PACKET_IDS

# ============================================================
# OI Command Opcodes (TX)
# ============================================================

class Opcode(IntEnum):
    """Enumeration of Roomba Open Interface command opcodes."""

    RESET           = 7      # Reset robot
    START           = 128    # Start OI (Passive mode)
    BAUD            = 129    # Change baud rate
    CONTROL         = 130    # Enter Control mode (same as Safe)
    SAFE            = 131    # Enter Safe mode
    FULL            = 132    # Enter Full mode
    POWER           = 133    # Power down
    SPOT            = 134    # Spot cleaning
    CLEAN           = 135    # Standard clean
    MAX             = 136    # Max clean (until battery empty)
    DRIVE           = 137    # Drive with velocity + radius
    MOTORS          = 138    # Turn main brush, side brush, vacuum on/off
    LEDS            = 139    # Control LEDs
    SONG            = 140    # Define song
    PLAY            = 141    # Play song
    SENSORS         = 142    # Query one sensor packet
    DOCK            = 143    # Seek dock (same as pressing dock button)
    PWM_MOTORS      = 144    # Brush / vacuum duty cycles
    DRIVE_DIRECT    = 145    # Drive wheels independently
    DRIVE_PWM       = 146    # Drive wheels with raw PWM values
    STREAM          = 148    # Start continuous streaming of sensor packets
    QUERY_LIST      = 149    # Query multiple packets once
    STREAM_CTRL     = 150    # Pause/resume streaming
    SCHEDULING_LEDS = 162    # Weekday + scheduling LEDs
    DIGIT_LEDS_RAW  = 163    # 7-segment digits, raw segments
    DIGIT_LEDS_ASCII = 164   # 7-segment digits, ASCII
    BUTTONS         = 165    # Push buttons
    SCHEDULE        = 167    # Set cleaning schedule
    SET_DAY_TIME    = 168    # Set clock
    STOP            = 173    # Stop OI and exit to Off


# ============================================================
# Drive radius sentinels (raw 16-bit patterns)
# ============================================================

RADIUS_STRAIGHT     = 0x7FFF   # drive straight
RADIUS_STRAIGHT_ALT = 0x8000   # drive straight (alternate encoding, -32768)
RADIUS_TURN_CW      = 0xFFFF   # turn in place clockwise (-1)
RADIUS_TURN_CCW     = 0x0001   # turn in place counter-clockwise (+1)


# ============================================================
# Baud codes (opcode 129)
# ============================================================

BAUD_RATES: Mapping[int, int] = MappingProxyType({
    0: 300, 1: 600, 2: 1200, 3: 2400, 4: 4800, 5: 9600,
    6: 14400, 7: 19200, 8: 28800, 9: 38400, 10: 57600, 11: 115200,
})
"""Baud code -> bits per second."""

DEFAULT_BAUD_RATE = 115200


def baud_code_for(bps: int) -> int | None:
    """Return the baud code for a bit rate, or None if the OI does not support it."""
    for code, rate in BAUD_RATES.items():
        if rate == bps:
            return code
    return None


# ============================================================
# Argument / opcode specs
# ============================================================

_STRUCT_FORMATS = {
    (1, False): ">B",
    (1, True):  ">b",
    (2, False): ">H",
    (2, True):  ">h",
}


@dataclass(frozen=True, slots=True)
class ArgSpec:
    """
    Domain of one command argument.

    A value is accepted when it lies in [low, high] or when its raw wire
    pattern is one of `sentinels`. When `allowed` is given the value must be
    a member of it instead (used for packet id arguments).

    Sentinels are raw patterns (e.g. 0x8000); callers may pass either the
    pattern itself or its signed reading (-32768).
    """
    name: str
    low: int
    high: int
    width: int = 1
    signed: bool = False
    sentinels: frozenset[int] = frozenset()
    allowed: frozenset[int] | None = None

    @property
    def _mask(self) -> int:
        return (1 << (8 * self.width)) - 1

    def _fold(self, value: int) -> int:
        # sentinel given as raw pattern → signed reading
        if self.signed and value in self.sentinels and value > self._mask >> 1:
            return value - (self._mask + 1)
        return value

    def check(self, value: object) -> str | None:
        """Return None when `value` is acceptable, else a short reason."""
        if not isinstance(value, int) or isinstance(value, bool):
            return "not an integer"
        v = self._fold(value)
        if self.signed:
            lo, hi = -((self._mask + 1) >> 1), self._mask >> 1
        else:
            lo, hi = 0, self._mask
        if not lo <= v <= hi:
            kind = "signed" if self.signed else "unsigned"
            return f"does not fit in {8 * self.width}-bit {kind}"
        if self.allowed is not None:
            return None if v in self.allowed else "not a permitted value"
        if self.low <= v <= self.high or (v & self._mask) in self.sentinels:
            return None
        if self.sentinels:
            specials = ", ".join(f"0x{s:04X}" for s in sorted(self.sentinels))
            return f"not in [{self.low}, {self.high}] or {{{specials}}}"
        return f"not in [{self.low}, {self.high}]"

    def pack(self, value: int) -> bytes:
        """Serialize an already checked value, high byte first."""
        return struct.pack(_STRUCT_FORMATS[(self.width, self.signed)], self._fold(value))

    def unpack(self, raw: bytes) -> int:
        return struct.unpack(_STRUCT_FORMATS[(self.width, self.signed)], raw)[0]


@dataclass(frozen=True, slots=True)
class OpcodeSpec:
    """
    Data-byte layout of one opcode.

    Fixed-size commands only use `args`. Variable-length commands (Song,
    Stream, Query List) also declare `repeat`: an item layout repeated as many
    times as the value of the argument at `count_index`.
    """
    code: int
    name: str
    args: tuple[ArgSpec, ...] = ()
    repeat: tuple[ArgSpec, ...] = ()
    count_index: int | None = None

    @property
    def variable(self) -> bool:
        return bool(self.repeat)

    @property
    def fixed_bytes(self) -> int:
        """Data bytes of the fixed part (excludes the opcode byte)."""
        return sum(a.width for a in self.args)

    @property
    def item_bytes(self) -> int:
        return sum(a.width for a in self.repeat)

    def data_bytes(self, count: int = 0) -> int:
        """Total data bytes for a command carrying `count` repeated items."""
        return self.fixed_bytes + count * self.item_bytes


def _u8(name: str, low: int = 0, high: int = 255) -> ArgSpec:
    return ArgSpec(name, low, high)


def _i8(name: str, low: int, high: int) -> ArgSpec:
    return ArgSpec(name, low, high, signed=True)


def _i16(name: str, low: int, high: int, sentinels: frozenset[int] = frozenset()) -> ArgSpec:
    return ArgSpec(name, low, high, width=2, signed=True, sentinels=sentinels)


_PACKET_ID = ArgSpec("packet_id", 0, 255, allowed=PACKET_IDS)

_DAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")

_SPECS = (
    OpcodeSpec(Opcode.RESET, "reset"),
    OpcodeSpec(Opcode.START, "start"),
    OpcodeSpec(Opcode.BAUD, "baud", (_u8("baud_code", 0, 11),)),
    OpcodeSpec(Opcode.CONTROL, "control"),
    OpcodeSpec(Opcode.SAFE, "safe"),
    OpcodeSpec(Opcode.FULL, "full"),
    OpcodeSpec(Opcode.POWER, "power"),
    OpcodeSpec(Opcode.SPOT, "spot"),
    OpcodeSpec(Opcode.CLEAN, "clean"),
    OpcodeSpec(Opcode.MAX, "max"),
    OpcodeSpec(Opcode.DRIVE, "drive", (
        _i16("velocity", -500, 500),
        _i16("radius", -2000, 2000, frozenset(
            {RADIUS_STRAIGHT, RADIUS_STRAIGHT_ALT, RADIUS_TURN_CW, RADIUS_TURN_CCW})),
    )),
    OpcodeSpec(Opcode.MOTORS, "motors", (_u8("motor_bits", 0, 31),)),
    OpcodeSpec(Opcode.LEDS, "leds", (
        _u8("led_bits", 0, 15),
        _u8("power_color"),
        _u8("power_intensity"),
    )),
    OpcodeSpec(Opcode.SONG, "song",
               (_u8("song_number", 0, 4), _u8("song_length", 1, 16)),
               repeat=(_u8("note"), _u8("duration")),
               count_index=1),
    OpcodeSpec(Opcode.PLAY, "play", (_u8("song_number", 0, 4),)),
    OpcodeSpec(Opcode.SENSORS, "sensors", (_PACKET_ID,)),
    OpcodeSpec(Opcode.DOCK, "seek_dock"),
    OpcodeSpec(Opcode.PWM_MOTORS, "pwm_motors", (
        _i8("main_brush_pwm", -127, 127),
        _i8("side_brush_pwm", -127, 127),
        _u8("vacuum_pwm", 0, 127),
    )),
    OpcodeSpec(Opcode.DRIVE_DIRECT, "drive_direct", (
        _i16("right_velocity", -500, 500),
        _i16("left_velocity", -500, 500),
    )),
    OpcodeSpec(Opcode.DRIVE_PWM, "drive_pwm", (
        _i16("right_pwm", -255, 255),
        _i16("left_pwm", -255, 255),
    )),
    OpcodeSpec(Opcode.STREAM, "stream", (_u8("packet_count", 1, 255),),
               repeat=(_PACKET_ID,), count_index=0),
    OpcodeSpec(Opcode.QUERY_LIST, "query_list", (_u8("packet_count", 1, 255),),
               repeat=(_PACKET_ID,), count_index=0),
    OpcodeSpec(Opcode.STREAM_CTRL, "pause_resume_stream", (_u8("stream_state", 0, 1),)),
    OpcodeSpec(Opcode.SCHEDULING_LEDS, "scheduling_leds", (
        _u8("weekday_bits", 0, 127),
        _u8("scheduling_bits", 0, 127),
    )),
    OpcodeSpec(Opcode.DIGIT_LEDS_RAW, "digit_leds_raw",
               tuple(_u8(f"digit_{i}_bits", 0, 127) for i in (3, 2, 1, 0))),
    OpcodeSpec(Opcode.DIGIT_LEDS_ASCII, "digit_leds_ascii",
               tuple(_u8(f"digit_{i}_ascii", 32, 126) for i in (3, 2, 1, 0))),
    OpcodeSpec(Opcode.BUTTONS, "buttons", (_u8("button_bits"),)),
    OpcodeSpec(Opcode.SCHEDULE, "schedule", (_u8("days", 0, 127),) + tuple(
        spec
        for day in _DAYS
        for spec in (_u8(f"{day}_hour", 0, 23), _u8(f"{day}_minute", 0, 59))
    )),
    OpcodeSpec(Opcode.SET_DAY_TIME, "set_day_time", (
        _u8("day", 0, 6),
        _u8("hour", 0, 23),
        _u8("minute", 0, 59),
    )),
    OpcodeSpec(Opcode.STOP, "stop"),
)

OPCODES: Mapping[int, OpcodeSpec] = MappingProxyType({int(s.code): s for s in _SPECS})
"""Read-only mapping of opcode -> OpcodeSpec."""


def argument_spec_for(opcode: int) -> OpcodeSpec | None:
    """Return the spec for `opcode`, or None when the opcode is not catalogued."""
    return OPCODES.get(opcode)
