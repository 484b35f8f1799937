"""
oi_codec.py
===========
Validation and encoding of Roomba Open Interface (OI) commands (TX path).

Design philosophy:
- This module ONLY builds and checks outgoing command frames (bytes to send).
- Argument layouts and domains are defined centrally in `oi_opcodes.py`;
  every builder below goes through `encode`, so no frame leaves here unless
  each argument satisfies its ArgSpec.
- Decoding/parsing of sensor data is handled separately in `oi_decode.py`.

Wire format:
    [opcode][arg1 (hi)][arg1 lo]...
16-bit arguments are big-endian two's complement. No length prefix, no
checksum, no acknowledgment.

Usage:
    from roomba_oi.l2_oi.oi_codec import encode, encode_drive, validate
    port.write(encode_drive(200, 0))          # Drive forward, arc
    port.write(encode(Opcode.SENSORS, 7))     # Request bumps packet
    validate(b"\\x07")                         # True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .oi_errors import InvalidArgument, InvalidOpcode, LengthMismatch, OIError
from .oi_opcodes import (
    RADIUS_STRAIGHT,
    ArgSpec,
    Opcode,
    OpcodeSpec,
    argument_spec_for,
    baud_code_for,
)


@dataclass(frozen=True, slots=True)
class Command:
    """An opcode plus the integer values of its data bytes, in wire order."""
    opcode: int
    args: tuple[int, ...] = ()

    def encode(self) -> bytes:
        return encode(self.opcode, *self.args)


# ============================================================
# Core: catalog-driven encode / parse
# ============================================================

def _spec_or_raise(opcode: int) -> OpcodeSpec:
    spec = argument_spec_for(opcode)
    if spec is None:
        raise InvalidOpcode(opcode)
    return spec


def _layout(spec: OpcodeSpec, args: Sequence[int]) -> list[ArgSpec]:
    """Return one ArgSpec per supplied argument, checking argument count."""
    nfixed = len(spec.args)
    if not spec.variable:
        if len(args) != nfixed:
            raise LengthMismatch(f"{spec.name} arguments", nfixed, len(args))
        return list(spec.args)

    if len(args) < nfixed:
        raise LengthMismatch(f"{spec.name} arguments", nfixed, len(args))
    count_spec = spec.args[spec.count_index]
    count = args[spec.count_index]
    reason = count_spec.check(count)
    if reason:
        raise InvalidArgument(spec.code, spec.count_index, count_spec.name, count, reason)

    trailing = len(args) - nfixed
    per_item = len(spec.repeat)
    if trailing % per_item or trailing // per_item != count:
        raise InvalidArgument(
            spec.code, spec.count_index, count_spec.name, count,
            f"count does not match {trailing / per_item:g} supplied item(s)",
        )
    return list(spec.args) + list(spec.repeat) * count


def _check_args(spec: OpcodeSpec, layout: list[ArgSpec], args: Sequence[int]) -> None:
    for i, (arg, value) in enumerate(zip(layout, args)):
        reason = arg.check(value)
        if reason:
            raise InvalidArgument(spec.code, i, arg.name, value, reason)


def encode(opcode: int, *args: int) -> bytes:
    """
    Build a command frame after checking every argument against the opcode catalog.

    Args:
        opcode: OI command code.
        *args: argument values in wire order. Variable-length commands take
            their count argument followed by the items, e.g.
            `encode(Opcode.STREAM, 2, 29, 13)`.

    Returns:
        bytes: `[opcode]` followed by each argument, high byte first.

    Raises:
        InvalidOpcode: opcode not in the catalog.
        LengthMismatch: wrong number of arguments.
        InvalidArgument: a value is outside its range / enumeration, or a
            count prefix disagrees with the items supplied.

    Example:
        >>> encode(Opcode.DRIVE, -200, 500)
        b'\\x89\\xff8\\x01\\xf4'
    """
    spec = _spec_or_raise(opcode)
    layout = _layout(spec, args)
    _check_args(spec, layout, args)
    return bytes([spec.code]) + b"".join(a.pack(v) for a, v in zip(layout, args))


def parse_command(frame: bytes) -> Command:
    """
    Split a raw outbound frame into a `Command`, checking structure and ranges.

    Raises the same errors as `encode`; LengthMismatch covers frames whose
    byte count does not fit the opcode's layout.
    """
    if not frame:
        raise LengthMismatch("command frame", 1, 0)
    spec = _spec_or_raise(frame[0])
    data = bytes(frame[1:])

    if len(data) < spec.fixed_bytes or (not spec.variable and len(data) != spec.fixed_bytes):
        raise LengthMismatch(f"{spec.name} data bytes", spec.fixed_bytes, len(data))

    layout = list(spec.args)
    if spec.variable:
        # the count byte is always a 1-byte unsigned field
        count_offset = sum(a.width for a in spec.args[:spec.count_index])
        count = data[count_offset]
        expected = spec.data_bytes(count)
        if len(data) != expected:
            raise LengthMismatch(f"{spec.name} data bytes", expected, len(data))
        layout += list(spec.repeat) * count

    args = []
    pos = 0
    for arg in layout:
        args.append(arg.unpack(data[pos:pos + arg.width]))
        pos += arg.width
    _check_args(spec, layout, args)
    return Command(spec.code, tuple(args))


def check_frame(frame: bytes) -> None:
    """Raise an OIError describing why `frame` is not a valid command."""
    parse_command(frame)


def validate(frame: bytes) -> bool:
    """
    Return True when `frame` is a structurally valid, in-range command.

    Nothing is transmitted and nothing is raised for bad input.

    Example:
        >>> validate(bytes([137, 0x00, 0xC8, 0x01, 0xF4]))   # velocity 200, radius 500
        True
        >>> validate(bytes([137, 0x01, 0xF5, 0x01, 0xF4]))   # velocity 501
        False
    """
    try:
        parse_command(frame)
    except OIError:
        return False
    return True


# ============================================================
# Zero-data commands
# ============================================================

def encode_zero_data(opcode: int) -> bytes:
    """Return a one-byte command frame for zero-data opcodes."""
    return encode(opcode)

def encode_reset() -> bytes:   return encode_zero_data(Opcode.RESET)
def encode_start() -> bytes:   return encode_zero_data(Opcode.START)
def encode_control() -> bytes: return encode_zero_data(Opcode.CONTROL)
def encode_safe() -> bytes:    return encode_zero_data(Opcode.SAFE)
def encode_full() -> bytes:    return encode_zero_data(Opcode.FULL)
def encode_power() -> bytes:   return encode_zero_data(Opcode.POWER)
def encode_spot() -> bytes:    return encode_zero_data(Opcode.SPOT)
def encode_clean() -> bytes:   return encode_zero_data(Opcode.CLEAN)
def encode_max() -> bytes:     return encode_zero_data(Opcode.MAX)
def encode_dock() -> bytes:    return encode_zero_data(Opcode.DOCK)
def encode_stop() -> bytes:    return encode_zero_data(Opcode.STOP)


def encode_baud(bps: int) -> bytes:
    """
    BAUD (opcode 129) for a bit rate such as 115200.

    Raises InvalidArgument if the OI has no code for `bps`.
    """
    code = baud_code_for(bps)
    if code is None:
        raise InvalidArgument(Opcode.BAUD, 0, "baud_code", bps, "unsupported bit rate")
    return encode(Opcode.BAUD, code)


# ============================================================
# Movement Commands
# ============================================================

def encode_drive(velocity_mm_s: int, radius_mm: int = RADIUS_STRAIGHT) -> bytes:
    """
    Build a DRIVE command frame (opcode 137).

    Frame Format
    ------------
        [137][Velocity hi][Velocity lo][Radius hi][Radius lo]

    Parameters
    ----------
    velocity_mm_s : int
        Average wheel velocity, -500..+500 mm/s (negative = backward).
    radius_mm : int
        Turning radius, -2000..+2000 mm; positive turns left. Special values
        (raw pattern or signed reading both accepted):
          • straight: RADIUS_STRAIGHT (0x7FFF) or RADIUS_STRAIGHT_ALT (0x8000 / -32768)
          • turn in place clockwise: RADIUS_TURN_CW (0xFFFF / -1)
          • turn in place counter-clockwise: RADIUS_TURN_CCW (0x0001)

    Examples
    --------
        >>> encode_drive(-200, 500).hex(" ")
        '89 ff 38 01 f4'
        >>> encode_drive(200).hex(" ")
        '89 00 c8 7f ff'
        >>> encode_drive(100, -1).hex(" ")
        '89 00 64 ff ff'
    """
    return encode(Opcode.DRIVE, velocity_mm_s, radius_mm)


def encode_drive_direct(right_mm_s: int, left_mm_s: int) -> bytes:
    """
    Build a DRIVE_DIRECT command frame (opcode 145).

    Format: [145][Right hi][Right lo][Left hi][Left lo], each -500..+500 mm/s.

    Example:
        >>> encode_drive_direct(200, -200).hex(" ")
        '91 00 c8 ff 38'
    """
    return encode(Opcode.DRIVE_DIRECT, right_mm_s, left_mm_s)


def encode_drive_pwm(right_pwm: int, left_pwm: int) -> bytes:
    """
    Build a DRIVE_PWM command frame (opcode 146).

    Format: [146][Right hi][Right lo][Left hi][Left lo], each -255..+255.
    PWM commands motor effort, not closed-loop speed.
    """
    return encode(Opcode.DRIVE_PWM, right_pwm, left_pwm)


def encode_motors(
    side_on: bool,
    vacuum_on: bool,
    main_on: bool,
    *,
    side_clockwise: bool = False,
    main_outward: bool = False,
) -> bytes:
    """
    Build a MOTORS command frame (opcode 138).

    Bits:
      - 0: side brush, 1: vacuum, 2: main brush (1 = on @ 100% duty).
      - 3: side brush clockwise (default is counter-clockwise).
      - 4: main brush outward (default is inward).
    Example: [138][13] → main brush on (inward), side brush on, clockwise.
    """
    bits = (
        (1 if side_on else 0)
        | ((1 if vacuum_on else 0) << 1)
        | ((1 if main_on else 0) << 2)
        | ((1 if side_clockwise else 0) << 3)
        | ((1 if main_outward else 0) << 4)
    )
    return encode(Opcode.MOTORS, bits)


def encode_pwm_motors(main_pwm: int, side_pwm: int, vacuum_pwm: int) -> bytes:
    """
    PWM MOTORS (opcode 144)
    Format: [144][main][side][vacuum]

    Ranges: main and side -127..+127 (negative reverses), vacuum 0..127.
    """
    return encode(Opcode.PWM_MOTORS, main_pwm, side_pwm, vacuum_pwm)


# ============================================================
# LEDs, Buttons and Audio
# ============================================================

def encode_leds(
    debris: bool,
    spot: bool,
    dock: bool,
    check_robot: bool,
    power_color: int,
    power_intensity: int,
) -> bytes:
    """
    Build a LEDS command frame (opcode 139).

    Format:
        [139][led_bits][power_color][power_intensity]

    power_color: 0 = green .. 255 = red. power_intensity: 0 = off .. 255.

    Example:
        >>> encode_leds(False, False, True, True, 128, 255)
        b'\\x8b\\x0c\\x80\\xff'
    """
    bits = (
        (1 if debris else 0)
        | ((1 if spot else 0) << 1)
        | ((1 if dock else 0) << 2)
        | ((1 if check_robot else 0) << 3)
    )
    return encode(Opcode.LEDS, bits, power_color, power_intensity)


def encode_digit_leds_ascii(text: str) -> bytes:
    """DIGIT LEDS ASCII (opcode 164): exactly four printable ASCII characters."""
    if len(text) != 4:
        raise LengthMismatch("digit_leds_ascii characters", 4, len(text))
    return encode(Opcode.DIGIT_LEDS_ASCII, *(ord(c) for c in text))


def encode_buttons(
    *,
    clean: bool = False,
    spot: bool = False,
    dock: bool = False,
    minute: bool = False,
    hour: bool = False,
    day: bool = False,
    schedule: bool = False,
    clock: bool = False,
) -> bytes:
    """BUTTONS (opcode 165): push the selected buttons for 1/6 s."""
    pressed = (clean, spot, dock, minute, hour, day, schedule, clock)
    bits = sum(1 << i for i, on in enumerate(pressed) if on)
    return encode(Opcode.BUTTONS, bits)


def encode_song(song_number: int, notes: Sequence[tuple[int, int]]) -> bytes:
    """
    Build a SONG definition frame (opcode 140).

    Args:
        song_number (int): Song slot (0–4).
        notes: 1–16 (note, duration) pairs. Notes outside MIDI 31–127 are
            played as rests; duration is in 1/64 s steps.

    Example:
        >>> encode_song(0, [(60, 64)])
        b'\\x8c\\x00\\x01<@'
    """
    body = [v for pair in notes for v in pair]
    return encode(Opcode.SONG, song_number, len(notes), *body)


def encode_play(song_number: int) -> bytes:
    """PLAY (opcode 141): play a previously defined song (0–4)."""
    return encode(Opcode.PLAY, song_number)


# ============================================================
# Sensor Query Commands
# ============================================================

def encode_sensors(packet_id: int) -> bytes:
    """
    Build a SENSORS command frame (opcode 142).

    Example:
        >>> encode_sensors(7)
        b'\\x8e\\x07'
    """
    return encode(Opcode.SENSORS, packet_id)


def encode_query_list(packet_ids: Iterable[int]) -> bytes:
    """
    Build a QUERY_LIST command frame (opcode 149).

    Format:
        [149][N][id1][id2]...[idN]

    Example:
        >>> encode_query_list([7, 13])
        b'\\x95\\x02\\x07\\r'
    """
    ids = list(packet_ids)
    return encode(Opcode.QUERY_LIST, len(ids), *ids)


def encode_stream(packet_ids: Iterable[int]) -> bytes:
    """
    Build a STREAM command frame (opcode 148).

    Format:
        [148][N][id1][id2]...[idN]

    Example:
        >>> encode_stream([29, 13])
        b'\\x94\\x02\\x1d\\r'
    """
    ids = list(packet_ids)
    return encode(Opcode.STREAM, len(ids), *ids)


def encode_stream_ctrl(state: int) -> bytes:
    """
    STREAM control (opcode 150).
    state: 0 = pause, 1 = resume
    """
    return encode(Opcode.STREAM_CTRL, state)

def encode_pause_stream() -> bytes:  return encode_stream_ctrl(0)
def encode_resume_stream() -> bytes: return encode_stream_ctrl(1)


# ============================================================
# Clock and Schedule
# ============================================================

def encode_set_day_time(day: int, hour: int, minute: int) -> bytes:
    """SET DAY/TIME (opcode 168). day: 0 = Sunday .. 6 = Saturday; 24h clock."""
    return encode(Opcode.SET_DAY_TIME, day, hour, minute)


def encode_schedule(times: Mapping[int, tuple[int, int]]) -> bytes:
    """
    SCHEDULE (opcode 167).

    Args:
        times: day (0 = Sunday .. 6 = Saturday) -> (hour, minute). Days not
            present are unscheduled; an empty mapping disables scheduling.

    Example: clean Wednesdays 15:00 and Fridays 10:36:
        >>> list(encode_schedule({3: (15, 0), 5: (10, 36)}))
        [167, 40, 0, 0, 0, 0, 0, 0, 15, 0, 0, 0, 10, 36, 0, 0]
    """
    days = 0
    slots = [0] * 14
    for day, (hour, minute) in times.items():
        if not isinstance(day, int) or not 0 <= day <= 6:
            raise InvalidArgument(Opcode.SCHEDULE, 0, "days", day, "day must be 0–6")
        days |= 1 << day
        slots[2 * day] = hour
        slots[2 * day + 1] = minute
    return encode(Opcode.SCHEDULE, days, *slots)
