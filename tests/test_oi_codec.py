import pytest

from roomba_oi.l2_oi.oi_codec import (
    Command,
    check_frame,
    encode,
    encode_baud,
    encode_buttons,
    encode_digit_leds_ascii,
    encode_drive,
    encode_drive_direct,
    encode_drive_pwm,
    encode_motors,
    encode_pause_stream,
    encode_pwm_motors,
    encode_query_list,
    encode_resume_stream,
    encode_schedule,
    encode_sensors,
    encode_set_day_time,
    encode_stream,
    parse_command,
    validate,
)
from roomba_oi.l2_oi.oi_errors import InvalidArgument, InvalidOpcode, LengthMismatch
from roomba_oi.l2_oi.oi_opcodes import (
    OPCODES,
    RADIUS_STRAIGHT_ALT,
    RADIUS_TURN_CW,
    Opcode,
)

ZERO_DATA_OPCODES = sorted(
    code for code, spec in OPCODES.items() if not spec.args and not spec.variable
)


@pytest.mark.parametrize("opcode", ZERO_DATA_OPCODES)
def test_zero_data_opcodes_take_no_bytes(opcode):
    assert validate(bytes([opcode])) is True
    assert validate(bytes([opcode, 0])) is False
    assert validate(bytes([opcode, 0xFF])) is False


def test_reset_is_valid_alone():
    assert validate(bytes([7])) is True


def test_validate_drive_in_range():
    # velocity=200, radius=500
    assert validate(bytes([137, 0x00, 0xC8, 0x01, 0xF4])) is True


def test_validate_drive_velocity_out_of_range():
    # velocity=501
    assert validate(bytes([137, 0x01, 0xF5, 0x01, 0xF4])) is False


def test_validate_drive_radius_sentinels_and_bounds():
    assert validate(bytes([137, 0x00, 0xC8, 0x7F, 0xFF])) is True    # straight
    assert validate(bytes([137, 0x00, 0xC8, 0x80, 0x00])) is True    # straight (alt)
    assert validate(bytes([137, 0x00, 0xC8, 0xF8, 0x30])) is True    # -2000
    assert validate(bytes([137, 0x00, 0xC8, 0x07, 0xD1])) is False   # 2001
    assert validate(bytes([137, 0x00, 0xC8, 0x7F, 0xFE])) is False   # 32766


def test_validate_drive_wrong_length():
    assert validate(bytes([137, 0x00, 0xC8, 0x01])) is False
    assert validate(bytes([137, 0x00, 0xC8, 0x01, 0xF4, 0x00])) is False


def test_validate_unknown_or_empty():
    assert validate(b"") is False
    assert validate(bytes([147])) is False
    assert validate(bytes([0])) is False


def test_encode_drive_reference_example():
    # reverse @ -200 mm/s, radius 500 mm
    assert encode(Opcode.DRIVE, -200, 500) == bytes([137, 0xFF, 0x38, 0x01, 0xF4])
    assert encode_drive(-200, 500) == bytes([137, 0xFF, 0x38, 0x01, 0xF4])


def test_encode_drive_special_radii():
    assert encode_drive(200) == bytes([137, 0x00, 0xC8, 0x7F, 0xFF])
    # 0x8000 accepted both as raw pattern and as its signed reading
    assert encode_drive(200, RADIUS_STRAIGHT_ALT) == bytes([137, 0x00, 0xC8, 0x80, 0x00])
    assert encode_drive(200, -32768) == bytes([137, 0x00, 0xC8, 0x80, 0x00])
    assert encode_drive(100, RADIUS_TURN_CW) == bytes([137, 0x00, 0x64, 0xFF, 0xFF])
    assert encode_drive(100, -1) == bytes([137, 0x00, 0x64, 0xFF, 0xFF])


def test_encode_drive_rejects_out_of_range_radius():
    with pytest.raises(InvalidArgument) as ei:
        encode_drive(100, 2001)
    err = ei.value
    assert err.opcode == Opcode.DRIVE
    assert err.index == 1
    assert err.name == "radius"
    assert err.value == 2001
    assert "[-2000, 2000]" in err.reason


def test_encode_drive_rejects_velocity():
    with pytest.raises(InvalidArgument) as ei:
        encode_drive(-501, 0)
    assert ei.value.name == "velocity"


def test_invalid_argument_is_value_error():
    # callers written against plain ValueError keep working
    with pytest.raises(ValueError):
        encode_drive(9999, 0)


def test_encode_unknown_opcode():
    with pytest.raises(InvalidOpcode):
        encode(147)


def test_encode_wrong_argument_count():
    with pytest.raises(LengthMismatch):
        encode(Opcode.DRIVE, 100)
    with pytest.raises(LengthMismatch):
        encode(Opcode.START, 1)


def test_encode_rejects_non_integers():
    with pytest.raises(InvalidArgument) as ei:
        encode(Opcode.PLAY, "0")
    assert ei.value.reason == "not an integer"


def test_drive_direct_and_pwm():
    assert encode_drive_direct(200, -200) == bytes([145, 0x00, 0xC8, 0xFF, 0x38])
    assert encode_drive_pwm(-255, 255) == bytes([146, 0xFF, 0x01, 0x00, 0xFF])
    with pytest.raises(InvalidArgument):
        encode_drive_direct(0, 501)
    with pytest.raises(InvalidArgument):
        encode_drive_pwm(256, 0)


def test_pwm_motors_signed_bytes():
    assert encode_pwm_motors(-1, 127, 127) == bytes([144, 0xFF, 0x7F, 0x7F])
    with pytest.raises(InvalidArgument):
        encode_pwm_motors(0, 0, 128)
    with pytest.raises(InvalidArgument):
        encode_pwm_motors(-128, 0, 0)


def test_motors_reference_example():
    # main brush inward + side brush clockwise → [138][13]
    assert encode_motors(side_on=True, vacuum_on=False, main_on=True,
                         side_clockwise=True) == bytes([138, 13])


def test_sensors_and_stream_commands():
    assert encode_sensors(100) == bytes([142, 100])
    assert encode_stream([29, 13]) == bytes([148, 2, 29, 13])
    assert encode_query_list([7, 13]) == bytes([149, 2, 7, 13])
    assert encode_pause_stream() == bytes([150, 0])
    assert encode_resume_stream() == bytes([150, 1])


def test_stream_rejects_unknown_packet_ids():
    with pytest.raises(InvalidArgument) as ei:
        encode_stream([7, 99])
    assert ei.value.index == 2
    with pytest.raises(InvalidArgument):
        encode_sensors(59)


def test_stream_rejects_empty_list():
    with pytest.raises(InvalidArgument) as ei:
        encode_stream([])
    assert ei.value.name == "packet_count"


def test_stream_count_prefix_must_match():
    with pytest.raises(InvalidArgument):
        encode(Opcode.STREAM, 3, 29, 13)
    assert validate(bytes([148, 2, 29, 13])) is True
    assert validate(bytes([148, 2, 29])) is False
    assert validate(bytes([148, 0])) is False


def test_baud():
    assert encode_baud(115200) == bytes([129, 11])
    assert encode_baud(19200) == bytes([129, 7])
    with pytest.raises(InvalidArgument):
        encode_baud(12345)
    assert validate(bytes([129, 12])) is False


def test_schedule_reference_example():
    # Wednesdays 15:00 and Fridays 10:36
    assert list(encode_schedule({3: (15, 0), 5: (10, 36)})) == [
        167, 40, 0, 0, 0, 0, 0, 0, 15, 0, 0, 0, 10, 36, 0, 0,
    ]
    # disable scheduling
    assert encode_schedule({}) == bytes([167] + [0] * 15)
    with pytest.raises(InvalidArgument):
        encode_schedule({1: (24, 0)})
    with pytest.raises(InvalidArgument):
        encode_schedule({7: (1, 0)})


def test_set_day_time():
    assert encode_set_day_time(3, 15, 30) == bytes([168, 3, 15, 30])
    with pytest.raises(InvalidArgument):
        encode_set_day_time(7, 0, 0)
    with pytest.raises(InvalidArgument):
        encode_set_day_time(0, 0, 60)


def test_digit_leds_and_buttons():
    assert encode_digit_leds_ascii("ABCD") == bytes([164, 65, 66, 67, 68])
    with pytest.raises(LengthMismatch):
        encode_digit_leds_ascii("AB")
    assert encode_buttons(clean=True, dock=True) == bytes([165, 0b101])


def test_parse_command_round_trip():
    frame = bytes([137, 0xFF, 0x38, 0x01, 0xF4])
    cmd = parse_command(frame)
    assert cmd == Command(Opcode.DRIVE, (-200, 500))
    assert cmd.encode() == frame

    song = parse_command(bytes([140, 1, 2, 60, 32, 62, 32]))
    assert song.args == (1, 2, 60, 32, 62, 32)


def test_check_frame_raises_specific_errors():
    with pytest.raises(InvalidOpcode):
        check_frame(bytes([200]))
    with pytest.raises(LengthMismatch):
        check_frame(bytes([137, 0]))
    with pytest.raises(InvalidArgument):
        check_frame(bytes([150, 2]))


def test_encode_rejects_booleans():
    # True would otherwise go out as velocity 1
    with pytest.raises(InvalidArgument) as ei:
        encode(Opcode.DRIVE, True, 500)
    assert ei.value.name == "velocity"
    assert ei.value.reason == "not an integer"
    with pytest.raises(InvalidArgument):
        encode_sensors(False)
