import pytest

from roomba_oi.l2_oi.oi_decode import DecodedReading, decode
from roomba_oi.l2_oi.oi_errors import UnknownPacket
from roomba_oi.l2_oi.oi_fields import interpret


def test_bumps_and_wheel_drops():
    assert interpret(DecodedReading(7, 0b0101)) == {
        "wheel_drop_left": False,
        "wheel_drop_right": True,
        "bump_left": False,
        "bump_right": True,
    }


def test_overcurrents():
    assert interpret(DecodedReading(14, 0b11101)) == {
        "left_wheel": True,
        "right_wheel": True,
        "main_brush": True,
        "side_brush": True,
    }
    assert not any(interpret(DecodedReading(14, 0)).values())


def test_buttons():
    fields = interpret(DecodedReading(18, 0x81))
    assert fields["clean"] is True
    assert fields["clock"] is True
    assert sum(fields.values()) == 2


def test_light_bumper():
    fields = interpret(DecodedReading(45, 0b100001))
    assert fields["left"] and fields["right"]
    assert not fields["center_left"]


def test_enumerations():
    assert interpret(DecodedReading(35, 2)) == {"oi_mode": "SAFE"}
    assert interpret(DecodedReading(21, 5)) == {"charging_state": "FAULT"}
    assert interpret(DecodedReading(34, 2)) == {"home_base": True, "internal_charger": False}
    # unknown codes pass through as integers
    assert interpret(DecodedReading(35, 9)) == {"oi_mode": 9}


def test_plain_values():
    assert interpret(DecodedReading(22, 4096)) == {"voltage": 4096}
    assert interpret(DecodedReading(19, -1)) == {"distance": -1}


def test_group_flattened():
    fields = interpret(decode(1, bytes([0b0001, 1, 0, 0, 0, 0, 0, 0, 0, 0])))
    assert fields["bump_right"] is True
    assert fields["wall"] == 1
    assert fields["dirt_detect"] == 0
    assert "unused_16" in fields


def test_uncatalogued_reading_raises_unknown_packet():
    with pytest.raises(UnknownPacket):
        interpret(DecodedReading(99, 0))
