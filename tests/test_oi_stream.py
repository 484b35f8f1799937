import logging

import pytest

from roomba_oi.l2_oi.oi_decode import DecodedReading, GroupReading, checksum
from roomba_oi.l2_oi.oi_errors import TruncatedFrame, UnknownPacket
from roomba_oi.l2_oi.oi_stream import ParseState, StreamFrame, StreamParser, split_payload

# cliff_front_left_signal (29) = 549, virtual_wall (13) = 0
FRAME = bytes([19, 5, 29, 0x02, 0x25, 13, 0, 151])
FRAME_READINGS = [DecodedReading(29, 549), DecodedReading(13, 0)]


def _frame(payload):
    head = bytes([19, len(payload)]) + bytes(payload)
    return head + bytes([checksum(head)])


def _corrupt(frame):
    return frame[:-1] + bytes([frame[-1] ^ 0xFF])


def test_single_frame():
    parser = StreamParser()
    assert parser.feed(FRAME) == FRAME_READINGS
    assert parser.stats.frames_ok == 1
    assert parser.state is ParseState.SEEK_HEADER


def test_reference_document_frame():
    # [19][5][29][2][25][13][0][163] → 29 = 0x0219, 13 = 0
    parser = StreamParser()
    out = parser.feed(bytes([19, 5, 29, 2, 25, 13, 0, 163]))
    assert out == [DecodedReading(29, 537), DecodedReading(13, 0)]


def test_feed_frames_returns_raw_packets():
    parser = StreamParser()
    assert parser.feed_frames(FRAME) == [StreamFrame(((29, b"\x02\x25"), (13, b"\x00")))]


def test_bad_checksum_is_dropped():
    parser = StreamParser()
    assert parser.feed(_corrupt(FRAME)) == []
    assert parser.stats.checksum_errors == 1
    assert parser.stats.frames_ok == 0


def test_corrupted_then_valid_yields_only_valid():
    parser = StreamParser()
    assert parser.feed(_corrupt(FRAME) + FRAME) == FRAME_READINGS


def test_leading_garbage_is_skipped():
    parser = StreamParser()
    assert parser.feed(bytes([0x00, 0xAA, 0x42]) + FRAME) == FRAME_READINGS
    assert parser.stats.bytes_skipped == 3


def test_chunking_does_not_change_output():
    group = _frame([2, 0x82, 0x05, 0xFF, 0x9C, 0x00, 0x5A])
    data = bytes([0x01, 0x02]) + FRAME + _corrupt(FRAME) + group + FRAME

    whole = StreamParser().feed(data)

    bytewise = []
    parser = StreamParser()
    for b in data:
        bytewise.extend(parser.feed(bytes([b])))

    chunked = []
    parser = StreamParser()
    for i in range(0, len(data), 5):
        chunked.extend(parser.feed(data[i:i + 5]))

    assert whole == bytewise == chunked
    assert len(whole) == 5  # 2 + group + 2


def test_partial_frame_resumes():
    parser = StreamParser()
    assert parser.feed(FRAME[:3]) == []
    assert parser.state is ParseState.READ_PAYLOAD
    assert parser.feed(FRAME[3:7]) == []
    assert parser.state is ParseState.READ_CHECKSUM
    assert parser.feed(FRAME[7:]) == FRAME_READINGS


def test_reset_drops_partial_frame():
    parser = StreamParser()
    parser.feed(FRAME[:4])
    parser.reset()
    assert parser.state is ParseState.SEEK_HEADER
    assert parser.feed(FRAME) == FRAME_READINGS


def test_group_packet_in_stream():
    parser = StreamParser()
    out = parser.feed(_frame([2, 0x82, 0x05, 0xFF, 0x9C, 0x00, 0x5A]))
    assert len(out) == 1
    assert isinstance(out[0], GroupReading)
    assert out[0].as_dict() == {17: 130, 18: 5, 19: -100, 20: 90}


def test_truncated_payload_drops_frame(caplog):
    parser = StreamParser()
    # distance (19) needs 2 bytes, only 1 present
    with caplog.at_level(logging.WARNING, logger="roomba_oi.l2_oi.oi_stream"):
        assert parser.feed(_frame([19, 0x01]) + FRAME) == FRAME_READINGS
    assert parser.stats.truncated_frames == 1
    assert "dropped" in caplog.text


def test_unknown_packet_drops_frame():
    parser = StreamParser()
    assert parser.feed(_frame([99, 0x00]) + FRAME) == FRAME_READINGS
    assert parser.stats.unknown_packet_frames == 1


def test_empty_frame():
    parser = StreamParser()
    assert parser.feed_frames(bytes([19, 0, 237])) == [StreamFrame(())]
    assert parser.stats.frames_ok == 1
    assert parser.feed(bytes([19, 0, 237])) == []


def test_header_byte_inside_payload():
    # distance = 19 (0x0013): payload contains the header value
    frame = _frame([19, 0x00, 0x13])
    parser = StreamParser()
    assert parser.feed(frame) == [DecodedReading(19, 19)]


def test_split_payload():
    assert split_payload(bytes([7, 1, 22, 0x10, 0x00])) == ((7, b"\x01"), (22, b"\x10\x00"))
    assert split_payload(b"") == ()
    with pytest.raises(TruncatedFrame):
        split_payload(bytes([22, 0x10]))
    with pytest.raises(UnknownPacket):
        split_payload(bytes([0xFF]))
