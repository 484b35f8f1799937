"""
oi_decode.py
============
RX helpers for the Roomba Open Interface (OI).

This module focuses ONLY on turning raw sensor bytes into typed readings:
- Decoding single-value packets (1 or 2 bytes, signed or unsigned).
- Decoding group packets (fixed concatenation of single-value packets).
- Decoding the unframed reply to Sensors (142) / Query List (149).
- Building values / stream frames back into bytes (tests, simulators).

Framing of the continuous stream (opcode 148) lives in `oi_stream.py`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Union

from construct import ConstructError

from .oi_errors import InvalidArgument, LengthMismatch
from .oi_packets import STREAM_HEADER, descriptor_for, require_descriptor


@dataclass(frozen=True, slots=True)
class DecodedReading:
    """One packet id with its decoded, sign/zero-extended integer value."""
    packet_id: int
    value: int

    @property
    def name(self) -> str:
        return require_descriptor(self.packet_id).name


@dataclass(frozen=True, slots=True)
class GroupReading:
    """
    Decoded group packet: readings in the group's member order.

    Iterating yields the member `DecodedReading`s.
    """
    packet_id: int
    readings: tuple[DecodedReading, ...]

    def __iter__(self) -> Iterator[DecodedReading]:
        return iter(self.readings)

    def __len__(self) -> int:
        return len(self.readings)

    def as_dict(self) -> dict[int, int]:
        """packet id -> value"""
        return {r.packet_id: r.value for r in self.readings}


Reading = Union[DecodedReading, GroupReading]


def decode(packet_id: int, raw: bytes) -> Reading:
    """
    Decode one sensor packet.

    Args:
        packet_id: OI packet id (single 7–58 or group 0–6, 100, 101, 106, 107).
        raw: payload bytes, without the leading packet id. Must be exactly the
            packet's width; for a group, exactly the sum of its members' widths.

    Returns:
        DecodedReading for single packets, GroupReading for groups.

    Raises:
        UnknownPacket: id not in the packet catalog.
        LengthMismatch: `raw` does not exactly cover the packet.

    Example:
        >>> decode(19, b"\\xff\\xff")
        DecodedReading(packet_id=19, value=-1)
        >>> decode(22, b"\\x10\\x00").value
        4096
    """
    d = require_descriptor(packet_id)
    raw = bytes(raw)
    if len(raw) != d.width:
        raise LengthMismatch(f"packet {packet_id} ({d.name}) bytes", d.width, len(raw))

    parsed = d.fmt.parse(raw)
    if not d.is_group:
        return DecodedReading(d.packet_id, int(parsed))

    members = [descriptor_for(m) for m in d.members]
    return GroupReading(
        d.packet_id,
        tuple(DecodedReading(m.packet_id, int(parsed[m.name])) for m in members),
    )


def decode_query_response(packet_ids: Sequence[int], raw: bytes) -> list[Reading]:
    """
    Decode the reply to a Sensors (142) or Query List (149) request.

    The robot answers with the packets' data concatenated in request order,
    without packet ids, header or checksum. `raw` must cover exactly the
    requested packets.
    """
    descriptors = [require_descriptor(pid) for pid in packet_ids]
    expected = sum(d.width for d in descriptors)
    if len(raw) != expected:
        raise LengthMismatch("query response bytes", expected, len(raw))

    out: list[Reading] = []
    pos = 0
    for d in descriptors:
        out.append(decode(d.packet_id, raw[pos:pos + d.width]))
        pos += d.width
    return out


# ============================================================
# TX side of telemetry (tests, simulators)
# ============================================================

def encode_value(packet_id: int, value: int) -> bytes:
    """
    Build the raw bytes of a single-value packet (inverse of `decode`).

    Raises:
        UnknownPacket: id not catalogued.
        InvalidArgument: group id, or value out of the packet's integer range.
    """
    d = require_descriptor(packet_id)
    if d.is_group:
        raise InvalidArgument(packet_id, 0, d.name, value, "group packets have no single value")
    try:
        return d.fmt.build(value)
    except ConstructError as exc:
        kind = "signed" if d.signed else "unsigned"
        raise InvalidArgument(
            packet_id, 0, d.name, value, f"does not fit in {8 * d.width}-bit {kind}"
        ) from exc


def checksum(data: bytes) -> int:
    """Return the byte that makes `sum(data + checksum) & 0xFF == 0`."""
    return (-sum(data)) & 0xFF


def build_stream_frame(packets: Iterable[tuple[int, int]]) -> bytes:
    """
    Build a streamed telemetry frame from (packet_id, value) pairs.

    Format:
        [19][N][packet ID 1][data...][packet ID 2][data...][checksum]

    Example:
        >>> list(build_stream_frame([(29, 549), (13, 0)]))
        [19, 5, 29, 2, 37, 13, 0, 151]
    """
    payload = bytearray()
    for pid, value in packets:
        payload.append(pid)
        payload += encode_value(pid, value)
    if len(payload) > 255:
        raise LengthMismatch("stream frame payload (max)", 255, len(payload))
    head = bytes([STREAM_HEADER, len(payload)]) + payload
    return head + bytes([checksum(head)])
