"""
oi_stream.py
============
Resumable parser for the continuous sensor stream (reply to opcode 148).

Frame format:
    [19][N][packet ID 1][data...][packet ID 2][data...][checksum]

- N counts the bytes between the length byte and the checksum.
- The low byte of the sum of every frame byte, checksum included, is 0.
- Packets inside the payload carry no length; each width comes from the
  packet catalog.

The parser is a four-state machine fed with arbitrary chunks:

    SEEK_HEADER → READ_LENGTH → READ_PAYLOAD → READ_CHECKSUM → SEEK_HEADER

A frame that fails the checksum, ends mid-packet or names an unknown packet
is dropped as a whole and parsing continues with the next header byte.
Nothing is raised to the caller for stream errors; they are logged and
counted in `ParserStats`.

Threading: one parser per channel, fed from a single thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .oi_decode import Reading, decode
from .oi_errors import ChecksumMismatch, TruncatedFrame, UnknownPacket
from .oi_packets import STREAM_HEADER, descriptor_for

log = logging.getLogger(__name__)


class ParseState(Enum):
    SEEK_HEADER = "seek_header"
    READ_LENGTH = "read_length"
    READ_PAYLOAD = "read_payload"
    READ_CHECKSUM = "read_checksum"


@dataclass(frozen=True, slots=True)
class StreamFrame:
    """An accepted frame split into (packet_id, raw bytes) pairs."""
    packets: tuple[tuple[int, bytes], ...]


@dataclass(slots=True)
class ParserStats:
    """Running counters; mutated only by the owning parser."""
    frames_ok: int = 0
    checksum_errors: int = 0
    truncated_frames: int = 0
    unknown_packet_frames: int = 0
    bytes_skipped: int = 0


def split_payload(payload: bytes) -> tuple[tuple[int, bytes], ...]:
    """
    Split a frame payload into (packet_id, raw bytes) pairs.

    Raises:
        UnknownPacket: a packet id with no catalogued width.
        TruncatedFrame: the payload ends before a packet's width is satisfied.
    """
    out = []
    i = 0
    while i < len(payload):
        pid = payload[i]
        d = descriptor_for(pid)
        if d is None:
            raise UnknownPacket(pid)
        start = i + 1
        available = len(payload) - start
        if available < d.width:
            raise TruncatedFrame(pid, d.width, available)
        out.append((pid, bytes(payload[start:start + d.width])))
        i = start + d.width
    return tuple(out)


class StreamParser:
    """
    Stateful frame parser for one telemetry channel.

    Usage:
        parser = StreamParser()
        for chunk in chunks:              # any chunk sizes
            for reading in parser.feed(chunk):
                handle(reading)
    """

    def __init__(self) -> None:
        self._state = ParseState.SEEK_HEADER
        self._length = 0
        self._payload = bytearray()
        self.stats = ParserStats()

    @property
    def state(self) -> ParseState:
        return self._state

    def reset(self) -> None:
        """Drop any partial frame and wait for the next header byte."""
        self._state = ParseState.SEEK_HEADER
        self._length = 0
        self._payload.clear()

    # ---- public API ----

    def feed_frames(self, data: bytes) -> list[StreamFrame]:
        """Consume `data`; return frames completed and accepted by this call."""
        frames: list[StreamFrame] = []
        for b in data:
            frame = self._step(b)
            if frame is not None:
                frames.append(frame)
        return frames

    def feed(self, data: bytes) -> list[Reading]:
        """Consume `data`; return decoded readings of frames completed by this call."""
        readings: list[Reading] = []
        for frame in self.feed_frames(data):
            for pid, raw in frame.packets:
                readings.append(decode(pid, raw))
        return readings

    # ---- state machine ----

    def _step(self, b: int) -> StreamFrame | None:
        state = self._state

        if state is ParseState.SEEK_HEADER:
            if b == STREAM_HEADER:
                self._state = ParseState.READ_LENGTH
            else:
                self.stats.bytes_skipped += 1
            return None

        if state is ParseState.READ_LENGTH:
            self._length = b
            self._payload.clear()
            self._state = ParseState.READ_PAYLOAD if b else ParseState.READ_CHECKSUM
            return None

        if state is ParseState.READ_PAYLOAD:
            self._payload.append(b)
            if len(self._payload) == self._length:
                self._state = ParseState.READ_CHECKSUM
            return None

        # READ_CHECKSUM: whatever happens, the next byte starts a new search
        self._state = ParseState.SEEK_HEADER
        try:
            return self._accept(b)
        except ChecksumMismatch as exc:
            self.stats.checksum_errors += 1
            log.warning("Stream frame dropped (len=%d): %s", self._length, exc)
        except TruncatedFrame as exc:
            self.stats.truncated_frames += 1
            log.warning("Stream frame dropped (len=%d): %s", self._length, exc)
        except UnknownPacket as exc:
            self.stats.unknown_packet_frames += 1
            log.warning("Stream frame dropped (len=%d): %s", self._length, exc)
        finally:
            self._payload.clear()
        return None

    def _accept(self, checksum_byte: int) -> StreamFrame:
        total = (STREAM_HEADER + self._length + sum(self._payload) + checksum_byte) & 0xFF
        if total != 0:
            raise ChecksumMismatch(total)
        frame = StreamFrame(split_payload(self._payload))
        self.stats.frames_ok += 1
        log.debug("Stream frame ok: %d packet(s)", len(frame.packets))
        return frame
