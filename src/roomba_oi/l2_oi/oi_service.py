"""
oi_service.py
=============
Thin service layer binding the OI codec to a byte transport.

This class wraps:
- L1 transport (`SerialPort`) as byte sink and byte source.
- L2 codec (`oi_codec`) to validate and build outgoing frames (TX).
- L2 stream parser (`oi_stream`) to turn incoming bytes into readings (RX).

Design:
- TX is synchronous: `send()` encodes first, so an invalid command raises
  before a single byte is written. No retries, no acknowledgments.
- RX runs on the transport's reader thread, which is the only thread that
  touches the parser (one parser per channel).

Usage:
    from roomba_oi.l1_drivers.pyserial_port import PySerialPort
    from roomba_oi.l2_oi.oi_service import OIService

    svc = OIService(PySerialPort("/dev/ttyUSB0"), on_reading=print)
    svc.open()
    svc.start()
    svc.safe()
    svc.start_stream([7, 19, 20])
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from roomba_oi.l1_drivers.serial_port import SerialPort
from . import oi_codec
from .oi_decode import GroupReading, Reading
from .oi_opcodes import RADIUS_STRAIGHT
from .oi_stream import ParserStats, StreamParser

ReadingCallback = Callable[[Reading], None]

log = logging.getLogger(__name__)


class OIService:
    """
    High-level handle for one robot link.
    """

    def __init__(self, port: SerialPort, *, on_reading: Optional[ReadingCallback] = None) -> None:
        self._port = port
        self._parser = StreamParser()
        self._on_reading = on_reading
        self._latest: dict[int, Reading] = {}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    def open(self) -> None:
        """Register the RX handler and open the transport."""
        self._port.set_reader(self._on_serial_bytes)
        self._port.open()

    def close(self) -> None:
        """Unregister the RX handler and close the transport."""
        self._port.set_reader(None)
        self._port.close()

    def wake(self, duration: Optional[float] = None) -> None:
        """
        Run the transport's wake sequence (BRC pulse); send START afterwards.
        With no `duration` the transport's configured pulse length is used.
        """
        self._port.pulse_wakeup(duration)

    # -------------------------------------------------------------------------
    # TX
    # -------------------------------------------------------------------------
    def send(self, opcode: int, *args: int) -> bytes:
        """Encode and write one command; returns the bytes written."""
        return self.send_frame(oi_codec.encode(opcode, *args))

    def send_frame(self, frame: bytes) -> bytes:
        """Write a pre-built frame after checking it against the catalog."""
        oi_codec.check_frame(frame)
        self._port.write(frame)
        return frame

    def reset(self) -> None:        self.send_frame(oi_codec.encode_reset())
    def start(self) -> None:        self.send_frame(oi_codec.encode_start())
    def safe(self) -> None:         self.send_frame(oi_codec.encode_safe())
    def full(self) -> None:         self.send_frame(oi_codec.encode_full())
    def dock(self) -> None:         self.send_frame(oi_codec.encode_dock())
    def power_off(self) -> None:    self.send_frame(oi_codec.encode_power())
    def stop(self) -> None:         self.send_frame(oi_codec.encode_stop())

    def drive(self, velocity: int, radius: int = RADIUS_STRAIGHT) -> None:
        self.send_frame(oi_codec.encode_drive(velocity, radius))

    def drive_direct(self, right: int, left: int) -> None:
        self.send_frame(oi_codec.encode_drive_direct(right, left))

    def drive_pwm(self, right_pwm: int, left_pwm: int) -> None:
        self.send_frame(oi_codec.encode_drive_pwm(right_pwm, left_pwm))

    def start_stream(self, packet_ids: Iterable[int]) -> None:
        """
        Start continuous sensor streaming (OI opcode 148: STREAM).
        Frames arrive every 15 ms and are delivered through `on_reading`.
        """
        self.send_frame(oi_codec.encode_stream(packet_ids))

    def pause_stream(self) -> None:
        """Pause streaming without clearing the packet list (opcode 150, 0)."""
        self.send_frame(oi_codec.encode_pause_stream())

    def resume_stream(self) -> None:
        """Resume streaming with the last packet list (opcode 150, 1)."""
        self.send_frame(oi_codec.encode_resume_stream())

    # -------------------------------------------------------------------------
    # RX
    # -------------------------------------------------------------------------
    def set_on_reading(self, cb: Optional[ReadingCallback]) -> None:
        """Register a callback for decoded readings (runs on the reader thread)."""
        self._on_reading = cb

    def latest(self, packet_id: int) -> Optional[Reading]:
        """Most recent reading for `packet_id`, or None if none arrived yet."""
        return self._latest.get(packet_id)

    @property
    def stats(self) -> ParserStats:
        return self._parser.stats

    def feed(self, data: bytes) -> list[Reading]:
        """Push received bytes through the parser and deliver the readings."""
        readings = self._parser.feed(data)
        for reading in readings:
            self._deliver(reading)
        return readings

    def _on_serial_bytes(self, data: bytes) -> None:
        """Reader callback from the transport."""
        if data:
            self.feed(data)

    def _deliver(self, reading: Reading) -> None:
        self._latest[reading.packet_id] = reading
        if isinstance(reading, GroupReading):
            for member in reading:
                self._latest[member.packet_id] = member
        if self._on_reading:
            try:
                self._on_reading(reading)
            except Exception:
                log.exception("on_reading callback error")
