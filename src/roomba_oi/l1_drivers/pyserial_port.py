from __future__ import annotations

from typing import Optional
import threading
import logging
import time

import serial  # provided by pyserial
from serial import SerialException

from roomba_oi.config import LinkConfig
from .serial_port import SerialPort, SerialError, BytesCallback

DEFAULT_READ_CHUNK = 256

log = logging.getLogger(__name__)


class PySerialPort(SerialPort):
    """
    SerialPort implementation on top of pyserial.

    - Writes are serialized with a lock and flushed immediately.
    - A daemon reader thread delivers incoming chunks to the registered
      callback; it is the only thread that ever calls the callback.
    - RTS is wired to the robot's BRC pin, which drives the wake sequence.
    """

    def __init__(
        self,
        device: str,
        baudrate: int = 115200,
        timeout: float = 0.05,
        read_chunk: int = DEFAULT_READ_CHUNK,
        wake_pulse_s: float = 0.5,
    ) -> None:
        self._device = device
        self._baudrate = baudrate
        self._timeout = timeout
        self._read_chunk = read_chunk
        self._wake_pulse_s = wake_pulse_s

        self._ser: Optional[serial.Serial] = None
        self._on_bytes: Optional[BytesCallback] = None
        self._write_lock = threading.Lock()

        self._reader_thread: Optional[threading.Thread] = None
        self._stop_flag = threading.Event()

    @classmethod
    def from_config(cls, cfg: LinkConfig) -> "PySerialPort":
        return cls(cfg.device, cfg.baudrate, cfg.timeout, cfg.read_chunk, cfg.wake_pulse_s)

    def open(self) -> None:
        """
        Open the device and start the background reader thread.

        Raises:
            SerialError: If pyserial cannot open the device.
        """
        try:
            self._ser = serial.Serial(
                self._device,
                self._baudrate,
                timeout=self._timeout
            )
        except SerialException as e:
            raise SerialError(f"Failed to open {self._device}: {e}") from e
        log.info("Opened %s @ %d baud", self._device, self._baudrate)

        self._stop_flag.clear()
        self._reader_thread = threading.Thread(
            target=self._reader_loop,
            name="rx-reader",
            daemon=True
        )
        self._reader_thread.start()

    def close(self) -> None:
        """
        Stop the reader thread, then close the device.

        Raises:
            SerialError: If the reader thread does not stop within 1 s or
                        pyserial fails to close the device.
        """
        self._stop_flag.set()
        if self._reader_thread and self._reader_thread.is_alive():
            self._reader_thread.join(timeout=1.0)
            if self._reader_thread.is_alive():
                raise SerialError("Failed to stop reader thread")
        self._reader_thread = None

        if self._ser and self._ser.is_open:
            try:
                self._ser.close()
            except SerialException as e:
                raise SerialError(f"Failed to close {self._device}: {e}") from e
            log.info("Closed %s", self._device)
        self._ser = None

    def is_open(self) -> bool:
        return bool(self._ser and self._ser.is_open)

    def write(self, data: bytes) -> None:
        """
        Write raw bytes, holding the write lock so frames never interleave.

        Raises:
            SerialError: If the port is not open or pyserial fails.
        """
        if not self._ser or not self._ser.is_open:
            raise SerialError("Port not open")
        try:
            with self._write_lock:
                self._ser.write(data)
                self._ser.flush()
        except SerialException as e:
            raise SerialError(f"Write failed on {self._device}: {e}") from e
        log.debug("TX %s", data.hex(" "))

    def set_reader(self, on_bytes: Optional[BytesCallback]) -> None:
        """
        Register (or with None, remove) the callback for incoming bytes.

        The callback runs on the reader thread; keep it short. Exceptions it
        raises are logged and the reader keeps running.
        """
        self._on_bytes = on_bytes

    def _reader_loop(self) -> None:
        log.info("RX reader started")
        ser = self._ser
        if not ser:
            return
        while not self._stop_flag.is_set():
            try:
                chunk = ser.read(self._read_chunk)  # returns b"" on timeout
            except SerialException:
                log.exception("RX read failed on %s; reader exiting", self._device)
                break
            callback = self._on_bytes
            if chunk and callback:
                try:
                    callback(chunk)
                except Exception:
                    log.exception("RX callback error")
        log.info("RX reader stopped")

    def pulse_wakeup(self, duration: Optional[float] = None) -> None:
        """
        Wake the robot by pulsing BRC (RTS) low for `duration` seconds
        (default: the port's `wake_pulse_s`).

        After waking, send START (128) to enter the OI.
        """
        if not self._ser or not self._ser.is_open:
            raise SerialError("Port not open")
        if duration is None:
            duration = self._wake_pulse_s
        log.info("Wake pulse: RTS low for %.1fs", duration)
        self._ser.rts = False
        time.sleep(duration)
        self._ser.rts = True
