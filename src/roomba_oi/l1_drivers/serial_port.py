from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

BytesCallback = Callable[[bytes], None]


class SerialError(Exception):
    """Transport failure (open/close/write) with the driver exception chained."""


class SerialPort(ABC):
    """
    Byte transport used by the OI layer.

    Outbound: `write(data)` sends exactly these bytes, in order, no framing.
    Inbound: the callback registered with `set_reader` receives chunks of
    arbitrary size as they arrive, always from one reader thread.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def write(self, data: bytes) -> None: ...

    @abstractmethod
    def set_reader(self, on_bytes: Optional[BytesCallback]) -> None: ...

    def pulse_wakeup(self, duration: Optional[float] = None) -> None:
        """
        Run the robot's wake sequence; None means the transport's configured
        pulse length. Transports without one do nothing.
        """
