"""
roomba_oi.l1_drivers
Byte transport for the OI layer. Import `pyserial_port` explicitly for the
pyserial implementation.
"""

from .serial_port import SerialPort, SerialError, BytesCallback  # noqa: F401

__all__ = ["SerialPort", "SerialError", "BytesCallback"]
