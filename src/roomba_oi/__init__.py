"""
roomba_oi
Codec for the iRobot Roomba / Create 2 Open Interface (OI) serial protocol.

Layers:
- l1_drivers: byte transport (SerialPort contract, pyserial implementation)
- l2_oi: opcode / packet catalogs, command codec, sensor decoder, stream parser
"""

__version__ = "0.3.0"
