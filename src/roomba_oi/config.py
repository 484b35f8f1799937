from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import yaml

from roomba_oi.l2_oi.oi_opcodes import DEFAULT_BAUD_RATE, baud_code_for


@dataclass(frozen=True, slots=True)
class LinkConfig:
    """
    Immutable settings for the serial link to the robot.

    Fields
    ------
    device : str
        Serial device path, e.g. /dev/ttyUSB0.
    baudrate : int
        One of the OI bit rates (115200 for Create 2 / Roomba 600).
    timeout : float
        pyserial read timeout in seconds; bounds how long the reader blocks.
    read_chunk : int
        Max bytes requested per read.
    wake_pulse_s : float
        Length of the BRC (RTS) low pulse used to wake the robot.
    """
    device: str
    baudrate: int = DEFAULT_BAUD_RATE
    timeout: float = 0.05
    read_chunk: int = 256
    wake_pulse_s: float = 0.5


def load_link_config(path: str | Path) -> LinkConfig:
    """
    Load link config from a YAML or JSON file.

    Supported shapes:
      YAML:
        device: /dev/ttyUSB0
        baudrate: 115200
        timeout: 0.05

      JSON:
        {"device": "/dev/ttyUSB0", "baudrate": 115200}

    Raises FileNotFoundError / ValueError on bad input.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    data: dict
    if p.suffix.lower() in {".yml", ".yaml"}:
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"{p}: expected a mapping at top level")

    device = str(data.get("device", "")).strip()
    if not device:
        raise ValueError("device must be set")

    baudrate = int(data.get("baudrate", DEFAULT_BAUD_RATE))
    if baud_code_for(baudrate) is None:
        raise ValueError(f"baudrate {baudrate} is not an OI bit rate")

    read_chunk = int(data.get("read_chunk", 256))
    if read_chunk <= 0:
        raise ValueError("read_chunk must be a positive integer")

    return LinkConfig(
        device=device,
        baudrate=baudrate,
        timeout=float(data.get("timeout", 0.05)),
        read_chunk=read_chunk,
        wake_pulse_s=float(data.get("wake_pulse_s", 0.5)),
    )
