"""
bmswatch.model
AUTHOR: carter-vin

Heartbeat message + wire line serialization primitives.

Wire contract (single UTF-8 datagram, no framing, no version):
    Level=<%.2f>, Temp=<%.2f>, Charging=<true|false>, Health=<%.2f>

The monitor never decides anything from the content; it parses only to log.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from bmswatch.battery import BatteryState

STATUS_LINE_RE = re.compile(
    r"^Level=(?P<level>-?\d+(?:\.\d+)?), "
    r"Temp=(?P<temp>-?\d+(?:\.\d+)?), "
    r"Charging=(?P<charging>true|false), "
    r"Health=(?P<health>-?\d+(?:\.\d+)?)$"
)


@dataclass(frozen=True)
class HeartbeatMessage:
    """
    One emission cycle's battery snapshot
    """

    level_percent: float
    temperature_c: float
    is_charging: bool
    health_percent: float

    @staticmethod
    def from_state(state: BatteryState) -> "HeartbeatMessage":
        return HeartbeatMessage(
            level_percent=state.level_percent,
            temperature_c=state.temperature_c,
            is_charging=state.is_charging,
            health_percent=state.health_percent,
        )

    def to_status_line(self) -> str:
        charging = "true" if self.is_charging else "false"
        return (
            f"Level={self.level_percent:.2f}, "
            f"Temp={self.temperature_c:.2f}, "
            f"Charging={charging}, "
            f"Health={self.health_percent:.2f}"
        )

    def to_bytes(self) -> bytes:
        return self.to_status_line().encode("utf-8")

    def to_dict(self) -> dict[str, Any]:
        # Explicit key mapping for stable log fields
        return {
            "level_percent": round(self.level_percent, 2),
            "temperature_c": round(self.temperature_c, 2),
            "is_charging": self.is_charging,
            "health_percent": round(self.health_percent, 2),
        }


def parse_status_line(text: str) -> HeartbeatMessage:
    """
    Parse a wire status line

    Raises ValueError on anything that is not exactly the wire format
    """
    match = STATUS_LINE_RE.match(text.strip())
    if match is None:
        raise ValueError(f"malformed status line: {text!r}")

    return HeartbeatMessage(
        level_percent=float(match.group("level")),
        temperature_c=float(match.group("temp")),
        is_charging=match.group("charging") == "true",
        health_percent=float(match.group("health")),
    )


@dataclass(frozen=True)
class ReceivedHeartbeat:
    """
    A heartbeat as seen by the monitor
    - text: decoded payload
    - source: sender (host, port)
    - received_at: monitor clock reading at receipt
    - message: parsed payload, None when it did not parse
    """

    text: str
    source: tuple[str, int]
    received_at: float
    message: Optional[HeartbeatMessage] = None

    @staticmethod
    def from_payload(payload: bytes, source: tuple[str, int], received_at: float) -> "ReceivedHeartbeat":
        # Replace invalid bytes; an unreadable heartbeat is still a heartbeat
        text = payload.decode("utf-8", errors="replace")
        try:
            message: Optional[HeartbeatMessage] = parse_status_line(text)
        except ValueError:
            message = None
        return ReceivedHeartbeat(text=text, source=source, received_at=received_at, message=message)
