"""
bmswatch.emergency
AUTHOR: carter-vin

Emergency response stub

Logs the intended action; no vehicle control happens here.
"""

from __future__ import annotations

import typer

from bmswatch.detector import EmergencyEvent
from bmswatch.logging import bind_component

log_event = bind_component("vehicle")

EMERGENCY_ACTION = "seek_safe_stop"
EMERGENCY_REASON = "Potential battery damage detected (e.g., loss of power, severed connection)."

BANNER_RULE = "-" * 66
BANNER_LINES = (
    BANNER_RULE,
    "EMERGENCY STATE ACTIVATED: NO HEARTBEAT FROM BATTERY MANAGEMENT SYSTEM.",
    "ACTION: Seeking nearest safe location to stop.",
    f"REASON: {EMERGENCY_REASON}",
    BANNER_RULE,
)


class EmergencyAction:
    """
    Callable handed to the monitor as on_emergency

    banner: also print the operator banner to stderr
    """

    def __init__(self, *, banner: bool = True) -> None:
        self.banner = banner

    def __call__(self, event: EmergencyEvent) -> None:
        log_event(
            "emergency_action",
            action=EMERGENCY_ACTION,
            episode=event.episode,
            silence_ms=int(event.silence_s * 1000),
            message=EMERGENCY_REASON,
        )

        if self.banner:
            for line in BANNER_LINES:
                typer.secho(line, fg=typer.colors.RED, err=True)
