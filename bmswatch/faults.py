"""
bmswatch.faults
AUTHOR: carter-vin

Non-deterministic fatal fault for the BMS

Models a hardware fault, stack overflow or power loss on the module.
The failure is terminal: nothing in the emitter catches it, so the process dies
and the monitor has something to detect.
"""

from __future__ import annotations

import random
from typing import Optional

from bmswatch.logging import bind_component

log_event = bind_component("bms")

DRAW_RANGE = 100


class SimulatedHardwareFailure(RuntimeError):
    pass


class FaultInjector:
    """
    One uniform draw in [0, 99] per cycle; fires when draw >= 100 - percent

    percent=4 -> draws 96..99 fire (~4% per cycle)
    """

    def __init__(self, percent: int = 4, rng: Optional[random.Random] = None) -> None:
        if not 0 <= percent <= DRAW_RANGE:
            raise ValueError("fault percent must be in 0..100")
        self.percent = percent
        self._rng = rng or random.Random()

    def triggered(self, draw: int) -> bool:
        return draw >= DRAW_RANGE - self.percent

    def check(self) -> None:
        draw = self._rng.randint(0, DRAW_RANGE - 1)
        if not self.triggered(draw):
            return

        log_event(
            "fault_injected",
            draw=draw,
            fault_percent=self.percent,
            message="SIMULATED HARDWARE FAILURE",
        )
        raise SimulatedHardwareFailure("CRITICAL: DATA CORRUPTION OR STACK OVERFLOW.")
