"""
bmswatch.battery
AUTHOR: carter-vin

Simulated battery pack for the BMS
- gradual discharge, temperature drift, rare health degradation
- stdlib only
- never fails; randomness is injectable so tests can pin every branch
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from typing import Optional

MAX_DISCHARGE_PER_SAMPLE = 0.5
MAX_TEMP_SWING_C = 1.0
HEALTH_DECAY_ODDS = 1000  # one in N samples loses one health point


@dataclass(frozen=True)
class BatteryState:
    """
    Snapshot of the pack
    - level_percent: [0, 100]
    - temperature_c: free drift
    - is_charging: fixed simulation input
    - health_percent: [0, 100], never increases
    """

    level_percent: float
    temperature_c: float
    is_charging: bool
    health_percent: float


class Battery:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        *,
        level_percent: float = 100.0,
        temperature_c: float = 25.0,
        health_percent: float = 100.0,
    ) -> None:
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._level = level_percent
        self._temperature = temperature_c
        self._health = health_percent

    def sample(self) -> BatteryState:
        """
        Advance the simulation by one step and return the new state
        """
        with self._lock:
            if self._level > 0.0:
                self._level = max(0.0, self._level - self._rng.random() * MAX_DISCHARGE_PER_SAMPLE)

            self._temperature += (self._rng.random() - 0.5) * 2 * MAX_TEMP_SWING_C

            if self._rng.randrange(HEALTH_DECAY_ODDS) == 0 and self._health > 0.0:
                self._health = max(0.0, self._health - 1.0)

            return BatteryState(
                level_percent=self._level,
                temperature_c=self._temperature,
                # Constant for the simulation; a real pack would report this
                is_charging=False,
                health_percent=self._health,
            )
