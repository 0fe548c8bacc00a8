"""
bmswatch.detector
AUTHOR: carter-vin

Heartbeat failure detector (two-state machine)

States:
- HEALTHY: silence so far is within the failure threshold
- EMERGENCY: silence exceeded the threshold

Inputs (both driven by the monitor loop on one timeline):
- record_heartbeat(now): any arrival; re-arms to HEALTHY
- check(now): elapsed-silence test against the threshold

Debounce policies while silence continues:
- "reset": on declaration, last_heartbeat_at = now, so the emergency is
  re-declared at most once per threshold interval
- "latch": declared once, stays EMERGENCY until the next heartbeat

Time is always passed in; nothing here blocks or reads a clock.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

HEALTHY = "HEALTHY"
EMERGENCY = "EMERGENCY"
VALID_STATES = {HEALTHY, EMERGENCY}

POLICY_RESET = "reset"
POLICY_LATCH = "latch"
VALID_POLICIES = {POLICY_RESET, POLICY_LATCH}


@dataclass(frozen=True)
class EmergencyEvent:
    """
    One emergency declaration
    - declared_at: monitor clock reading
    - silence_s: elapsed silence that tripped the threshold
    - episode: 1-based declaration counter for this detector
    """

    declared_at: float
    silence_s: float
    episode: int


class FailureDetector:
    def __init__(
        self,
        failure_threshold_s: float,
        *,
        started_at: float,
        policy: str = POLICY_RESET,
    ) -> None:
        if failure_threshold_s <= 0:
            raise ValueError("failure_threshold_s must be > 0")
        if policy not in VALID_POLICIES:
            raise ValueError(f"policy must be: {sorted(VALID_POLICIES)}")

        self.failure_threshold_s = failure_threshold_s
        self.policy = policy
        # No a-priori knowledge of the emitter: the clock starts with the monitor
        self.last_heartbeat_at = started_at
        self.state = HEALTHY
        self.emergencies_declared = 0

    @property
    def in_emergency(self) -> bool:
        return self.state == EMERGENCY

    def record_heartbeat(self, now: float) -> bool:
        """
        Register an arrival

        Returns True when this arrival cleared an emergency
        """
        self.last_heartbeat_at = now
        if self.state == EMERGENCY:
            self.state = HEALTHY
            return True
        return False

    def silence(self, now: float) -> float:
        return now - self.last_heartbeat_at

    def time_until_deadline(self, now: float) -> float:
        """
        Seconds until silence reaches the threshold (0 when already there)

        A latched emergency has no pending deadline: inf until the next heartbeat
        """
        if self.policy == POLICY_LATCH and self.state == EMERGENCY:
            return math.inf
        return max(0.0, self.failure_threshold_s - self.silence(now))

    def check(self, now: float) -> Optional[EmergencyEvent]:
        """
        Liveness check

        Returns an EmergencyEvent when an emergency is (re-)declared, else None
        """
        elapsed = self.silence(now)
        if elapsed <= self.failure_threshold_s:
            return None

        if self.policy == POLICY_LATCH and self.state == EMERGENCY:
            return None

        self.state = EMERGENCY
        self.emergencies_declared += 1

        if self.policy == POLICY_RESET:
            # Debounce: next declaration needs another full threshold of silence
            self.last_heartbeat_at = now

        return EmergencyEvent(
            declared_at=now,
            silence_s=elapsed,
            episode=self.emergencies_declared,
        )
