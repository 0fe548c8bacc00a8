"""
bmswatch.config
AUTHOR: carter-vin

Endpoint + timing configuration shared by both processes

Values are constants of the protocol, not negotiated at runtime.
The CLI layers env var / flag overrides on top of the defaults.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 65433

DEFAULT_PERIOD_S = 1.0
DEFAULT_RECEIVE_TIMEOUT_S = 1.0
DEFAULT_FAILURE_THRESHOLD_S = 3.0
DEFAULT_IDLE_SLEEP_S = 0.5
DEFAULT_FAULT_PERCENT = 4

VALID_DEBOUNCE = {"reset", "latch"}


@dataclass(frozen=True)
class HeartbeatConfig:
    """
    Heartbeat pair configuration.

    receive_timeout_s must stay below failure_threshold_s so the liveness
    check runs several times per threshold window.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    period_s: float = DEFAULT_PERIOD_S
    receive_timeout_s: float = DEFAULT_RECEIVE_TIMEOUT_S
    failure_threshold_s: float = DEFAULT_FAILURE_THRESHOLD_S
    idle_sleep_s: float = DEFAULT_IDLE_SLEEP_S
    fault_percent: int = DEFAULT_FAULT_PERCENT
    debounce: str = "reset"

    @property
    def monitor_address(self) -> tuple[str, int]:
        return (self.host, self.port)

    def validate(self) -> None:
        """
        Raises ValueError on invalid
        """
        if not self.host:
            raise ValueError("host is empty")
        if not 1 <= self.port <= 65535:
            raise ValueError("port must be in 1..65535")

        for name in ("period_s", "receive_timeout_s", "failure_threshold_s", "idle_sleep_s"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")

        if self.receive_timeout_s >= self.failure_threshold_s:
            raise ValueError("receive_timeout_s must be < failure_threshold_s")
        if self.idle_sleep_s >= self.receive_timeout_s:
            raise ValueError("idle_sleep_s must be < receive_timeout_s")

        if not 0 <= self.fault_percent <= 100:
            raise ValueError("fault_percent must be in 0..100")

        if self.debounce not in VALID_DEBOUNCE:
            raise ValueError(f"debounce must be: {sorted(VALID_DEBOUNCE)}")
