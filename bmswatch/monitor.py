"""
bmswatch.monitor
AUTHOR: carter-vin

Vehicle-side heartbeat monitor loop

Per iteration, in order:
1. bounded receive (the only blocking point)
2. liveness check against the failure threshold
3. idle sleep (CPU bound only; not part of the timing contract)

Receive timeouts are expected and frequent; they are not failures.
The fault signal is purely elapsed silence since the last arrival.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from bmswatch.clock import Clock, SystemClock
from bmswatch.detector import EmergencyEvent, FailureDetector
from bmswatch.logging import bind_component
from bmswatch.model import ReceivedHeartbeat
from bmswatch.transport import Datagram, Transport

log_event = bind_component("vehicle")


class Monitor:
    def __init__(
        self,
        transport: Transport,
        detector: FailureDetector,
        *,
        receive_timeout_s: float = 1.0,
        idle_sleep_s: float = 0.5,
        clock: Optional[Clock] = None,
        on_emergency: Callable[[EmergencyEvent], None],
        on_recovery: Optional[Callable[[ReceivedHeartbeat], None]] = None,
    ) -> None:
        self.transport = transport
        self.detector = detector
        self.receive_timeout_s = receive_timeout_s
        self.idle_sleep_s = idle_sleep_s
        self.clock = clock or SystemClock()
        self.on_emergency = on_emergency
        self.on_recovery = on_recovery
        self.heartbeats_received = 0

    def _receive_window(self) -> float:
        # Never wait past the detector deadline; keeps detection within one idle sleep
        return min(self.receive_timeout_s, self.detector.time_until_deadline(self.clock.now()))

    def _on_datagram(self, datagram: Datagram) -> None:
        now = self.clock.now()
        heartbeat = ReceivedHeartbeat.from_payload(datagram.payload, datagram.source, now)
        recovered = self.detector.record_heartbeat(now)
        self.heartbeats_received += 1

        host, port = heartbeat.source
        log_event(
            "heartbeat_received",
            source=f"{host}:{port}",
            status=heartbeat.text,
            parsed=heartbeat.message is not None,
            count=self.heartbeats_received,
        )

        if recovered:
            log_event(
                "emergency_cleared",
                source=f"{host}:{port}",
                state=self.detector.state,
            )
            if self.on_recovery is not None:
                self.on_recovery(heartbeat)

    def step(self) -> None:
        """
        One receive + liveness iteration, without the idle sleep
        """
        result = self.transport.receive(self._receive_window())
        if isinstance(result, Datagram):
            self._on_datagram(result)

        event = self.detector.check(self.clock.now())
        if event is None:
            return

        log_event(
            "emergency_declared",
            episode=event.episode,
            silence_ms=int(event.silence_s * 1000),
            threshold_ms=int(self.detector.failure_threshold_s * 1000),
            policy=self.detector.policy,
        )
        self.on_emergency(event)

    def run(self, stop: Optional[threading.Event] = None) -> None:
        """
        Loop until stop is set
        """
        if stop is None:
            stop = threading.Event()

        while not stop.is_set():
            self.step()
            self.clock.sleep(self.idle_sleep_s, stop)
