"""
bmswatch.emitter
AUTHOR: carter-vin

BMS heartbeat producer

Each cycle, in order:
1. sample the battery
2. build + send one heartbeat datagram (fire-and-forget)
3. run the fault check (may end the process)
4. sleep one period

Fixed period, no jitter, no backoff: heartbeats are periodic by contract.
The stop signal is honored between cycles and during the sleep, never mid-send.
"""

from __future__ import annotations

import threading
from typing import Optional

from bmswatch.battery import Battery
from bmswatch.clock import Clock, SystemClock
from bmswatch.faults import FaultInjector
from bmswatch.logging import bind_component
from bmswatch.model import HeartbeatMessage
from bmswatch.transport import Transport

log_event = bind_component("bms")


class Emitter:
    def __init__(
        self,
        transport: Transport,
        battery: Battery,
        faults: FaultInjector,
        *,
        monitor_address: tuple[str, int],
        period_s: float = 1.0,
        clock: Optional[Clock] = None,
    ) -> None:
        self.transport = transport
        self.battery = battery
        self.faults = faults
        self.monitor_address = monitor_address
        self.period_s = period_s
        self.clock = clock or SystemClock()
        self.seq = 0

    def send_heartbeat(self) -> HeartbeatMessage:
        """
        Sample, build and send one heartbeat; no fault check
        """
        message = HeartbeatMessage.from_state(self.battery.sample())
        payload = message.to_bytes()
        self.seq += 1

        host, port = self.monitor_address
        if self.transport.send(self.monitor_address, payload):
            log_event(
                "heartbeat_sent",
                seq=self.seq,
                target=f"{host}:{port}",
                status=message.to_status_line(),
                bytes=len(payload),
            )
        else:
            # Lost heartbeats are not retried; the next cycle sends a fresh one
            log_event(
                "heartbeat_send_failed",
                seq=self.seq,
                target=f"{host}:{port}",
            )

        return message

    def tick(self) -> HeartbeatMessage:
        message = self.send_heartbeat()
        self.faults.check()
        return message

    def run(self, stop: Optional[threading.Event] = None) -> None:
        """
        Run cycles until stop is set

        SimulatedHardwareFailure propagates to the caller untouched
        """
        if stop is None:
            stop = threading.Event()

        while not stop.is_set():
            self.tick()
            self.clock.sleep(self.period_s, stop)
