"""
bmswatch.main
------------
AUTHOR: carter-vin

PURPOSE:
- One CLI for both halves of the heartbeat pair
- `bmswatch emit` runs the Battery Management System (heartbeat emitter)
- `bmswatch monitor` runs the vehicle-side heartbeat monitor

Key contract:
- `bmswatch --help` shows a Commands section.
- `bmswatch emit` exits non-zero when the simulated hardware fault fires.
- `bmswatch monitor` exits non-zero when it cannot bind its endpoint.
"""

from __future__ import annotations

import platform
import random
import sys
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import typer

from bmswatch.battery import Battery
from bmswatch.clock import SystemClock, stop_on_signals
from bmswatch.config import (
    DEFAULT_FAILURE_THRESHOLD_S,
    DEFAULT_FAULT_PERCENT,
    DEFAULT_HOST,
    DEFAULT_IDLE_SLEEP_S,
    DEFAULT_PERIOD_S,
    DEFAULT_PORT,
    DEFAULT_RECEIVE_TIMEOUT_S,
    HeartbeatConfig,
)
from bmswatch.detector import FailureDetector
from bmswatch.emergency import EmergencyAction
from bmswatch.emitter import Emitter
from bmswatch.faults import FaultInjector
from bmswatch.logging import bind_component
from bmswatch.monitor import Monitor
from bmswatch.transport import TransportBindError, UdpTransport

bms_event = bind_component("bms")
vehicle_event = bind_component("vehicle")

# Explicit multi-command CLI
app = typer.Typer(
    add_completion=False,
    help="bmswatch: battery management heartbeat emitter and monitor",
)

BMSWATCH_VERSION = "0.1.0"

# -----------------------------
# DATA CLASSES
# -----------------------------
@dataclass(frozen=True)
class EnvironmentInfo:
    """
    Snapshot of the runtime environment
    """

    python_version: str
    os: str
    machine: str
    utc_now: str


def collect_environment_info() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=sys.version.split()[0],
        os=f"{platform.system()} {platform.release()}",
        machine=platform.machine(),
        utc_now=datetime.now(timezone.utc).isoformat(),
    )


def _validated(config: HeartbeatConfig) -> HeartbeatConfig:
    try:
        config.validate()
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    return config


def _rng(seed: Optional[int]) -> random.Random:
    return random.Random(seed) if seed is not None else random.Random()


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Root command behavior.

    If no subcommand is provided, print a short hint and exit 0.
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: bmswatch --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print version & runtime env
    """
    env = collect_environment_info()

    typer.echo(f"bmswatch v{BMSWATCH_VERSION}")
    typer.echo(f"python={env.python_version}")
    typer.echo(f"os={env.os}")
    typer.echo(f"machine={env.machine}")
    typer.echo(f"utc_now={env.utc_now}")


@app.command("emit")
def emit(
    host: str = typer.Option(DEFAULT_HOST, envvar="BMSWATCH_HOST", help="Monitor host."),
    port: int = typer.Option(DEFAULT_PORT, envvar="BMSWATCH_PORT", help="Monitor UDP port."),
    period: float = typer.Option(
        DEFAULT_PERIOD_S,
        envvar="BMSWATCH_PERIOD_S",
        help="Heartbeat period (seconds).",
    ),
    fault_percent: int = typer.Option(
        DEFAULT_FAULT_PERCENT,
        envvar="BMSWATCH_FAULT_PERCENT",
        help="Chance per cycle (0-100) of a simulated fatal hardware fault.",
    ),
    seed: Optional[int] = typer.Option(
        None,
        help="Seed the battery and fault random sources.",
    ),
) -> None:
    """
    Run the BMS heartbeat emitter loop.

    Failure semantics:
    - the simulated fault is not caught; the process exits non-zero
    - Ctrl+C / SIGTERM stop the loop between cycles
    """
    config = _validated(
        HeartbeatConfig(host=host, port=port, period_s=period, fault_percent=fault_percent)
    )

    bms_event(
        "emitter_start",
        version=BMSWATCH_VERSION,
        target=f"{config.host}:{config.port}",
        period_s=config.period_s,
        fault_percent=config.fault_percent,
    )

    stop = threading.Event()
    rng = _rng(seed)

    try:
        with stop_on_signals(stop), UdpTransport.ephemeral() as transport:
            emitter = Emitter(
                transport,
                Battery(random.Random(rng.random())),
                FaultInjector(config.fault_percent, rng=rng),
                monitor_address=config.monitor_address,
                period_s=config.period_s,
                clock=SystemClock(),
            )
            emitter.run(stop)

    except KeyboardInterrupt:
        # Ctrl+C before the signal handlers were installed
        pass

    finally:
        bms_event("emitter_shutdown", version=BMSWATCH_VERSION)


@app.command("oneshot")
def oneshot(
    host: str = typer.Option(DEFAULT_HOST, envvar="BMSWATCH_HOST", help="Monitor host."),
    port: int = typer.Option(DEFAULT_PORT, envvar="BMSWATCH_PORT", help="Monitor UDP port."),
    seed: Optional[int] = typer.Option(None, help="Seed the battery random source."),
) -> None:
    """
    Send a single heartbeat and exit (no fault check)
    """
    config = _validated(HeartbeatConfig(host=host, port=port))

    with UdpTransport.ephemeral() as transport:
        emitter = Emitter(
            transport,
            Battery(_rng(seed)),
            FaultInjector(0),
            monitor_address=config.monitor_address,
        )
        emitter.send_heartbeat()


@app.command("monitor")
def monitor(
    host: str = typer.Option(DEFAULT_HOST, envvar="BMSWATCH_HOST", help="Address to listen on."),
    port: int = typer.Option(DEFAULT_PORT, envvar="BMSWATCH_PORT", help="UDP port to listen on."),
    receive_timeout: float = typer.Option(
        DEFAULT_RECEIVE_TIMEOUT_S,
        envvar="BMSWATCH_RECEIVE_TIMEOUT_S",
        help="Max wait per receive (seconds); must be below the threshold.",
    ),
    threshold: float = typer.Option(
        DEFAULT_FAILURE_THRESHOLD_S,
        envvar="BMSWATCH_THRESHOLD_S",
        help="Max tolerated heartbeat silence (seconds).",
    ),
    idle_sleep: float = typer.Option(
        DEFAULT_IDLE_SLEEP_S,
        envvar="BMSWATCH_IDLE_SLEEP_S",
        help="Pause between loop iterations (seconds).",
    ),
    debounce: str = typer.Option(
        "reset",
        envvar="BMSWATCH_DEBOUNCE",
        help="Repeat-alert policy during an outage: reset or latch.",
    ),
    no_banner: bool = typer.Option(
        False,
        "--no-banner",
        help="Disable the stderr emergency banner.",
    ),
) -> None:
    """
    Run the vehicle heartbeat monitor until interrupted.
    """
    config = _validated(
        HeartbeatConfig(
            host=host,
            port=port,
            receive_timeout_s=receive_timeout,
            failure_threshold_s=threshold,
            idle_sleep_s=idle_sleep,
            debounce=debounce,
        )
    )

    vehicle_event(
        "monitor_start",
        version=BMSWATCH_VERSION,
        listen=f"{config.host}:{config.port}",
        threshold_ms=int(config.failure_threshold_s * 1000),
        receive_timeout_ms=int(config.receive_timeout_s * 1000),
        debounce=config.debounce,
    )

    stop = threading.Event()

    try:
        try:
            transport = UdpTransport.bind(config.host, config.port)
        except TransportBindError as e:
            # Without an endpoint the monitor cannot do its job
            vehicle_event(
                "transport_bind_failed",
                listen=f"{config.host}:{config.port}",
                error_type=type(e.__cause__ or e).__name__,
                message=str(e),
            )
            raise

        with stop_on_signals(stop), transport:
            clock = SystemClock()
            detector = FailureDetector(
                config.failure_threshold_s,
                started_at=clock.now(),
                policy=config.debounce,
            )
            Monitor(
                transport,
                detector,
                receive_timeout_s=config.receive_timeout_s,
                idle_sleep_s=config.idle_sleep_s,
                clock=clock,
                on_emergency=EmergencyAction(banner=not no_banner),
            ).run(stop)

    except KeyboardInterrupt:
        # Ctrl+C before the signal handlers were installed
        pass

    finally:
        vehicle_event("monitor_shutdown", version=BMSWATCH_VERSION)


if __name__ == "__main__":
    app()
