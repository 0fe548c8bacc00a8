"""
Contract tests for the bmswatch CLI
"""

import os
import signal
import threading

from typer.testing import CliRunner

from fakes import read_events

from bmswatch.faults import SimulatedHardwareFailure
from bmswatch.main import app
from bmswatch.model import parse_status_line
from bmswatch.transport import TIMED_OUT, Datagram, TransportBindError, UdpTransport

LOOPBACK = "127.0.0.1"


def test_version_prints_banner() -> None:
    result = CliRunner().invoke(app, ["version"])

    assert result.exit_code == 0
    assert "bmswatch v0.1.0" in result.stdout


def test_no_command_prints_hint() -> None:
    result = CliRunner().invoke(app, [])

    assert result.exit_code == 0
    assert "Try: bmswatch --help" in result.stdout


def test_emit_with_certain_fault_sends_one_heartbeat_and_exits_nonzero() -> None:
    """
    A 100% fault rate: one valid heartbeat on the wire, then abnormal exit
    """
    with UdpTransport.bind(LOOPBACK, 0) as receiver:
        port = receiver.local_address[1]

        result = CliRunner().invoke(
            app,
            ["emit", "--port", str(port), "--fault-percent", "100", "--seed", "1"],
        )

        assert result.exit_code != 0
        assert isinstance(result.exception, SimulatedHardwareFailure)

        datagram = receiver.receive(2.0)
        assert isinstance(datagram, Datagram)
        parse_status_line(datagram.payload.decode("utf-8"))
        assert receiver.receive(0.1) is TIMED_OUT

    types = [event["event_type"] for event in read_events(result.stdout)]
    assert types == ["emitter_start", "heartbeat_sent", "fault_injected", "emitter_shutdown"]


def test_emit_reads_env_overrides() -> None:
    with UdpTransport.bind(LOOPBACK, 0) as receiver:
        port = receiver.local_address[1]

        result = CliRunner().invoke(
            app,
            ["emit"],
            env={"BMSWATCH_PORT": str(port), "BMSWATCH_FAULT_PERCENT": "100"},
        )

        assert isinstance(result.exception, SimulatedHardwareFailure)
        assert isinstance(receiver.receive(2.0), Datagram)


def test_oneshot_sends_single_heartbeat() -> None:
    with UdpTransport.bind(LOOPBACK, 0) as receiver:
        port = receiver.local_address[1]

        result = CliRunner().invoke(app, ["oneshot", "--port", str(port)])

        assert result.exit_code == 0
        assert isinstance(receiver.receive(2.0), Datagram)

    events = read_events(result.stdout)
    assert [event["event_type"] for event in events] == ["heartbeat_sent"]


def test_monitor_bind_failure_is_fatal_and_reported() -> None:
    with UdpTransport.bind(LOOPBACK, 0) as holder:
        port = holder.local_address[1]

        result = CliRunner().invoke(app, ["monitor", "--port", str(port), "--no-banner"])

    assert result.exit_code != 0
    assert isinstance(result.exception, TransportBindError)

    events = read_events(result.stdout)
    types = [event["event_type"] for event in events]
    assert types == ["monitor_start", "transport_bind_failed", "monitor_shutdown"]
    assert events[1]["listen"] == f"{LOOPBACK}:{port}"


def test_monitor_rejects_receive_timeout_not_below_threshold() -> None:
    result = CliRunner().invoke(app, ["monitor", "--receive-timeout", "3", "--threshold", "3"])

    assert result.exit_code == 2


def test_monitor_rejects_unknown_debounce_policy() -> None:
    result = CliRunner().invoke(app, ["monitor", "--debounce", "sticky"])

    assert result.exit_code == 2


def test_monitor_clean_shutdown_on_ctrl_c() -> None:
    """
    A running monitor receives a heartbeat, then Ctrl+C ends it with exit code 0
    and a shutdown event
    """
    with UdpTransport.bind(LOOPBACK, 0) as free:
        port = free.local_address[1]

    def _send_heartbeat() -> None:
        with UdpTransport.ephemeral() as sender:
            sender.send((LOOPBACK, port), b"Level=99.50, Temp=25.25, Charging=false, Health=100.00")

    heartbeat = threading.Timer(0.3, _send_heartbeat)
    interrupt = threading.Timer(0.8, os.kill, args=(os.getpid(), signal.SIGINT))
    heartbeat.start()
    interrupt.start()
    try:
        result = CliRunner().invoke(app, ["monitor", "--port", str(port), "--no-banner"])
    finally:
        heartbeat.join()
        interrupt.join()

    assert result.exit_code == 0

    types = [event["event_type"] for event in read_events(result.stdout)]
    assert types[0] == "monitor_start"
    assert "heartbeat_received" in types
    assert "emergency_declared" not in types
    assert types[-1] == "monitor_shutdown"
