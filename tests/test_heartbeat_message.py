"""
Contract tests for the heartbeat wire line

Downstream log scrapers read this line verbatim; the format must not drift.
"""

import pytest

from bmswatch.battery import BatteryState
from bmswatch.model import HeartbeatMessage, ReceivedHeartbeat, parse_status_line


def test_status_line_exact_format() -> None:
    message = HeartbeatMessage.from_state(
        BatteryState(level_percent=99.5, temperature_c=25.25, is_charging=False, health_percent=100.0)
    )

    assert message.to_status_line() == "Level=99.50, Temp=25.25, Charging=false, Health=100.00"
    assert message.to_bytes() == b"Level=99.50, Temp=25.25, Charging=false, Health=100.00"


def test_status_line_charging_lowercase_true() -> None:
    message = HeartbeatMessage(level_percent=50.0, temperature_c=-3.5, is_charging=True, health_percent=80.0)

    assert message.to_status_line() == "Level=50.00, Temp=-3.50, Charging=true, Health=80.00"


def test_parse_status_line_reads_all_fields() -> None:
    message = parse_status_line("Level=12.34, Temp=-1.25, Charging=false, Health=97.00")

    assert message.level_percent == 12.34
    assert message.temperature_c == -1.25
    assert message.is_charging is False
    assert message.health_percent == 97.0


@pytest.mark.parametrize(
    "text",
    [
        "",
        "hello",
        "Level=12.34, Temp=1.00, Charging=maybe, Health=97.00",
        "Level=12.34, Temp=1.00, Health=97.00",
    ],
)
def test_parse_status_line_rejects_malformed(text: str) -> None:
    with pytest.raises(ValueError, match="malformed status line"):
        parse_status_line(text)


def test_received_heartbeat_keeps_unparsable_payload() -> None:
    """
    Garbage still arrives as a heartbeat; only the parsed view is missing
    """
    heartbeat = ReceivedHeartbeat.from_payload(b"\xffnot a status", ("127.0.0.1", 4000), 12.5)

    assert heartbeat.message is None
    assert heartbeat.text.endswith("not a status")
    assert heartbeat.source == ("127.0.0.1", 4000)
    assert heartbeat.received_at == 12.5


def test_received_heartbeat_parses_valid_payload() -> None:
    heartbeat = ReceivedHeartbeat.from_payload(
        b"Level=99.50, Temp=25.25, Charging=false, Health=100.00", ("127.0.0.1", 4000), 1.0
    )

    assert heartbeat.message == HeartbeatMessage(99.5, 25.25, False, 100.0)
