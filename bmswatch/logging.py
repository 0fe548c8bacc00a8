"""
bmswatch.logging
AUTHOR: carter-vin

Structured JSON event logging for both halves of the heartbeat pair

Contract:
- One JSON object per line to stdout
- Stable event vocabulary (allowlist)
- UTC timestamps only
- component identifies the emitting process ("bms" or "vehicle")
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable

# Event types
VALID_EVENT_TYPES = {
    "emitter_start",
    "heartbeat_sent",
    "heartbeat_send_failed",
    "fault_injected",
    "emitter_shutdown",
    "monitor_start",
    "heartbeat_received",
    "emergency_declared",
    "emergency_cleared",
    "emergency_action",
    "transport_bind_failed",
    "monitor_shutdown",
}

VALID_COMPONENTS = {"bms", "vehicle"}


def _truncate_message(value: str, *, limit: int = 200) -> str:
    """
    Cap message length to keep events compact
    """
    if len(value) <= limit:
        return value
    return value[:limit] + f"...[truncated {len(value) - limit} chars]"


# Time: current in UTC ISO 8601
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def emit_event(event_type: str, *, component: str, **fields: Any) -> None:
    """
    Emit structured event line to stdout

    Rules:
    - event_type in VALID_EVENT_TYPES
    - event_type, component, timestamp always present
    - sort_keys + compact separators for format
    """
    if event_type not in VALID_EVENT_TYPES:
        raise ValueError(f"invalid event_type: {event_type}")

    if component not in VALID_COMPONENTS:
        raise ValueError(f"invalid component: {component}")

    if "message" in fields and isinstance(fields["message"], str):
        # Avoid emitting long strings in event fields
        fields["message"] = _truncate_message(fields["message"])

    payload: dict[str, Any] = {
        "event_type": event_type,
        "utc_now": utc_now_iso(),
        "component": component,
        **fields,
    }

    print(
        json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        ),
        flush=True,
    )


def bind_component(component: str) -> Callable[..., None]:
    """
    Return an emit_event bound to one component

    Each process logs under a single component; binding once keeps call sites
    to the event itself and fails fast on an unknown component.
    """
    if component not in VALID_COMPONENTS:
        raise ValueError(f"invalid component: {component}")

    def _emit(event_type: str, **fields: Any) -> None:
        emit_event(event_type, component=component, **fields)

    return _emit
