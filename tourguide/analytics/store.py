from __future__ import annotations

import time
from typing import Any

_events: list[dict[str, Any]] = []


def record_event(
    event_type: str,
    data: dict[str, Any],
    user_id: str | None = None,
    session_id: str | None = None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> None:
    _events.append({
        "type": event_type,
        "data": data,
        "user_id": user_id,
        "session_id": session_id,
        "user_agent": user_agent,
        "ip_address": ip_address,
        "timestamp": time.time(),
    })


def record_recommendation_event(
    kind: str,
    results: int,
    response_time_ms: float,
    user_id: str | None = None,
) -> None:
    record_event(
        "event",
        {
            "name": "recommendations_served",
            "kind": kind,
            "results": results,
            "response_time_ms": response_time_ms,
        },
        user_id=user_id,
    )


def get_events() -> list[dict[str, Any]]:
    return _events


def clear_events() -> None:
    _events.clear()
