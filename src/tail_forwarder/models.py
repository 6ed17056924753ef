"""Trace events received from the host and the Datadog records built from them."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TriggerKind(str, Enum):
    """What started the traced invocation."""

    FETCH = "fetch"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class FetchTrigger:
    """Inbound HTTP request that triggered the invocation."""

    ray_id: str | None = None
    request_method: str | None = None
    request_url: str | None = None
    response_status: int | None = None
    kind: TriggerKind = field(default=TriggerKind.FETCH, init=False)


@dataclass(frozen=True, slots=True)
class UnknownTrigger:
    """Any trigger shape without a dedicated variant; kept raw and not forwarded."""

    raw: Mapping[str, Any] = field(default_factory=dict)
    kind: TriggerKind = field(default=TriggerKind.UNKNOWN, init=False)


EventTrigger = FetchTrigger | UnknownTrigger


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One console line captured while the traced script ran."""

    level: str | None = None
    message: Any = None
    timestamp: int | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> LogEntry:
        if not isinstance(payload, Mapping):
            return cls(message=payload)
        return cls(
            level=_optional_str(payload.get("level")),
            message=payload.get("message"),
            timestamp=_optional_int(payload.get("timestamp")),
        )


@dataclass(frozen=True, slots=True)
class TraceEvent:
    """One completed invocation reported by the tail hook."""

    event_timestamp: int | None = None
    outcome: str | None = None
    entries: tuple[LogEntry, ...] | None = None
    script_name: str | None = None
    script_version: Any = None
    entrypoint: str | None = None
    dispatch_namespace: str | None = None
    cpu_time_ms: float | None = None
    wall_time_ms: float | None = None
    trigger: EventTrigger | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TraceEvent:
        """Build an event from the host's JSON shape, degrading bad fields to ``None``."""
        logs = payload.get("logs")
        entries = tuple(LogEntry.from_payload(item) for item in logs) if isinstance(logs, list) else None
        return cls(
            event_timestamp=_optional_int(payload.get("eventTimestamp")),
            outcome=_optional_str(payload.get("outcome")),
            entries=entries,
            script_name=_optional_str(payload.get("scriptName")),
            script_version=payload.get("scriptVersion"),
            entrypoint=_optional_str(payload.get("entrypoint")),
            dispatch_namespace=_optional_str(payload.get("dispatchNamespace")),
            cpu_time_ms=_optional_number(payload.get("cpuTime")),
            wall_time_ms=_optional_number(payload.get("wallTime")),
            trigger=parse_trigger(payload.get("event")),
        )


def parse_trigger(payload: Any) -> EventTrigger | None:
    """Decide the trigger variant; a mapping carrying ``request`` is a fetch."""
    if not isinstance(payload, Mapping):
        return None
    if "request" not in payload:
        return UnknownTrigger(raw=dict(payload))

    request = payload.get("request")
    response = payload.get("response")
    request = request if isinstance(request, Mapping) else {}
    response = response if isinstance(response, Mapping) else {}
    return FetchTrigger(
        ray_id=_optional_str(payload.get("rayID", payload.get("rayId"))),
        request_method=_optional_str(request.get("method")),
        request_url=_optional_str(request.get("url")),
        response_status=_optional_int(response.get("status")),
    )


@dataclass(frozen=True, slots=True)
class OutputRecord:
    """Datadog log intake envelope plus free-form attributes."""

    timestamp: int
    status: str
    message: str
    service: str
    ddsource: str
    ddtags: str
    hostname: str
    attributes: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timestamp": self.timestamp,
            "status": self.status,
            "message": self.message,
            "service": self.service,
            "ddsource": self.ddsource,
            "ddtags": self.ddtags,
            "hostname": self.hostname,
        }
        for key, value in self.attributes.items():
            if value is not None and key not in payload:
                payload[key] = value
        return payload


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _optional_int(value: Any) -> int | None:
    number = _optional_number(value)
    return None if number is None else int(number)


def _optional_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value
