"""Conversion of tail trace events into Datadog log intake records.

Each event yields an optional summary record followed by one record per console
entry, in input order. The conversion is pure apart from reading the clock when
an event carries no timestamp.
"""

from __future__ import annotations

import json
import math
import time
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Callable

from tail_forwarder.config import ForwarderConfig
from tail_forwarder.models import FetchTrigger, LogEntry, OutputRecord, TraceEvent

DDSOURCE = "cloudflare"
SOURCE_TAG = "source:cloudflare-tail-worker"
DEFAULT_ENV_TAG = "env:dev"
DEFAULT_SERVICE_NAME = "cloudflare-worker"
DEFAULT_LEVEL = "info"

Clock = Callable[[], int]


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def transform(
    events: Iterable[TraceEvent],
    config: ForwarderConfig,
    *,
    clock: Clock | None = None,
) -> list[OutputRecord]:
    """Flatten ``events`` into Datadog records, summary first per event when enabled."""
    clock = clock or now_ms
    records: list[OutputRecord] = []
    for event in events:
        records.extend(_event_records(event, config, clock))
    return records


def _event_records(event: TraceEvent, config: ForwarderConfig, clock: Clock) -> list[OutputRecord]:
    worker_name = config.service_name or DEFAULT_SERVICE_NAME
    script_name = event.script_name or worker_name
    base_timestamp = event.event_timestamp or clock()
    base_tags = build_base_tags(script_name, config.environment)
    fetch = event.trigger if isinstance(event.trigger, FetchTrigger) else None

    records: list[OutputRecord] = []
    if config.emit_summary_records:
        records.append(_summary_record(event, script_name, worker_name, base_timestamp, base_tags, fetch))

    for entry in event.entries or ():
        level = entry.level or DEFAULT_LEVEL
        attributes: dict[str, Any] = {
            "event_type": "cloudflare_worker_log",
            "worker_name": worker_name,
            "script_name": script_name,
            "log_level": level,
            "parent_event_timestamp": base_timestamp,
        }
        if fetch is not None:
            attributes["ray_id"] = fetch.ray_id
        records.append(
            OutputRecord(
                timestamp=_entry_timestamp(entry, base_timestamp),
                status=level,
                message=flatten_message(entry.message),
                service=script_name,
                ddsource=DDSOURCE,
                ddtags=f"{base_tags},log_type:worker_log,log_level:{level}",
                hostname=script_name,
                attributes=attributes,
            )
        )
    return records


def _summary_record(
    event: TraceEvent,
    script_name: str,
    worker_name: str,
    base_timestamp: int,
    base_tags: str,
    fetch: FetchTrigger | None,
) -> OutputRecord:
    attributes: dict[str, Any] = {
        "event_type": "cloudflare_trace",
        "worker_name": worker_name,
        "script_name": script_name,
        "cpu_time_ms": event.cpu_time_ms,
        "wall_time_ms": event.wall_time_ms,
        "entrypoint": event.entrypoint,
        "script_version": event.script_version,
        "dispatch_namespace": event.dispatch_namespace,
    }
    if fetch is not None:
        attributes.update(
            ray_id=fetch.ray_id,
            request_method=fetch.request_method,
            request_url=fetch.request_url,
            response_status=fetch.response_status,
        )
    return OutputRecord(
        timestamp=base_timestamp,
        status=event.outcome or "unknown",
        message=f"Cloudflare Worker execution - {event.outcome or 'completed'}",
        service=script_name,
        ddsource=DDSOURCE,
        ddtags=f"{base_tags},log_type:main_event",
        hostname=script_name,
        attributes=attributes,
    )


def build_base_tags(service: str, environment: str | None) -> str:
    env_tag = f"env:{environment}" if environment else DEFAULT_ENV_TAG
    return ",".join([f"service:{service}", SOURCE_TAG, env_tag])


def flatten_message(message: Any) -> str:
    """Join sequence messages with single spaces; falsy scalars become ``""``."""
    if isinstance(message, Sequence) and not isinstance(message, (str, bytes)):
        return " ".join(_stringify(part) for part in message)
    if not message:
        return ""
    return _stringify(message)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (list, tuple)):
        # nested arrays join with commas at any depth
        return ",".join(_stringify(part) for part in value)
    if isinstance(value, Mapping):
        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _entry_timestamp(entry: LogEntry, base_timestamp: int) -> int:
    return entry.timestamp or base_timestamp
