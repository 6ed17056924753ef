"""Batch entry point invoked by the host's tail hook."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from tail_forwarder.config import ForwarderConfig
from tail_forwarder.delivery import check_config, post_records
from tail_forwarder.models import TraceEvent
from tail_forwarder.transform import Clock, transform

logger = logging.getLogger("tail_forwarder.handler")


def coerce_events(events: Iterable[TraceEvent | Mapping[str, Any]]) -> list[TraceEvent]:
    """Accept parsed events or raw host payloads; other items are skipped."""
    parsed: list[TraceEvent] = []
    for item in events:
        if isinstance(item, TraceEvent):
            parsed.append(item)
        elif isinstance(item, Mapping):
            parsed.append(TraceEvent.from_payload(item))
        else:
            logger.warning("trace_event_skipped", extra={"item_type": type(item).__name__})
    return parsed


async def tail(
    events: Iterable[TraceEvent | Mapping[str, Any]],
    config: ForwarderConfig,
    *,
    client: httpx.AsyncClient | None = None,
    clock: Clock | None = None,
) -> None:
    """Transform one batch and ship it; failures end up in the log only."""
    try:
        if not check_config(config):
            return
        records = transform(coerce_events(events), config, clock=clock)
        await post_records(records, config, client=client)
    except Exception:  # noqa: BLE001 - the host must never see a failure.
        logger.exception("Error in tail handler")
