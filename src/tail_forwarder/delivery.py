"""Datadog log intake client.

One POST per batch. Every failure is logged and swallowed; nothing is retried.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from tail_forwarder.config import ForwarderConfig
from tail_forwarder.models import OutputRecord

LEGACY_INTAKE_URL = "https://http-intake.logs.datadoghq.com/v1/input/{api_key}"
SITE_INTAKE_URL = "https://http-intake.logs.{site}/api/v2/logs"
API_KEY_HEADER = "DD-API-KEY"

logger = logging.getLogger("tail_forwarder.delivery")


@dataclass(frozen=True, slots=True)
class IntakeEndpoint:
    url: str
    headers: dict[str, str]


def resolve_endpoint(config: ForwarderConfig) -> IntakeEndpoint:
    """Pick the intake URL: site-specific v2 when a site is set, else the legacy v1 path."""
    api_key = config.api_key or ""
    site = (config.site or "").strip().strip("/")
    if site:
        url = SITE_INTAKE_URL.format(site=site)
    else:
        url = LEGACY_INTAKE_URL.format(api_key=api_key)
    return IntakeEndpoint(
        url=url,
        headers={"Content-Type": "application/json", API_KEY_HEADER: api_key},
    )


def check_config(config: ForwarderConfig) -> bool:
    """Log one error and return ``False`` when required settings are absent."""
    missing = config.missing_settings()
    if missing:
        logger.error("%s is required", " and ".join(missing), extra={"missing_settings": missing})
        return False
    return True


async def deliver(
    records: Sequence[OutputRecord],
    config: ForwarderConfig,
    *,
    client: httpx.AsyncClient | None = None,
) -> None:
    """Send ``records`` to Datadog as a single JSON array."""
    if not check_config(config):
        return
    await post_records(records, config, client=client)


async def post_records(
    records: Sequence[OutputRecord],
    config: ForwarderConfig,
    *,
    client: httpx.AsyncClient | None = None,
) -> None:
    """POST without re-checking config; callers validate first."""
    try:
        endpoint = resolve_endpoint(config)
        body = json.dumps([record.to_payload() for record in records], default=str)
        if client is None:
            async with httpx.AsyncClient() as owned_client:
                response = await owned_client.post(endpoint.url, content=body, headers=endpoint.headers)
        else:
            response = await client.post(endpoint.url, content=body, headers=endpoint.headers)

        if not response.is_success:
            logger.error(
                "Failed to send logs to Datadog: %s %s %s",
                response.status_code,
                response.reason_phrase,
                response.text,
                extra={"status_code": response.status_code, "record_count": len(records)},
            )
            return

        logger.info(
            "Successfully sent %d log entries to Datadog",
            len(records),
            extra={"record_count": len(records)},
        )
    except Exception as exc:  # noqa: BLE001 - delivery is fire-and-forget.
        logger.exception(
            "Error delivering logs to Datadog: %s: %s",
            type(exc).__name__,
            exc,
            extra={"record_count": len(records)},
        )
