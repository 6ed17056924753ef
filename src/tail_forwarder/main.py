"""CLI entrypoint for replaying tail event batches into Datadog."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from rich import print

from tail_forwarder.config import settings
from tail_forwarder.delivery import resolve_endpoint
from tail_forwarder.handler import coerce_events, tail
from tail_forwarder.telemetry import configure_logging
from tail_forwarder.transform import transform

app = typer.Typer(help="Forward Cloudflare tail events to Datadog logs")


def _mask(secret: str | None) -> str | None:
    if not secret:
        return None
    return f"{secret[:4]}..." if len(secret) > 8 else "***"


def _load_events(events_file: Path) -> list[Any]:
    try:
        payload = json.loads(events_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Cannot read trace events from {events_file}: {exc}") from exc

    if isinstance(payload, dict):
        return [payload]
    if not isinstance(payload, list):
        raise typer.BadParameter("Trace events file must hold a JSON object or array")
    return payload


@app.command("show-config")
def show_config() -> None:
    """Show effective settings with the API key masked."""
    config = settings.forwarder_config()
    intake_url = resolve_endpoint(config).url
    if config.api_key:
        intake_url = intake_url.replace(config.api_key, "<api-key>")
    print(
        {
            "datadog_api_key": _mask(settings.datadog_api_key),
            "service_name": settings.service_name,
            "environment": settings.environment or "dev",
            "datadog_site": settings.datadog_site,
            "emit_summary_records": settings.emit_summary_records,
            "intake_url": intake_url,
            "missing_settings": config.missing_settings(),
        }
    )


@app.command()
def preview(events_file: Path = typer.Argument(..., help="JSON file with one trace event or an array")) -> None:
    """Print the Datadog records a batch would produce, without sending."""
    events = coerce_events(_load_events(events_file))
    records = transform(events, settings.forwarder_config())
    print([record.to_payload() for record in records])


@app.command()
def forward(events_file: Path = typer.Argument(..., help="JSON file with one trace event or an array")) -> None:
    """Send a batch of trace events to Datadog."""
    configure_logging(settings.log_level)
    config = settings.forwarder_config()
    if config.missing_settings():
        print({"error": "missing settings", "missing_settings": config.missing_settings()})
        raise typer.Exit(code=1)

    events = _load_events(events_file)
    asyncio.run(tail(events, config))


if __name__ == "__main__":
    app()
