"""Diagnostic log output for the forwarder."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# httpx logs request URLs at INFO; the legacy intake URL carries the API key.
QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO") -> None:
    """Route diagnostics through rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
