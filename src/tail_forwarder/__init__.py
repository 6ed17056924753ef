"""Ship Cloudflare Workers tail events to Datadog log intake."""

from tail_forwarder.config import ForwarderConfig
from tail_forwarder.delivery import deliver
from tail_forwarder.handler import tail
from tail_forwarder.models import FetchTrigger, LogEntry, OutputRecord, TraceEvent, TriggerKind, UnknownTrigger
from tail_forwarder.transform import transform

__all__ = [
    "FetchTrigger",
    "ForwarderConfig",
    "LogEntry",
    "OutputRecord",
    "TraceEvent",
    "TriggerKind",
    "UnknownTrigger",
    "deliver",
    "tail",
    "transform",
]
