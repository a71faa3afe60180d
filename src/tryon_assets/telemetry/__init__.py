"""Telemetry events, sinks and Prometheus metrics.

The telemetry sink is the only resource shared by the retry policy, the
orchestrator and the asset loader.
"""

from tryon_assets.telemetry.events import (
    COMPONENT_FETCH,
    COMPONENT_LOADER,
    COMPONENT_ORCHESTRATOR,
    COMPONENT_POLL,
    COMPONENT_SUBMIT,
    TelemetryEvent,
)
from tryon_assets.telemetry.sinks import (
    CompositeTelemetrySink,
    InMemoryTelemetrySink,
    NullTelemetrySink,
    PrometheusTelemetrySink,
    StructlogTelemetrySink,
    TelemetrySink,
    create_telemetry_sink,
    record_event,
    safe_record,
)

__all__ = [
    "COMPONENT_FETCH",
    "COMPONENT_LOADER",
    "COMPONENT_ORCHESTRATOR",
    "COMPONENT_POLL",
    "COMPONENT_SUBMIT",
    "TelemetryEvent",
    "TelemetrySink",
    "CompositeTelemetrySink",
    "InMemoryTelemetrySink",
    "NullTelemetrySink",
    "PrometheusTelemetrySink",
    "StructlogTelemetrySink",
    "create_telemetry_sink",
    "record_event",
    "safe_record",
]
