"""
Telemetry sinks.

A sink is anything with `record(event) -> None`. Sinks are append-only and
shared by every component, so they never read-modify-write caller state.
Components never call `record` directly; they go through `record_event`
or `safe_record`, which guarantees a broken sink cannot affect control flow.
"""

from collections import Counter as TallyCounter
from typing import Any, Iterable, Protocol

import structlog

from tryon_assets.config import Settings
from tryon_assets.telemetry import metrics
from tryon_assets.telemetry.events import (
    COMPONENT_LOADER,
    COMPONENT_ORCHESTRATOR,
    TelemetryEvent,
)

logger = structlog.get_logger(__name__)

_FAILURE_OUTCOMES = {"failure", "failed", "candidate_failed", "timed_out", "transport_unavailable"}


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    def record(self, event: TelemetryEvent) -> None:
        ...


def safe_record(sink: TelemetrySink | None, event: TelemetryEvent) -> None:
    """Record an event, logging and discarding any sink failure."""
    if sink is None:
        return
    try:
        sink.record(event)
    except Exception as e:
        logger.warning(
            "Telemetry sink failed",
            sink=type(sink).__name__,
            component=event.component,
            outcome=event.outcome,
            error=str(e),
        )


def record_event(sink: TelemetrySink | None, **fields: Any) -> None:
    """Build a TelemetryEvent from fields and record it.

    A field set that does not form a valid event is logged and dropped,
    the same as a failing sink.
    """
    if sink is None:
        return
    try:
        event = TelemetryEvent(**fields)
    except Exception as e:
        logger.warning(
            "Telemetry event rejected",
            component=fields.get("component"),
            outcome=fields.get("outcome"),
            error=str(e),
        )
        return
    safe_record(sink, event)


class NullTelemetrySink:
    """Discards every event."""

    def record(self, event: TelemetryEvent) -> None:
        return None


class InMemoryTelemetrySink:
    """
    Keeps events in memory.

    Used by tests and by diagnostics screens that show recent failures.
    """

    def __init__(self) -> None:
        self.events: list[TelemetryEvent] = []

    def record(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def by_component(self, component: str) -> list[TelemetryEvent]:
        return [e for e in self.events if e.component == component]

    def by_outcome(self, outcome: str) -> list[TelemetryEvent]:
        return [e for e in self.events if e.outcome == outcome]

    def stats(self, recent: int = 10) -> dict[str, Any]:
        """
        Summarize recorded failures.

        Returns:
            Dict with total failure count, failures per component and the
            most recent failure events (newest last)
        """
        failures = [e for e in self.events if e.outcome in _FAILURE_OUTCOMES or e.outcome == "retry"]
        per_component = TallyCounter(e.component for e in failures)
        return {
            "total_events": len(self.events),
            "total_errors": len(failures),
            "errors_by_component": dict(per_component),
            "recent_errors": [
                {
                    "component": e.component,
                    "outcome": e.outcome,
                    "attempt": e.attempt,
                    "error_kind": e.error_kind.value if e.error_kind else None,
                    "timestamp": e.timestamp.isoformat(),
                }
                for e in failures[-recent:]
            ],
        }

    def clear(self) -> None:
        self.events = []


class StructlogTelemetrySink:
    """Writes every event to the structured log."""

    def __init__(self, logger_name: str = "tryon_assets.telemetry") -> None:
        self._logger = structlog.get_logger(logger_name)

    def record(self, event: TelemetryEvent) -> None:
        fields = event.model_dump(mode="json", exclude_none=True)
        fields.pop("timestamp", None)
        if event.outcome in _FAILURE_OUTCOMES:
            self._logger.warning("telemetry", **fields)
        else:
            self._logger.debug("telemetry", **fields)


class PrometheusTelemetrySink:
    """Feeds the Prometheus counters in tryon_assets.telemetry.metrics."""

    def record(self, event: TelemetryEvent) -> None:
        kind = event.error_kind.value if event.error_kind else "none"

        if event.component == COMPONENT_ORCHESTRATOR:
            metrics.generation_tasks_total.labels(outcome=event.outcome).inc()
        elif event.component == COMPONENT_LOADER:
            if event.outcome == "candidate_failed":
                metrics.asset_fallbacks_total.labels(error_kind=kind).inc()
            else:
                metrics.asset_loads_total.labels(outcome=event.outcome).inc()
        else:
            metrics.transport_retries_total.labels(
                component=event.component, outcome=event.outcome, error_kind=kind
            ).inc()

        metrics.operation_duration_seconds.labels(
            component=event.component, outcome=event.outcome
        ).observe(event.duration_ms / 1000.0)


class CompositeTelemetrySink:
    """Fans each event out to several sinks; one failing sink does not stop the rest."""

    def __init__(self, sinks: Iterable[TelemetrySink]) -> None:
        self.sinks = list(sinks)

    def record(self, event: TelemetryEvent) -> None:
        for sink in self.sinks:
            safe_record(sink, event)


def create_telemetry_sink(
    settings: Settings, extra_sinks: Iterable[TelemetrySink] = ()
) -> TelemetrySink:
    """
    Build the default sink stack from settings.

    Args:
        settings: Application settings (PROMETHEUS_ENABLED, TELEMETRY_LOG_EVENTS)
        extra_sinks: Additional sinks supplied by the surrounding application

    Returns:
        CompositeTelemetrySink over the enabled sinks
    """
    sinks: list[TelemetrySink] = []
    if settings.TELEMETRY_LOG_EVENTS:
        sinks.append(StructlogTelemetrySink())
    if settings.PROMETHEUS_ENABLED:
        sinks.append(PrometheusTelemetrySink())
    sinks.extend(extra_sinks)

    logger.debug("Telemetry sinks configured", sinks=[type(s).__name__ for s in sinks])
    return CompositeTelemetrySink(sinks)
