"""
Unit tests for telemetry sinks.
"""

from unittest.mock import MagicMock

import pytest
from prometheus_client import REGISTRY

from tryon_assets.models.enums import ErrorKind
from tryon_assets.telemetry import (
    CompositeTelemetrySink,
    InMemoryTelemetrySink,
    NullTelemetrySink,
    PrometheusTelemetrySink,
    StructlogTelemetrySink,
    TelemetryEvent,
    create_telemetry_sink,
    record_event,
    safe_record,
)


def event(component="asset.fetch", outcome="success", **kwargs) -> TelemetryEvent:
    return TelemetryEvent(component=component, outcome=outcome, **kwargs)


def sample(name, labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


# ============================================================================
# safe_record / composite
# ============================================================================


def test_safe_record_swallows_sink_errors():
    sink = MagicMock()
    sink.record.side_effect = RuntimeError("disk full")

    safe_record(sink, event())

    sink.record.assert_called_once()


def test_safe_record_none_sink():
    safe_record(None, event())


def test_record_event_builds_and_records():
    sink = InMemoryTelemetrySink()

    record_event(sink, component="loader", outcome="loaded", reference="a.glb")

    assert [(e.component, e.outcome, e.reference) for e in sink.events] == [("loader", "loaded", "a.glb")]


def test_record_event_drops_invalid_fields():
    sink = MagicMock()

    record_event(sink, component="loader", outcome="loaded", duration_ms=-1.0)
    record_event(sink, component="loader", outcome="loaded", reference=object())

    sink.record.assert_not_called()


def test_record_event_none_sink():
    record_event(None, component="loader", outcome="loaded")


def test_composite_continues_after_failing_sink():
    broken = MagicMock()
    broken.record.side_effect = RuntimeError("boom")
    memory = InMemoryTelemetrySink()

    CompositeTelemetrySink([broken, memory]).record(event())

    assert len(memory.events) == 1


def test_event_is_immutable():
    e = event()
    with pytest.raises(Exception):
        e.outcome = "failure"


# ============================================================================
# In-memory sink
# ============================================================================


def test_in_memory_stats():
    sink = InMemoryTelemetrySink()
    sink.record(event(outcome="retry", attempt=1, error_kind=ErrorKind.TRANSPORT))
    sink.record(event(outcome="success", attempt=2))
    sink.record(event(component="loader", outcome="candidate_failed", error_kind=ErrorKind.INVALID_ASSET))
    sink.record(event(component="orchestrator", outcome="completed"))

    stats = sink.stats()

    assert stats["total_events"] == 4
    assert stats["total_errors"] == 2
    assert stats["errors_by_component"] == {"asset.fetch": 1, "loader": 1}
    assert stats["recent_errors"][-1]["error_kind"] == "invalid_asset"


def test_in_memory_filters_and_clear():
    sink = InMemoryTelemetrySink()
    sink.record(event(component="loader", outcome="loaded"))
    sink.record(event(component="asset.fetch", outcome="retry"))

    assert len(sink.by_component("loader")) == 1
    assert len(sink.by_outcome("retry")) == 1
    sink.clear()
    assert sink.events == []


def test_null_and_structlog_sinks_accept_events():
    NullTelemetrySink().record(event())
    StructlogTelemetrySink().record(event(outcome="failure", error_kind=ErrorKind.TRANSPORT))


# ============================================================================
# Prometheus sink
# ============================================================================


def test_prometheus_sink_routes_by_component():
    sink = PrometheusTelemetrySink()
    retry_labels = {"component": "generation.poll", "outcome": "retry", "error_kind": "transport"}
    task_labels = {"outcome": "completed"}
    fallback_labels = {"error_kind": "capability"}
    load_labels = {"outcome": "placeholder"}

    before = (
        sample("tryon_transport_retries_total", retry_labels),
        sample("tryon_generation_tasks_total", task_labels),
        sample("tryon_asset_fallbacks_total", fallback_labels),
        sample("tryon_asset_loads_total", load_labels),
    )

    sink.record(event(component="generation.poll", outcome="retry", error_kind=ErrorKind.TRANSPORT))
    sink.record(event(component="orchestrator", outcome="completed", duration_ms=1500))
    sink.record(event(component="loader", outcome="candidate_failed", error_kind=ErrorKind.CAPABILITY))
    sink.record(event(component="loader", outcome="placeholder"))

    after = (
        sample("tryon_transport_retries_total", retry_labels),
        sample("tryon_generation_tasks_total", task_labels),
        sample("tryon_asset_fallbacks_total", fallback_labels),
        sample("tryon_asset_loads_total", load_labels),
    )
    assert [a - b for a, b in zip(after, before)] == [1.0, 1.0, 1.0, 1.0]


# ============================================================================
# Factory
# ============================================================================


def test_create_telemetry_sink_respects_flags(test_settings):
    extra = InMemoryTelemetrySink()

    test_settings.PROMETHEUS_ENABLED = False
    test_settings.TELEMETRY_LOG_EVENTS = False
    sink = create_telemetry_sink(test_settings, extra_sinks=[extra])
    assert sink.sinks == [extra]

    test_settings.PROMETHEUS_ENABLED = True
    test_settings.TELEMETRY_LOG_EVENTS = True
    sink = create_telemetry_sink(test_settings)
    assert [type(s) for s in sink.sinks] == [StructlogTelemetrySink, PrometheusTelemetrySink]
