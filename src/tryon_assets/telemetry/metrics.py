"""Custom Prometheus metrics for the Try-On Asset Layer.

These metrics are fed by PrometheusTelemetrySink and can be exposed by the
surrounding application with prometheus_client's exposition helpers.
Alert rules should be configured for:
- transport_retries_total (high retry rate indicates an unstable service)
- generation_tasks_total{status="failed"} (AI could not produce results)
- asset_fallbacks_total (mirrors failing, users seeing placeholders)
"""

from prometheus_client import Counter, Histogram

# === Retry Metrics ===

transport_retries_total = Counter(
    "tryon_transport_retries_total",
    "Retry policy attempts by component and outcome",
    ["component", "outcome", "error_kind"],
)
"""
RetryPolicy attempts by call site and outcome.

Labels:
- component: generation.submit, generation.poll, asset.fetch
- outcome: success, retry, failure
- error_kind: ErrorKind value, or "none" on success

Alert thresholds:
- WARN: retry rate > 10% of attempts
- CRITICAL: failure rate > 5% of operations
"""

operation_duration_seconds = Histogram(
    "tryon_operation_duration_seconds",
    "Elapsed time reported with telemetry events",
    ["component", "outcome"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 15.0, 30.0, 60.0, 300.0, 600.0],
)

# === Task Metrics ===

generation_tasks_total = Counter(
    "tryon_generation_tasks_total",
    "Generation task lifecycle events by outcome",
    ["outcome"],
)
"""
Orchestrator events.

Labels:
- outcome: submitted, completed, failed, timed_out, discarded,
  transport_unavailable
"""

# === Loader Metrics ===

asset_loads_total = Counter(
    "tryon_asset_loads_total",
    "Asset resolutions by outcome",
    ["outcome"],
)

asset_fallbacks_total = Counter(
    "tryon_asset_fallbacks_total",
    "Candidates skipped by the asset loader by error kind",
    ["error_kind"],
)
"""
Candidate transitions in the fallback chain.

High counts for a single error kind point at a failing mirror
(transport), corrupt output (invalid_asset) or unsupported devices
(capability).
"""
