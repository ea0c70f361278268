"""
Metrics definitions for RoadSafe.

This module defines Prometheus metrics for monitoring
the position evaluation loop and provider traffic.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
positions_received = Counter(
    "positions_received_total",
    "Number of position samples received",
    ["source"]
)

location_errors = Counter(
    "location_errors_total",
    "Number of errors reported by the location provider"
)

alerts_emitted = Counter(
    "alerts_emitted_total",
    "Number of alert events emitted",
    ["category"]
)

notices_emitted = Counter(
    "notices_emitted_total",
    "Number of non-alert notices emitted",
    ["kind"]
)

provider_requests = Counter(
    "provider_requests_total",
    "Outbound provider requests",
    ["provider"]
)

provider_failures = Counter(
    "provider_failures_total",
    "Provider calls that failed, timed out or returned malformed data",
    ["provider", "reason"]
)

stale_responses = Counter(
    "stale_responses_total",
    "Provider responses discarded because a newer request was issued",
    ["provider"]
)

recalculations = Counter(
    "route_recalculations_total",
    "Route recalculations triggered by displacement"
)

sink_failures = Counter(
    "sink_failures_total",
    "Alert sink dispatch failures"
)

outbox_dropped = Counter(
    "outbox_dropped_total",
    "Alerts and notices dropped because the outbox was full"
)

# 히스토그램 메트릭
evaluation_seconds = Histogram(
    "evaluation_duration_seconds",
    "Time spent applying one inbox message to the engine",
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5]
)

provider_seconds = Histogram(
    "provider_duration_seconds",
    "Provider round-trip latency",
    ["provider"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# 게이지 메트릭
inbox_depth = Gauge(
    "inbox_depth",
    "Current depth of orchestrator inbox"
)

outbox_depth = Gauge(
    "outbox_depth",
    "Alerts and notices waiting for the sink"
)

inflight_requests = Gauge(
    "inflight_provider_requests",
    "Provider requests currently in flight"
)

uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
