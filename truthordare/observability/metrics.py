"""Prometheus metrics for the job subsystem.

Defines counters, gauges, and histograms for monitoring:
- Job runs, outcomes and durations
- Content generation attempts and stored tasks
- AI provider request outcomes and latency
- Retention cleanup purges and reclaimed storage

Usage:
    from truthordare.observability.metrics import JOB_RUNS_TOTAL

    JOB_RUNS_TOTAL.labels(job="cleanup", status="succeeded").inc()

Metrics are exposed via the /metrics endpoint of the health server.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Private registry so tests and multiple app instances do not collide
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

JOB_RUNS_TOTAL = Counter(
    name="tod_job_runs_total",
    documentation="Total job executions by outcome",
    labelnames=["job", "status"],  # succeeded, failed, cancelled, skipped
    registry=REGISTRY,
)

GENERATION_ATTEMPTS = Counter(
    name="tod_generation_attempts_total",
    documentation="Generation combinations attempted",
    labelnames=["status"],  # success, failed
    registry=REGISTRY,
)

TASKS_GENERATED = Counter(
    name="tod_tasks_generated_total",
    documentation="Generated tasks persisted",
    labelnames=["type"],  # truth, dare
    registry=REGISTRY,
)

AI_REQUESTS_TOTAL = Counter(
    name="tod_ai_requests_total",
    documentation="Chat completion requests by outcome",
    labelnames=["status"],  # success, rate_limited, failed
    registry=REGISTRY,
)

CLEANUP_ROWS_PURGED = Counter(
    name="tod_cleanup_rows_purged_total",
    documentation="Soft-deleted rows permanently removed",
    labelnames=["table"],
    registry=REGISTRY,
)

# =============================================================================
# GAUGES
# =============================================================================

SCHEDULER_JOBS = Gauge(
    name="tod_scheduler_jobs",
    documentation="Registered jobs by state",
    labelnames=["state"],  # idle, running
    registry=REGISTRY,
)

STORAGE_RECLAIMED_BYTES = Gauge(
    name="tod_storage_reclaimed_bytes",
    documentation="Bytes reclaimed by the most recent storage reclamation",
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

JOB_DURATION = Histogram(
    name="tod_job_duration_seconds",
    documentation="Job execution duration in seconds",
    labelnames=["job"],
    buckets=(1, 5, 10, 30, 60, 300, 900, 1800, 3600, float("inf")),
    registry=REGISTRY,
)

AI_REQUEST_DURATION = Histogram(
    name="tod_ai_request_duration_seconds",
    documentation="Chat completion request duration in seconds",
    buckets=(0.5, 1, 2, 5, 10, 30, 60, 120, float("inf")),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Render all metrics in Prometheus exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Content-Type header value for the metrics response."""
    return CONTENT_TYPE_LATEST
