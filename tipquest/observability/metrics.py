"""
Prometheus metrics definitions for tipquest.

Metrics are registered in the default prometheus_client registry; the host
application decides whether and where to expose them. Recording helpers are
no-ops when ENABLE_PROMETHEUS is false.
"""

from prometheus_client import Counter, Histogram

from tipquest.config import ENABLE_PROMETHEUS

# =============================================================================
# Achievement Engine Metrics
# =============================================================================

achievement_recomputes_total = Counter(
    "tipquest_achievement_recomputes_total",
    "Total achievement recomputes",
    ["outcome"],  # outcome: ok/degraded/anonymous
)

achievement_recompute_duration_seconds = Histogram(
    "tipquest_achievement_recompute_duration_seconds",
    "Achievement recompute time in seconds, store I/O included",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

achievements_unlocked_total = Counter(
    "tipquest_achievements_unlocked_total",
    "Total achievements unlocked and persisted",
    ["tier"],
)

# =============================================================================
# Progress Store Metrics
# =============================================================================

progress_store_errors_total = Counter(
    "tipquest_progress_store_errors_total",
    "Progress store failures",
    ["operation"],  # operation: get/upsert
)

progress_store_writes_total = Counter(
    "tipquest_progress_store_writes_total",
    "Progress records written",
    ["kind"],  # kind: unlock/progress
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_recompute(outcome: str, duration_seconds: float) -> None:
    """Record one finished recompute"""
    if not ENABLE_PROMETHEUS:
        return
    achievement_recomputes_total.labels(outcome=outcome).inc()
    achievement_recompute_duration_seconds.observe(duration_seconds)


def record_unlock(tier: str) -> None:
    if not ENABLE_PROMETHEUS:
        return
    achievements_unlocked_total.labels(tier=tier).inc()


def record_store_write(kind: str) -> None:
    if not ENABLE_PROMETHEUS:
        return
    progress_store_writes_total.labels(kind=kind).inc()


def record_store_error(operation: str) -> None:
    if not ENABLE_PROMETHEUS:
        return
    progress_store_errors_total.labels(operation=operation).inc()
