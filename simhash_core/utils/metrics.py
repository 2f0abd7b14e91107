"""
SimHash core: Prometheus metrics.

Collectors are registered on the default ``prometheus_client`` registry when
this module is first imported.  The latency histogram shares one bucket
configuration so that dashboards can derive percentiles with
``histogram_quantile()``, for example::

    histogram_quantile(0.95, rate(simhash_grouping_latency_seconds_bucket[5m]))

"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Histogram, generate_latest

__all__ = [
    "FINGERPRINTS_TOTAL",
    "LATENCY_BUCKETS",
    "LAT_GROUPING",
    "TREE_PROBES_TOTAL",
    "get_metrics_content_type",
    "get_prometheus_metrics",
    "measure_time",
]

# Buckets in seconds, from sub-millisecond batches up to large corpora.
LATENCY_BUCKETS = [0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, 30]

FINGERPRINTS_TOTAL = Counter(
    "simhash_fingerprints_total",
    "Fingerprints computed",
    ("method", "features"),
)
TREE_PROBES_TOTAL = Counter(
    "simhash_tree_probes_total",
    "Approximate lookups against a SimMap tree",
    ("outcome",),
)
LAT_GROUPING = Histogram(
    "simhash_grouping_latency_seconds",
    "Near-duplicate grouping latency",
    buckets=LATENCY_BUCKETS,
)

P = ParamSpec("P")
R = TypeVar("R")


def measure_time(metric: Histogram) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator recording each call's duration on *metric*."""

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with metric.time():
                return fn(*args, **kwargs)

        return wrapper

    return decorator


def get_prometheus_metrics() -> str:
    """Return the latest metrics as plaintext (Prometheus exposition format)."""
    return generate_latest(REGISTRY).decode()


def get_metrics_content_type() -> str:
    return str(CONTENT_TYPE_LATEST)
