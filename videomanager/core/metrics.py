from __future__ import annotations

"""Prometheus counters for object-store calls and catalog mutations.

Exposed at `GET /metrics` by the ops router.
"""

from prometheus_client import Counter

store_ops_total = Counter(
    "videomanager_store_ops_total",
    "Object store calls issued",
    labelnames=("op", "result"),
)
lifecycle_total = Counter(
    "videomanager_lifecycle_total",
    "Catalog mutations (video lifecycle and folder operations)",
    labelnames=("operation", "result"),
)


def inc_store_op(op: str, result: str) -> None:
    store_ops_total.labels(op=op, result=result).inc()


def inc_lifecycle(operation: str, result: str) -> None:
    lifecycle_total.labels(operation=operation, result=result).inc()


__all__ = ["inc_store_op", "inc_lifecycle", "store_ops_total", "lifecycle_total"]
