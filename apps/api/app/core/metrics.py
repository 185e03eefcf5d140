"""CloudWatch Embedded Metric Format (EMF) metrics over the log stream.

Each call writes one JSON log line that CloudWatch turns into metrics, so
no SDK client is needed at runtime. Metrics are disabled with
``ENABLE_METRICS=false``.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, NamedTuple

from app.core.config import settings

logger = logging.getLogger(__name__)

_NUMERIC_SEGMENT = re.compile(r"/\d+")


class Metric(NamedTuple):
    name: str
    value: float
    unit: str = "Count"


def namespace() -> str:
    return settings.metrics_namespace or settings.app_name.replace(" ", "/")


def emit(
    metrics: list[Metric],
    dimensions: dict[str, str] | None = None,
    **metadata: Any,
) -> None:
    """Write one EMF entry holding ``metrics`` under shared ``dimensions``."""
    # Read per call so tests and operators can toggle it at runtime
    if not settings.enable_metrics or not metrics:
        return

    dimensions = dimensions or {}
    entry: dict[str, Any] = {
        "_aws": {
            "Timestamp": int(time.time() * 1000),
            "CloudWatchMetrics": [
                {
                    "Namespace": namespace(),
                    "Dimensions": [list(dimensions)] if dimensions else [],
                    "Metrics": [{"Name": m.name, "Unit": m.unit} for m in metrics],
                }
            ],
        },
        **dimensions,
        **metadata,
    }
    for metric in metrics:
        entry[metric.name] = metric.value
    logger.info(json.dumps(entry, default=str))


def normalize_path(path: str) -> str:
    """``/api/v1/members/17`` -> ``/api/v1/members/{id}``."""
    return _NUMERIC_SEGMENT.sub("/{id}", path)


def emit_http_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    **metadata: Any,
) -> None:
    emit(
        [Metric("RequestCount", 1), Metric("RequestDuration", duration_ms, "Milliseconds")],
        {"Method": method, "Path": normalize_path(path), "StatusCode": str(status_code)},
        request_path=path,
        **metadata,
    )


def emit_error(
    error_code: str,
    status_code: int,
    path: str,
    method: str,
    **metadata: Any,
) -> None:
    severity = "server_error" if status_code >= 500 else "client_error"
    emit(
        [Metric("ErrorCount", 1)],
        {
            "ErrorCode": error_code,
            "StatusCode": str(status_code),
            "Severity": severity,
            "Method": method,
            "Path": normalize_path(path),
        },
        request_path=path,
        **metadata,
    )


def emit_business_metric(
    metric_name: str,
    value: float,
    unit: str = "Count",
    category: str | None = None,
    **metadata: Any,
) -> None:
    """Domain counters: reminders sent, failed stats recalculations."""
    emit([Metric(metric_name, value, unit)], {"Category": category} if category else None, **metadata)
