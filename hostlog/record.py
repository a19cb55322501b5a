"""The hand-built example log record printed by the demo.

The record mirrors the OpenTelemetry log data model field names and carries the
host identity both inside ``Resource`` and as top-level ``host.*`` keys.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from opentelemetry.trace import Span

from . import __version__
from .config import TelemetryConfig, severity_number
from .identity import HostIdentity

PLACEHOLDER_TRACE_ID = "abcd1234"
PLACEHOLDER_SPAN_ID = "efgh5678"
OBSERVED_DELAY = timedelta(milliseconds=100)


def _rfc3339(dt: datetime) -> str:
    s = dt.isoformat(timespec="seconds")
    return s.replace("+00:00", "Z") if s.endswith("+00:00") else s


def _span_ids(span: Optional[Span]) -> tuple[str, str]:
    if span is not None:
        sc = span.get_span_context()
        if sc.is_valid:
            return f"{sc.trace_id:032x}", f"{sc.span_id:016x}"
    return PLACEHOLDER_TRACE_ID, PLACEHOLDER_SPAN_ID


def build_log_entry(
    cfg: TelemetryConfig,
    identity: HostIdentity,
    span: Optional[Span] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    if now is None:
        now = datetime.now(timezone.utc) if cfg.utc else datetime.now().astimezone()
    trace_id, span_id = _span_ids(span)
    return {
        "Timestamp": _rfc3339(now),
        "ObservedTimestamp": _rfc3339(now + OBSERVED_DELAY),
        "TraceId": trace_id,
        "SpanId": span_id,
        "SeverityText": "ERROR",
        "SeverityNumber": str(severity_number(logging.ERROR)),
        "Body": "An error occurred while processing the request.",
        "Resource": {"service.name": cfg.service_name, **identity.attributes()},
        "InstrumentationScope": {"Name": "hostlog", "Version": __version__},
        "Attributes": {
            "http.method": "GET",
            "http.status_code": "500",
            "http.url": "http://example.com",
            "db.operation": "SELECT",
        },
        "EventData": {"event.name": "request_error", "event.type": "error"},
        "Exception": {
            "exception.message": "Database connection failed",
            "exception.type": "DatabaseError",
            "exception.stacktrace": "at com.example.Database.connect(Database.java:42)\n...more stack trace...",
        },
        "Duration": "100ms",
        "Status": "failed",
        "LogLevel": "error",
        **identity.attributes(),
    }


def render_log_entry(entry: Dict[str, Any], indent: int = 2) -> str:
    return json.dumps(entry, ensure_ascii=False, indent=indent)
