from __future__ import annotations
from typing import Any, Dict, Optional

try:
    from chz import chz, field
except Exception as exc:  # pragma: no cover
    raise ImportError("chz is required: https://github.com/openai/chz") from exc


@chz
class StdoutConfig:
    level: Optional[str] = field(default=None)


@chz
class FileConfig:
    path: str = field()
    level: Optional[str] = field(default=None)


@chz
class ExporterConfig:
    kind: str = field(default="console", doc="console or otlp")
    pretty: bool = field(default=True)
    protocol: str = field(default="http/protobuf")
    endpoint: Optional[str] = field(default=None)
    insecure: bool = field(default=True)
    headers: Dict[str, str] = field(default_factory=dict)
    compression: Optional[str] = field(default=None)
    timeout: Optional[float] = field(default=None)


@chz
class TelemetryConfig:
    service_name: str = field(default="web-backend")
    service_version: Optional[str] = field(default=None)
    environment: Optional[str] = field(default=None)
    stdout: Optional[StdoutConfig] = field(default_factory=StdoutConfig)
    file: Optional[FileConfig] = field(default=None)
    level: str = field(default="INFO")
    utc: bool = field(default=True)
    dev_color: bool = field(default=False)
    include_code: bool = field(default=True)
    exporter: ExporterConfig = field(default_factory=ExporterConfig)
    tracer_name: str = field(default="example-tracer")
    span_name: str = field(default="example-span")
    identity_fallback: bool = field(
        default=False, doc="Continue with an empty host identity if interfaces cannot be listed"
    )
    record_indent: int = field(default=2)
    resource_attributes: Dict[str, Any] = field(default_factory=dict)


def severity_number(levelno: int) -> int:
    """Map stdlib logging levels to OpenTelemetry severity_number values (1-24)."""

    if levelno <= 0:
        return 1  # TRACE
    if levelno < 20:
        return 5  # DEBUG
    if levelno < 30:
        return 9  # INFO
    if levelno < 40:
        return 13  # WARN
    if levelno < 50:
        return 17  # ERROR
    return 21  # FATAL
