"""Trace exporter, resource and tracer provider setup.

Nothing here touches the global OpenTelemetry tracer provider: the provider is
returned to the caller, which hands tracers to whatever needs them.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.trace import Span, Tracer

from .config import ExporterConfig, TelemetryConfig
from .identity import HostIdentity

logger = logging.getLogger(__name__)


def build_resource(cfg: TelemetryConfig, identity: HostIdentity) -> Resource:
    attrs: Dict[str, Any] = {"service.name": cfg.service_name}
    if cfg.service_version:
        attrs["service.version"] = cfg.service_version
    if cfg.environment:
        attrs["deployment.environment"] = cfg.environment
    attrs.update(identity.attributes())
    attrs.update(cfg.resource_attributes)
    return Resource.create(attrs)


def _normalize_protocol(protocol: str) -> str:
    value = (protocol or "").strip().lower()
    if value in {"http", "http/protobuf", "http_protobuf", "http-protobuf"}:
        return "http/protobuf"
    if value in {"grpc", "grpc/protobuf", "grpc_proto", "grpc-protobuf"}:
        return "grpc"
    raise ValueError(f"Unsupported OTLP protocol '{protocol}'. Expected 'http/protobuf' or 'grpc'.")


def _resolve_otlp_endpoint(protocol: str, exporter_cfg: ExporterConfig) -> str:
    if exporter_cfg.endpoint:
        return exporter_cfg.endpoint
    env = os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
    if env:
        return env
    env = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if env:
        return env
    return "http://localhost:4318/v1/traces" if protocol == "http/protobuf" else "localhost:4317"


def _console_exporter(exporter_cfg: ExporterConfig) -> SpanExporter:
    indent = 4 if exporter_cfg.pretty else None
    return ConsoleSpanExporter(formatter=lambda span: span.to_json(indent=indent) + os.linesep)


def _otlp_http_exporter(
    endpoint: str, exporter_cfg: ExporterConfig
) -> tuple[SpanExporter, Optional[Callable[[], None]]]:
    try:
        from opentelemetry.exporter.otlp.proto.http import Compression
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    except Exception as exc:  # pragma: no cover - optional dependency handling
        raise RuntimeError(
            "OTLP HTTP exporter requested, but opentelemetry-exporter-otlp-proto-http is not installed."
        ) from exc
    kwargs: Dict[str, Any] = {"endpoint": endpoint}
    if exporter_cfg.headers:
        kwargs["headers"] = dict(exporter_cfg.headers)
    if exporter_cfg.compression:
        kwargs["compression"] = Compression(exporter_cfg.compression.lower())
    if exporter_cfg.timeout is not None:
        kwargs["timeout"] = float(exporter_cfg.timeout)
    cleanup: Optional[Callable[[], None]] = None
    if exporter_cfg.insecure:
        try:
            import requests
        except Exception as exc:  # pragma: no cover - optional dependency handling
            raise RuntimeError(
                "HTTP OTLP exporting requested with insecure=True, but the requests package is unavailable."
            ) from exc
        session = requests.Session()
        session.verify = False
        kwargs["session"] = session
        cleanup = session.close
    return OTLPSpanExporter(**kwargs), cleanup


_GRPC_COMPRESSION: Dict[str, Callable[[Any], Any]] = {
    "gzip": lambda grpc: grpc.Compression.Gzip,
    "deflate": lambda grpc: grpc.Compression.Deflate,
    "none": lambda grpc: grpc.Compression.NoCompression,
}


def _otlp_grpc_exporter(endpoint: str, exporter_cfg: ExporterConfig) -> SpanExporter:
    try:
        import grpc
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    except Exception as exc:  # pragma: no cover - optional dependency handling
        raise RuntimeError(
            "OTLP gRPC exporter requested, but opentelemetry-exporter-otlp-proto-grpc is not installed."
        ) from exc
    kwargs: Dict[str, Any] = {"endpoint": endpoint, "insecure": exporter_cfg.insecure}
    if exporter_cfg.headers:
        kwargs["headers"] = dict(exporter_cfg.headers)
    if exporter_cfg.compression:
        choice = _GRPC_COMPRESSION.get(exporter_cfg.compression.lower())
        if choice is None:
            raise ValueError(f"Unsupported gRPC compression '{exporter_cfg.compression}'.")
        kwargs["compression"] = choice(grpc)
    if exporter_cfg.timeout is not None:
        kwargs["timeout"] = float(exporter_cfg.timeout)
    return OTLPSpanExporter(**kwargs)


def build_span_exporter(
    exporter_cfg: ExporterConfig,
) -> tuple[SpanExporter, Optional[Callable[[], None]]]:
    """Build the configured span exporter and an optional cleanup callback."""
    kind = (exporter_cfg.kind or "").strip().lower()
    if kind == "console":
        return _console_exporter(exporter_cfg), None
    if kind != "otlp":
        raise ValueError(f"Unsupported exporter kind '{exporter_cfg.kind}'. Expected 'console' or 'otlp'.")
    protocol = _normalize_protocol(exporter_cfg.protocol)
    endpoint = _resolve_otlp_endpoint(protocol, exporter_cfg)
    logger.info("exporting spans over OTLP", extra={"otlp.protocol": protocol, "otlp.endpoint": endpoint})
    if protocol == "http/protobuf":
        return _otlp_http_exporter(endpoint, exporter_cfg)
    return _otlp_grpc_exporter(endpoint, exporter_cfg), None


def build_tracer_provider(resource: Resource, exporter: SpanExporter) -> TracerProvider:
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


@contextmanager
def emit_example_span(tracer: Tracer, name: str) -> Iterator[Span]:
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("example", True)
        yield span
