import importlib
from typing import Any, cast

from opentelemetry import trace
from opentelemetry.sdk.trace.export import ConsoleSpanExporter
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

import hostlog.telemetry as hostlog_telemetry
from hostlog import ExporterConfig, HostIdentity, TelemetryConfig
from hostlog.telemetry import (
    build_resource,
    build_span_exporter,
    build_tracer_provider,
    emit_example_span,
)

pytest = cast(Any, importlib.import_module("pytest"))

IDENTITY = HostIdentity(hostname="web-01", ip="192.0.2.10", mac="aa:bb:cc:dd:ee:ff")


def test_resource_carries_host_identity() -> None:
    cfg = TelemetryConfig(
        service_version="1.0.0",
        environment="prod",
        resource_attributes={"team": "core"},
    )
    attrs = build_resource(cfg, IDENTITY).attributes
    assert attrs["service.name"] == "web-backend"
    assert attrs["service.version"] == "1.0.0"
    assert attrs["deployment.environment"] == "prod"
    assert attrs["host.name"] == "web-01"
    assert attrs["host.ip"] == "192.0.2.10"
    assert attrs["host.mac"] == "aa:bb:cc:dd:ee:ff"
    assert attrs["team"] == "core"


def test_resource_keeps_empty_identity_fields() -> None:
    attrs = build_resource(TelemetryConfig(), HostIdentity(hostname="web-01")).attributes
    assert attrs["host.ip"] == ""
    assert attrs["host.mac"] == ""


def test_console_exporter_by_default() -> None:
    exporter, cleanup = build_span_exporter(ExporterConfig())
    assert isinstance(exporter, ConsoleSpanExporter)
    assert cleanup is None


def test_unknown_exporter_kind_raises() -> None:
    with pytest.raises(ValueError):
        build_span_exporter(ExporterConfig(kind="zipkin"))


def test_normalize_protocol_variants() -> None:
    assert hostlog_telemetry._normalize_protocol("HTTP") == "http/protobuf"  # pyright: ignore[reportPrivateUsage]
    assert hostlog_telemetry._normalize_protocol("grpc") == "grpc"  # pyright: ignore[reportPrivateUsage]
    with pytest.raises(ValueError):
        hostlog_telemetry._normalize_protocol("udp")  # pyright: ignore[reportPrivateUsage]


def test_resolve_otlp_endpoint_env_precedence(monkeypatch: Any) -> None:
    exporter_cfg = ExporterConfig(kind="otlp")
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    assert (
        hostlog_telemetry._resolve_otlp_endpoint("http/protobuf", exporter_cfg)  # pyright: ignore[reportPrivateUsage]
        == "http://localhost:4318/v1/traces"
    )
    assert (
        hostlog_telemetry._resolve_otlp_endpoint("grpc", exporter_cfg)  # pyright: ignore[reportPrivateUsage]
        == "localhost:4317"
    )
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "https://collector:4318/v1/traces")
    assert (
        hostlog_telemetry._resolve_otlp_endpoint("http/protobuf", exporter_cfg)  # pyright: ignore[reportPrivateUsage]
        == "https://collector:4318/v1/traces"
    )
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "https://traces/v1/traces")
    assert (
        hostlog_telemetry._resolve_otlp_endpoint("http/protobuf", exporter_cfg)  # pyright: ignore[reportPrivateUsage]
        == "https://traces/v1/traces"
    )
    explicit = ExporterConfig(kind="otlp", endpoint="http://explicit:4318/v1/traces")
    assert (
        hostlog_telemetry._resolve_otlp_endpoint("http/protobuf", explicit)  # pyright: ignore[reportPrivateUsage]
        == "http://explicit:4318/v1/traces"
    )


def test_provider_is_not_registered_globally() -> None:
    before = trace.get_tracer_provider()
    provider = build_tracer_provider(build_resource(TelemetryConfig(), IDENTITY), InMemorySpanExporter())
    assert trace.get_tracer_provider() is before
    provider.shutdown()


def test_example_span_exported_with_resource() -> None:
    exporter = InMemorySpanExporter()
    provider = build_tracer_provider(build_resource(TelemetryConfig(), IDENTITY), exporter)
    tracer = provider.get_tracer("example-tracer")
    with emit_example_span(tracer, "example-span") as span:
        assert span.is_recording()
    provider.shutdown()
    spans = exporter.get_finished_spans()
    assert [s.name for s in spans] == ["example-span"]
    assert spans[0].resource.attributes["host.ip"] == "192.0.2.10"
    assert spans[0].instrumentation_scope.name == "example-tracer"
