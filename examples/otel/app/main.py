"""Example application that ships the demo span to an OpenTelemetry Collector."""

from __future__ import annotations

import os

from hostlog import ExporterConfig, StdoutConfig, TelemetryConfig, run


def main() -> None:
    collector_endpoint = os.getenv(
        "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "http://otel-collector:4318/v1/traces"
    )
    cfg = TelemetryConfig(
        service_name="web-backend",
        environment=os.getenv("DEPLOYMENT_ENVIRONMENT"),
        stdout=StdoutConfig(level="INFO"),
        exporter=ExporterConfig(kind="otlp", endpoint=collector_endpoint),
        identity_fallback=True,
    )
    raise SystemExit(run(cfg))


if __name__ == "__main__":
    main()
