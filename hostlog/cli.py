"""Command line demo: resolve the host identity, emit one span, print one record.

    python -m hostlog service_name=orders exporter.kind=otlp
"""

from __future__ import annotations

import sys
from typing import Optional, TextIO

import chz

from .adapter import get_logger
from .config import TelemetryConfig
from .identity import HostIdentityError, resolve
from .logger import configure_logging
from .record import build_log_entry, render_log_entry
from .telemetry import (
    build_resource,
    build_span_exporter,
    build_tracer_provider,
    emit_example_span,
)


def run(cfg: TelemetryConfig, out: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    configure_logging(cfg)
    log = get_logger(__name__, cfg)
    exporter, cleanup = build_span_exporter(cfg.exporter)
    try:
        identity = resolve(strict=not cfg.identity_fallback)
    except HostIdentityError:
        log.critical("host identity unavailable, exiting", exc_info=True)
        exporter.shutdown()
        if cleanup:
            cleanup()
        return 1
    log = get_logger(__name__, cfg, identity)
    provider = None
    try:
        provider = build_tracer_provider(build_resource(cfg, identity), exporter)
        tracer = provider.get_tracer(cfg.tracer_name)
        with emit_example_span(tracer, cfg.span_name) as span:
            entry = build_log_entry(cfg, identity, span)
            log.info("Log Entry in JSON format:")
            out.write(render_log_entry(entry, cfg.record_indent) + "\n")
            out.flush()
            log.info("OpenTelemetry is set up and running!")
    finally:
        if provider is not None:
            provider.shutdown()
        else:
            exporter.shutdown()
        if cleanup:
            cleanup()
    return 0


def main(cfg: TelemetryConfig) -> int:
    return run(cfg)


def cli() -> None:
    raise SystemExit(chz.nested_entrypoint(main))
