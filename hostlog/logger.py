"""Root logging setup.

Every record is rendered as one JSON object per line (or a coloured line on a
TTY when ``dev_color`` is set). Host fields are never looked up here: they
arrive as extras bound by `get_logger` from the resolved `HostIdentity`, so a
record logged before resolution simply has none.
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from opentelemetry.trace import get_current_span

from .config import FileConfig, StdoutConfig, TelemetryConfig, severity_number

_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}

_COLORS = {
    logging.DEBUG: 36,
    logging.INFO: 32,
    logging.WARNING: 33,
    logging.ERROR: 31,
    logging.CRITICAL: 35,
}


def _timestamp(created: float, utc: bool) -> str:
    dt = datetime.fromtimestamp(created, tz=timezone.utc if utc else None)
    return dt.isoformat().replace("+00:00", "Z")


def trace_fields() -> Dict[str, Any]:
    """Ids of the span active in the current context, if any."""
    sc = get_current_span().get_span_context()
    if not sc.is_valid:
        return {}
    return {
        "trace_id": f"{sc.trace_id:032x}",
        "span_id": f"{sc.span_id:016x}",
        "trace_sampled": sc.trace_flags.sampled,
    }


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED}


def _exception_fields(record: logging.LogRecord) -> Dict[str, str]:
    if not record.exc_info or record.exc_info[0] is None:
        return {}
    etype, evalue, etb = record.exc_info
    return {
        "exception.type": etype.__name__,
        "exception.message": str(evalue),
        "exception.stacktrace": "".join(traceback.format_exception(etype, evalue, etb)).strip(),
    }


class JsonFormatter(logging.Formatter):
    def __init__(self, cfg: TelemetryConfig):
        super().__init__()
        self.cfg = cfg

    def format(self, record: logging.LogRecord) -> str:
        out: Dict[str, Any] = {
            "time": _timestamp(record.created, self.cfg.utc),
            "severity_text": record.levelname,
            "severity_number": severity_number(record.levelno),
            "body": record.getMessage(),
            "logger.name": record.name,
            "service.name": self.cfg.service_name,
        }
        if self.cfg.include_code:
            out["code.function.name"] = record.funcName
            out["code.line.number"] = record.lineno
        out.update(trace_fields())
        out.update(_extras(record))
        out.update(_exception_fields(record))
        return json.dumps(out, ensure_ascii=False, separators=(",", ":"), default=str)


class DevColorFormatter(logging.Formatter):
    def __init__(self, cfg: TelemetryConfig):
        super().__init__()
        self.cfg = cfg

    def format(self, record: logging.LogRecord) -> str:
        color = _COLORS.get(record.levelno, 37)
        line = (
            f"{_timestamp(record.created, self.cfg.utc)} "
            f"\x1b[{color}m{record.levelname:<8}\x1b[0m {record.name}"
        )
        host = "@".join(
            v for v in (getattr(record, "host.name", ""), getattr(record, "host.ip", "")) if v
        )
        if host:
            line += f" [{host}]"
        line += f" - {record.getMessage()}"
        if trace := trace_fields():
            line += f" trace_id={trace['trace_id']}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _is_tty(stream: Any) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _level(name: Optional[str]) -> Optional[int]:
    if name is None:
        return None
    if str(name).isdigit():
        return int(name)
    level = logging.getLevelName(str(name).upper())
    if isinstance(level, int):
        return level
    raise ValueError(f"Unknown log level: {name}")


def _handler(cfg: TelemetryConfig, target: Union[StdoutConfig, FileConfig]) -> logging.Handler:
    handler: logging.StreamHandler[Any]
    if isinstance(target, FileConfig):
        path = Path(target.path).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(f"Unable to create log directory '{path.parent}': {exc}") from exc
        handler = logging.FileHandler(path, encoding="utf-8")
        color = False
    else:
        handler = logging.StreamHandler(sys.stdout)
        color = cfg.dev_color and _is_tty(handler.stream)
    if (level := _level(target.level)) is not None:
        handler.setLevel(level)
    handler.setFormatter(DevColorFormatter(cfg) if color else JsonFormatter(cfg))
    return handler


def configure_logging(cfg: TelemetryConfig) -> None:
    """Replace the root handlers with the stdout and/or file targets in ``cfg``."""
    targets = [t for t in (cfg.stdout, cfg.file) if t is not None]
    if not targets:
        raise ValueError("At least one of stdout or file logging must be configured.")
    root_level = _level(cfg.level)
    handlers = [_handler(cfg, t) for t in targets]
    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.setLevel(root_level if root_level is not None else logging.INFO)
    for h in handlers:
        root.addHandler(h)
    logging.captureWarnings(True)
