"""Top‑level package for hostlog.

Exposes `TelemetryConfig`, `ExporterConfig`, `StdoutConfig`, `FileConfig`,
`HostIdentity`, `resolve`, `configure_logging`, `get_logger`, `log_context`
and `run`. See module docstrings for usage examples.
"""

__version__ = "0.1.0"

from .config import ExporterConfig, FileConfig, StdoutConfig, TelemetryConfig
from .identity import HostIdentity, HostIdentityError, resolve
from .logger import configure_logging
from .adapter import get_logger, log_context
from .cli import run

__all__ = [
    "TelemetryConfig",
    "ExporterConfig",
    "StdoutConfig",
    "FileConfig",
    "HostIdentity",
    "HostIdentityError",
    "resolve",
    "configure_logging",
    "get_logger",
    "log_context",
    "run",
]
