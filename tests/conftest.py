import importlib
import logging
import socket
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Iterator, List, cast

pytest = cast(Any, importlib.import_module("pytest"))

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import psutil  # noqa: E402

import hostlog.identity as hostlog_identity  # noqa: E402


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    """Ensure each test starts with a clean logging configuration."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
    logging.captureWarnings(False)
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)
    logging.captureWarnings(False)


def ipv4(address: str) -> Any:
    return SimpleNamespace(family=socket.AF_INET, address=address)


def ipv6(address: str) -> Any:
    return SimpleNamespace(family=socket.AF_INET6, address=address)


def link(address: str) -> Any:
    return SimpleNamespace(family=psutil.AF_LINK, address=address)


@pytest.fixture
def fake_host(monkeypatch: Any):
    """Install a fixed hostname and interface table for the resolver."""

    def install(interfaces: Dict[str, List[Any]], hostname: str = "web-01") -> None:
        monkeypatch.setattr(hostlog_identity, "_hostname", lambda: hostname)
        monkeypatch.setattr(hostlog_identity, "_net_if_addrs", lambda: dict(interfaces))

    return install
