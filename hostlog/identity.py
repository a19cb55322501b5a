"""Host identity discovery.

`resolve()` returns the hostname, the first non-loopback IPv4 address and the
hardware address of the interface that owns it, for tagging telemetry with
where it was produced. Interfaces are walked in the order the OS reports them.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Any, Dict, List, Optional, Tuple

import psutil
from chz import chz, field

logger = logging.getLogger(__name__)


class HostIdentityError(RuntimeError):
    """Network interfaces could not be enumerated."""


@chz
class HostIdentity:
    hostname: str = field(default="")
    ip: str = field(default="")
    mac: str = field(default="")

    def attributes(self) -> Dict[str, str]:
        return {"host.name": self.hostname, "host.ip": self.ip, "host.mac": self.mac}


def _hostname() -> str:
    return socket.gethostname()


def _net_if_addrs() -> Dict[str, List[Any]]:
    return psutil.net_if_addrs()


def _normalize_mac(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.replace("-", ":").lower()


def _is_non_loopback_ipv4(addr: Any) -> bool:
    if addr.family != socket.AF_INET:
        return False
    try:
        return not ipaddress.IPv4Address(addr.address).is_loopback
    except ValueError:
        return False


def _first_ipv4_and_mac(interfaces: Dict[str, List[Any]]) -> Tuple[str, str]:
    ip = mac = ""
    for name, addrs in interfaces.items():
        link = next((a.address for a in addrs if a.family == psutil.AF_LINK), None)
        for addr in addrs:
            if _is_non_loopback_ipv4(addr):
                ip = addr.address
                mac = _normalize_mac(link)
                logger.debug("candidate address %s on interface %s", ip, name)
                break
        if ip and mac:
            break
    return ip, mac


def resolve(*, strict: bool = True) -> HostIdentity:
    """Discover the local host identity.

    A missing hostname never stops address discovery. If the interface table
    itself cannot be read, `HostIdentityError` is raised when ``strict`` is
    true; otherwise a warning is logged and the address fields stay empty.
    """

    try:
        hostname = _hostname()
    except OSError as exc:
        logger.warning("hostname unavailable: %s", exc)
        hostname = ""
    try:
        interfaces = _net_if_addrs()
    except (OSError, RuntimeError) as exc:
        if strict:
            raise HostIdentityError(f"Unable to enumerate network interfaces: {exc}") from exc
        logger.warning("network interfaces unavailable, continuing without host.ip/host.mac: %s", exc)
        return HostIdentity(hostname=hostname)
    ip, mac = _first_ipv4_and_mac(interfaces)
    return HostIdentity(hostname=hostname, ip=ip, mac=mac)
