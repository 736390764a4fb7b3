"""
Client address extraction helpers.

The extractor only picks a candidate string; whether it is a valid address
is decided by the lookup stages.
"""

from __future__ import annotations

from ipaddress import ip_address
from typing import Mapping

from starlette.requests import Request

REAL_IP_HEADER = "X-Real-IP"


def split_host_port(value: str) -> str:
    """
    Strip a trailing port from `host:port` or `[host]:port`.

    Bare IPv6 literals and anything else that is not a host/port pair are
    returned unchanged.
    """
    value = (value or "").strip()
    if value.startswith("["):
        end = value.find("]")
        if end == -1:
            return value
        rest = value[end + 1 :]
        if rest == "" or (rest.startswith(":") and ":" not in rest[1:]):
            return value[1:end]
        return value
    if value.count(":") == 1:
        host, _port = value.split(":", 1)
        return host
    return value


def extract_client_ip(
    headers: Mapping[str, str],
    peer: str | None,
    header_name: str = REAL_IP_HEADER,
) -> str:
    raw = headers.get(header_name) if header_name else None
    if raw and raw.strip():
        return raw.strip()
    return split_host_port(peer or "")


def extract_request_ip(request: Request, header_name: str = REAL_IP_HEADER) -> str:
    peer = request.client.host if request.client else None
    return extract_client_ip(request.headers, peer, header_name)


def normalize_cache_key(address: str) -> str:
    value = (address or "").strip()
    try:
        return str(ip_address(value))
    except ValueError:
        return value
