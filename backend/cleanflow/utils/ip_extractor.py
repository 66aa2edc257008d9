"""Client address extraction for requests that may arrive through a reverse proxy."""

from typing import Optional
from fastapi import Request


def _first_forwarded_for(header: str) -> Optional[str]:
    """``for=`` of the first element of an RFC 7239 ``Forwarded`` header."""
    first_hop = header.split(",")[0]
    for pair in first_hop.split(";"):
        key, _, value = pair.strip().partition("=")
        if key.lower() == "for" and value:
            value = value.strip('"')
            # IPv6 literals come bracketed, optionally with a port
            if value.startswith("["):
                return value[1:value.index("]")] if "]" in value else None
            return value.split(":")[0] if value.count(":") == 1 else value
    return None


def get_client_ip(request: Request) -> str:
    """
    Client IP, honouring proxy headers.

    Precedence: ``Forwarded``, first entry of ``X-Forwarded-For``,
    ``X-Real-IP``, then the socket peer. Returns "unknown" when none is available.
    """
    forwarded = request.headers.get("Forwarded")
    if forwarded:
        client_ip = _first_forwarded_for(forwarded)
        if client_ip:
            return client_ip

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()
        if client_ip:
            return client_ip

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("User-Agent")
