"""Outbound proxy selection."""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlsplit

from .config import SearchClientConfig


def proxy_url(host: str, port: int | None) -> str:
    """Return the proxy address handed to the transport (``host:port``)."""

    if port is None:
        return host
    return f"{host}:{port}"


def is_bypassed(hostname: str, bypass: Iterable[str]) -> bool:
    """Return True when ``hostname`` must be reached without the proxy.

    An entry matches the exact host, or any subdomain of it. Entries written
    with a leading dot (``.example.com``) only match subdomains. Matching is
    case-sensitive.
    """

    for entry in bypass:
        if not entry:
            continue
        if entry.startswith("."):
            if hostname.endswith(entry):
                return True
        elif hostname == entry or hostname.endswith("." + entry):
            return True
    return False


def proxies_for(url: str, config: SearchClientConfig) -> dict[str, str]:
    """Resolve the ``requests`` proxies mapping for one request URL."""

    if not config.proxy_host:
        return {}
    hostname = urlsplit(url).hostname or ""
    if is_bypassed(hostname, config.proxy_bypass):
        return {}
    address = proxy_url(config.proxy_host, config.proxy_port)
    return {"http": address, "https": address}
