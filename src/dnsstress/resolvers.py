"""
Resolver target parsing.

Turns a user-supplied address (``ip``, ``ip:port``, ``[ipv6]:port``,
``hostname[:port]`` or a preset name) into a ResolverTarget whose host is
an IP literal, resolved once at startup.
"""

import ipaddress
import socket
from typing import Optional

from .models import ResolverTarget


DEFAULT_PORT = 53


class ResolverAddressError(ValueError):
    """Raised when a resolver address cannot be parsed or resolved."""


# Well-known public resolvers, addressable by name
RESOLVERS: dict[str, ResolverTarget] = {
    "local": ResolverTarget("127.0.0.1", DEFAULT_PORT, "Local resolver"),
    "cloudflare": ResolverTarget("1.1.1.1", DEFAULT_PORT, "Cloudflare"),
    "cloudflare-secondary": ResolverTarget("1.0.0.1", DEFAULT_PORT, "Cloudflare Secondary"),
    "google": ResolverTarget("8.8.8.8", DEFAULT_PORT, "Google"),
    "google-secondary": ResolverTarget("8.8.4.4", DEFAULT_PORT, "Google Secondary"),
    "quad9": ResolverTarget("9.9.9.9", DEFAULT_PORT, "Quad9"),
    "opendns": ResolverTarget("208.67.222.222", DEFAULT_PORT, "OpenDNS"),
    "adguard": ResolverTarget("94.140.14.14", DEFAULT_PORT, "AdGuard"),
}


def _parse_port(text: str, address: str) -> int:
    try:
        port = int(text)
    except ValueError:
        raise ResolverAddressError(f"Invalid port in {address!r}") from None
    if not 0 < port < 65536:
        raise ResolverAddressError(f"Port out of range in {address!r}")
    return port


def _split_host_port(address: str) -> tuple[str, Optional[str]]:
    """Split an address into host and optional port text."""
    if address.startswith("["):
        end = address.find("]")
        if end == -1:
            raise ResolverAddressError(f"Missing ']' in {address!r}")
        host = address[1:end]
        rest = address[end + 1:]
        if not rest:
            return host, None
        if not rest.startswith(":"):
            raise ResolverAddressError(f"Unexpected text after ']' in {address!r}")
        return host, rest[1:]

    if address.count(":") > 1:
        # Bare IPv6 literal without a port
        return address, None

    host, sep, port = address.partition(":")
    return host, (port if sep else None)


def _resolve_host(host: str, address: str) -> str:
    """Return an IP literal for host, looking it up if needed."""
    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        pass

    try:
        infos = socket.getaddrinfo(host, None, type=socket.SOCK_DGRAM)
    except socket.gaierror as e:
        raise ResolverAddressError(f"Unable to resolve {host!r} ({e})") from e
    if not infos:
        raise ResolverAddressError(f"No address found for {address!r}")
    return infos[0][4][0]


def parse_resolver(address: str) -> ResolverTarget:
    """
    Parse a resolver address.

    Args:
        address: Preset name, ``host``, ``host:port`` or ``[ipv6]:port``

    Returns:
        ResolverTarget with an IP literal host

    Raises:
        ResolverAddressError: If the address is malformed or unresolvable
    """
    address = address.strip()
    if not address:
        raise ResolverAddressError("Empty resolver address")

    preset = RESOLVERS.get(address.lower())
    if preset is not None:
        return preset

    host, port_text = _split_host_port(address)
    if not host:
        raise ResolverAddressError(f"Missing host in {address!r}")

    port = DEFAULT_PORT if port_text is None else _parse_port(port_text, address)
    return ResolverTarget(host=_resolve_host(host, address), port=port)


def list_resolvers() -> list[str]:
    """List all preset resolver names."""
    return list(RESOLVERS.keys())
