"""Client identity resolution for rate limiting.

The identity is the client's network address. ``X-Forwarded-For`` is only
honoured when the deployment explicitly trusts it (i.e. the API sits behind a
reverse proxy that overwrites the header); otherwise any client could pick its
own identity and escape its quota.
"""

from __future__ import annotations

import ipaddress

UNKNOWN_CLIENT = "unknown"


def _parse_ip(value: str) -> str | None:
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def strip_port(address: str) -> str:
    """Remove a port suffix from a connection address.

    Examples:
        >>> strip_port("1.2.3.4:5678")
        '1.2.3.4'
        >>> strip_port("[::1]:8080")
        '::1'
        >>> strip_port("::1")
        '::1'
    """
    address = address.strip()
    if address.startswith("["):
        host, _, _ = address[1:].partition("]")
        return host
    # More than one colon without brackets is a bare IPv6 address
    if address.count(":") == 1:
        return address.rsplit(":", 1)[0]
    return address


def parse_forwarded_for(header_value: str | None) -> str | None:
    """Return the originating client from an X-Forwarded-For value.

    The first entry is the client as seen by the outermost proxy. Returns
    None when the header is absent or that entry is not an IP address.
    """
    if not header_value:
        return None
    first = header_value.split(",", 1)[0]
    return _parse_ip(strip_port(first))


def resolve_client_identity(
    forwarded_for: str | None,
    remote_addr: str | None,
    *,
    trust_forwarded_for: bool = False,
) -> str:
    """Resolve the rate limiting identity of a client.

    Args:
        forwarded_for: Raw X-Forwarded-For header value, if any.
        remote_addr: Address of the direct connection (may include a port).
        trust_forwarded_for: Whether the forwarded header may be used.

    Returns:
        Normalized IP address, the raw host if it is not an IP, or "unknown".
    """
    if trust_forwarded_for:
        forwarded = parse_forwarded_for(forwarded_for)
        if forwarded:
            return forwarded

    if not remote_addr:
        return UNKNOWN_CLIENT

    host = strip_port(remote_addr)
    return _parse_ip(host) or host or UNKNOWN_CLIENT
