"""
Listener configuration for the public webhook endpoint and the internal metrics endpoint.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class WebhookEndpointConfig:
    """Public listener serving the webhook route."""

    host: str = "0.0.0.0"
    port: int = 3000
    path: str = "/event_handler"


@dataclass(frozen=True)
class InternalEndpointConfig:
    """Internal listener serving metrics only."""

    host: str = "0.0.0.0"
    port: int = 3001


def parse_addr(value: str) -> tuple[str, int]:
    """
    Parse a ``host:port`` socket address.

    IPv6 hosts must be bracketed (``[::1]:3000``).

    Raises:
        ValueError: If the value is not a valid address.
    """
    host, sep, port = value.strip().rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"expected host:port, got {value!r}")
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"port out of range in {value!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, port_number
