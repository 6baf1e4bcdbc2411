"""Utilities layer: relay transport.

Attributes:
    transport: aiohttp websocket session running exactly one NIP-01
        subscription. See [fetch_events()][nostrgate.utils.transport.fetch_events].
"""

from .transport import (
    DEFAULT_SCHEME,
    RelaySession,
    SessionState,
    fetch_events,
    normalize_relay_url,
)


__all__ = [
    "DEFAULT_SCHEME",
    "RelaySession",
    "SessionState",
    "fetch_events",
    "normalize_relay_url",
]
