r"""nostrgate -- serve Nostr relay content over plain HTTP.

A request names a relay, an identifier and an output encoding. The gateway
turns it into one NIP-01 subscription, collects what the relay sends until
the exchange ends, and renders the result as JSON, text, a markdown page,
raw HTML or a decoded file.

Imports flow strictly downward through a **diamond DAG**:

```text
              services         Gateway pipeline, formatter, HTTP adapter
             /   |   \
          core  nips  utils    Config/logging/errors/metrics, NIP-19/NIP-01, relay transport
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Pure frozen dataclasses and enums. Depends only on stdlib.
    core: Configuration, structured logging, exceptions, metrics.
    nips: NIP-19 identifier decoding and NIP-01 query building.
    utils: Single-shot websocket relay sessions.
    services: The gateway pipeline, content formatter and FastAPI app.

Note:
    Top-level imports (``from nostrgate import Gateway``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("nostrgate")

__all__ = [
    "Filter",
    "FetchMode",
    "Gateway",
    "GatewayConfig",
    "Logger",
    "OutputContent",
    "OutputKind",
    "Query",
    "RelaySession",
    "RequestParams",
    "build_query",
    "create_app",
    "decode",
    "decode_identifier",
    "fetch_events",
    "format_content",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "GatewayConfig": ("nostrgate.core", "GatewayConfig"),
    "Logger": ("nostrgate.core", "Logger"),
    "FetchMode": ("nostrgate.models", "FetchMode"),
    "Filter": ("nostrgate.models", "Filter"),
    "OutputContent": ("nostrgate.models", "OutputContent"),
    "OutputKind": ("nostrgate.models", "OutputKind"),
    "Query": ("nostrgate.models", "Query"),
    "RequestParams": ("nostrgate.models", "RequestParams"),
    "build_query": ("nostrgate.nips", "build_query"),
    "decode": ("nostrgate.nips", "decode"),
    "decode_identifier": ("nostrgate.nips", "decode_identifier"),
    "RelaySession": ("nostrgate.utils", "RelaySession"),
    "fetch_events": ("nostrgate.utils", "fetch_events"),
    "Gateway": ("nostrgate.services", "Gateway"),
    "create_app": ("nostrgate.services", "create_app"),
    "format_content": ("nostrgate.services", "format_content"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'nostrgate' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
