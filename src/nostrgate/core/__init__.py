"""Core layer: configuration, structured logging, errors and metrics.

Sits in the middle of the diamond DAG next to ``nostrgate.nips`` and
``nostrgate.utils``; depends only on ``nostrgate.models``.

Attributes:
    GatewayConfig: Pydantic configuration loaded from YAML.
        See [GatewayConfig][nostrgate.core.config.GatewayConfig].
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][nostrgate.core.logger.Logger].
    MetricsServer: Prometheus ``/metrics`` HTTP endpoint.
        See [MetricsServer][nostrgate.core.metrics.MetricsServer].
    YAML: Safe YAML loading with ``yaml.safe_load()``.
        See [load_yaml()][nostrgate.core.yaml.load_yaml].
"""

from .config import GatewayConfig
from .exceptions import (
    ConfigurationError,
    IdentifierError,
    NostrGateError,
    RelayAddressError,
    RelayError,
    RequestError,
    RouteError,
    UnsupportedFormatError,
    UnsupportedModeError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    BUFFERED_MESSAGES,
    RELAY_SESSION_DURATION_SECONDS,
    RELAY_SESSIONS_TOTAL,
    REQUEST_ERRORS_TOTAL,
    REQUESTS_TOTAL,
    MetricsConfig,
    MetricsServer,
    render_metrics,
)
from .yaml import load_yaml


__all__ = [
    "BUFFERED_MESSAGES",
    "RELAY_SESSIONS_TOTAL",
    "RELAY_SESSION_DURATION_SECONDS",
    "REQUESTS_TOTAL",
    "REQUEST_ERRORS_TOTAL",
    "ConfigurationError",
    "GatewayConfig",
    "IdentifierError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "NostrGateError",
    "RelayAddressError",
    "RelayError",
    "RequestError",
    "RouteError",
    "StructuredFormatter",
    "UnsupportedFormatError",
    "UnsupportedModeError",
    "format_kv_pairs",
    "load_yaml",
    "render_metrics",
]
