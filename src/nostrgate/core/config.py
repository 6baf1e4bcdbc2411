"""
Gateway configuration model.

[GatewayConfig][nostrgate.core.config.GatewayConfig] holds every setting
the CLI and the HTTP adapter read. Values come from a YAML file (see
[load_yaml()][nostrgate.core.yaml.load_yaml]) and are validated by
pydantic; validation failures are re-raised as
[ConfigurationError][nostrgate.core.exceptions.ConfigurationError].

Examples:
    ```yaml
    # gateway.yaml
    host: 0.0.0.0
    port: 8080
    session_timeout: 15
    cors_origins: ["https://example.org"]
    metrics:
      enabled: true
      port: 8001
    ```

    ```python
    config = GatewayConfig.from_yaml("gateway.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .metrics import MetricsConfig
from .yaml import load_yaml


class GatewayConfig(BaseModel):
    """Configuration for the gateway process.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port for the HTTP server.
        relay_scheme: Scheme prepended to relay addresses taken from routes.
        session_timeout: Upper bound in seconds on one relay session.
            ``None`` waits until the relay ends the exchange.
        cors_origins: Allowed CORS origins. ``["*"]`` allows any origin.
        json_logs: Emit log records as JSON objects.
        metrics: Prometheus endpoint settings.
    """

    host: str = Field(default="0.0.0.0", min_length=1, description="HTTP bind address")  # noqa: S104
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP port")
    relay_scheme: str = Field(default="wss://", description="Scheme for relay addresses")
    session_timeout: float | None = Field(
        default=None,
        gt=0.0,
        le=600.0,
        description="Relay session deadline in seconds (None = no deadline)",
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    json_logs: bool = Field(default=False, description="Emit JSON log lines")
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )

    @field_validator("relay_scheme")
    @classmethod
    def _validate_relay_scheme(cls, v: str) -> str:
        if v != "wss://":
            msg = f"relay_scheme must be 'wss://', got {v!r}"
            raise ValueError(msg)
        return v

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Validate a parsed mapping.

        Raises:
            ConfigurationError: If any field fails validation.
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid gateway configuration: {e}") from e

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> Self:
        """Load and validate a YAML configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the YAML or any field is invalid.
        """
        return cls.from_dict(load_yaml(config_path))
