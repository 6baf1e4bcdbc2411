"""
Gateway pipeline: request parameters in, formatted content out.

[Gateway.handle()][nostrgate.services.gateway.Gateway.handle] chains the
four stages of one invocation:

```text
RequestParams -> build_query() -> fetch_events() -> format_content() -> OutputContent
```

Each call is independent: one query, one relay socket, one result buffer.
Nothing is cached or shared between calls.

See Also:
    [build_query()][nostrgate.nips.nip01.build_query]: Request mode to ``REQ``.
    [fetch_events()][nostrgate.utils.transport.fetch_events]: One relay session.
    [format_content()][nostrgate.services.formatter.format_content]: Output encoding.
    [create_app()][nostrgate.services.api.create_app]: HTTP adapter around this class.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Self

from nostrgate.core.config import GatewayConfig
from nostrgate.core.logger import Logger
from nostrgate.core.metrics import REQUESTS_TOTAL
from nostrgate.nips.nip01 import build_query
from nostrgate.utils.transport import fetch_events

from .formatter import format_content


if TYPE_CHECKING:
    from pathlib import Path

    import aiohttp

    from nostrgate.models.content import OutputContent, RequestParams


class Gateway:
    """Runs the query/response cycle for one request at a time.

    Attributes:
        config: The [GatewayConfig][nostrgate.core.config.GatewayConfig]
            providing the relay scheme and session deadline.

    Examples:
        ```python
        gateway = Gateway(GatewayConfig(session_timeout=10))
        content = await gateway.handle(
            RequestParams(output=OutputKind.TEXT, relay="nos.lol", note="note1...")
        )
        content.mime_type  # 'text/plain'
        ```
    """

    def __init__(
        self,
        config: GatewayConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config if config is not None else GatewayConfig()
        self._session = session
        self._logger = Logger("gateway", json_output=self._config.json_logs)

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> Self:
        """Create a gateway from a YAML configuration file."""
        return cls(GatewayConfig.from_yaml(config_path))

    async def handle(self, params: RequestParams) -> OutputContent:
        """Run the full pipeline for *params*.

        An unusable identifier or invalid relay address degrades to an empty
        buffer; the formatter still produces a well-formed body.

        Raises:
            UnsupportedModeError: If ``params.fetch`` is not a known mode.
            UnsupportedFormatError: If ``params.output`` is not a known kind.
        """
        start = time.monotonic()
        query = build_query(params.fetch, params.note, params.limit, params.since)
        buffer = await fetch_events(
            params.relay,
            query,
            timeout=self._config.session_timeout,
            scheme=self._config.relay_scheme,
            session=self._session,
        )
        content = format_content(params.output, buffer)

        REQUESTS_TOTAL.labels(output=str(params.output)).inc()
        self._logger.info(
            "request_handled",
            output=params.output,
            fetch=params.fetch,
            relay=params.relay,
            subscription=query.label if query is not None else None,
            buffered=len(buffer),
            mime_type=content.mime_type,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        return content
