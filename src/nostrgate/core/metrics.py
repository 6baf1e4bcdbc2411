"""
Prometheus metrics collection and HTTP exposition.

Module-level metric objects are process-wide singletons. The relay session
records one outcome and one duration per invocation; the HTTP adapter
counts requests per output kind and requests that fell into the error
catch-all.

The [MetricsServer][nostrgate.core.metrics.MetricsServer] exposes them on a
separate aiohttp endpoint so scraping does not share the gateway's
catch-all route.

Architecture:
    REQUESTS_TOTAL:                 Requests handled, by output kind.
    REQUEST_ERRORS_TOTAL:           Requests answered with the error body.
    RELAY_SESSIONS_TOTAL:           Relay sessions, by terminal outcome.
    RELAY_SESSION_DURATION_SECONDS: Session wall time histogram.
    BUFFERED_MESSAGES:              Result buffer size histogram.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from pydantic import BaseModel, Field


class MetricsConfig(BaseModel):
    """Configuration for the Prometheus metrics endpoint.

    The endpoint is only started when ``enabled`` is True.
    """

    enabled: bool = Field(default=False, description="Enable the metrics endpoint")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", pattern=r"^/", description="Metrics endpoint path")


REQUESTS_TOTAL = Counter(
    "nostrgate_requests_total",
    "Gateway requests handled",
    ["output"],
)

REQUEST_ERRORS_TOTAL = Counter(
    "nostrgate_request_errors_total",
    "Gateway requests answered with the generic error body",
)

# outcome: eose | ok | notice | closed | disconnected | transport_error | timeout | skipped
RELAY_SESSIONS_TOTAL = Counter(
    "nostrgate_relay_sessions_total",
    "Relay sessions by terminal outcome",
    ["outcome"],
)

RELAY_SESSION_DURATION_SECONDS = Histogram(
    "nostrgate_relay_session_duration_seconds",
    "Wall time of a single relay session",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60),
)

BUFFERED_MESSAGES = Histogram(
    "nostrgate_buffered_messages",
    "Messages buffered per relay session",
    buckets=(0, 1, 2, 5, 10, 20, 50, 100),
)


def render_metrics() -> tuple[bytes, str]:
    """Return the exposition body and its ``Content-Type``."""
    return generate_latest(), CONTENT_TYPE_LATEST


class MetricsServer:
    """Serves [render_metrics()][nostrgate.core.metrics.render_metrics] on its own port.

    Used as an async context manager around the gateway's lifetime. When
    ``config.enabled`` is False entering and leaving are no-ops.

    Examples:
        ```python
        async with MetricsServer(config.metrics) as metrics:
            metrics.url  # 'http://127.0.0.1:8000/metrics'
            await serve(app, config)
        ```
    """

    def __init__(self, config: MetricsConfig | None = None) -> None:
        self._config = config if config is not None else MetricsConfig()
        self._runner: web.AppRunner | None = None

    @property
    def running(self) -> bool:
        return self._runner is not None

    @property
    def url(self) -> str:
        return f"http://{self._config.host}:{self._config.port}{self._config.path}"

    async def __aenter__(self) -> MetricsServer:
        if self._config.enabled and self._runner is None:
            app = web.Application()
            app.router.add_get(self._config.path, self._scrape)
            runner = web.AppRunner(app, access_log=None)
            await runner.setup()
            try:
                await web.TCPSite(runner, self._config.host, self._config.port).start()
            except OSError:
                await runner.cleanup()
                raise
            self._runner = runner
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        runner, self._runner = self._runner, None
        if runner is not None:
            await runner.cleanup()

    @staticmethod
    async def _scrape(_request: web.Request) -> web.Response:
        body, content_type = render_metrics()
        return web.Response(body=body, headers={"Content-Type": content_type})
