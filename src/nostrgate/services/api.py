"""
HTTP adapter for the gateway via FastAPI.

Routes are path-only and always answer ``200``:

```text
/json/<fetch>/<relay>/<note>[/limit-N][/since-T]
/text/<relay>/<note>
/markdown/<relay>/<note>
/html/<relay>/<note>
/file/<relay>/<note>
```

Any exception raised while parsing the route or running the pipeline is
logged and answered with the JSON body ``["error"]``. The ``Content-Type``
header always declares ``charset=utf-8``.

See Also:
    [Gateway][nostrgate.services.gateway.Gateway]: The pipeline each
        request runs.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Final

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from nostrgate.core.exceptions import RouteError
from nostrgate.core.logger import Logger
from nostrgate.core.metrics import REQUEST_ERRORS_TOTAL
from nostrgate.models.constants import FetchMode, OutputKind
from nostrgate.models.content import OutputContent, RequestParams


if TYPE_CHECKING:
    from nostrgate.core.config import GatewayConfig

    from .gateway import Gateway


ERROR_CONTENT: Final = OutputContent("application/json", '["error"]')

_LIMIT_PREFIX: Final = "limit-"
_SINCE_PREFIX: Final = "since-"


def _parse_int(segment: str, prefix: str) -> int | None:
    if not segment:
        return None
    value = segment.removeprefix(prefix)
    try:
        return int(value)
    except ValueError:
        raise RouteError(f"Invalid {prefix.rstrip('-')} segment: {segment!r}") from None


def parse_route(path: str) -> RequestParams:
    """Map a request path onto [RequestParams][nostrgate.models.content.RequestParams].

    Args:
        path: URL path such as ``/json/profile/relay.damus.io/npub1...``.

    Raises:
        RouteError: If the first segment is not an output kind, a required
            segment is missing, or ``limit-``/``since-`` is not numeric.
    """
    parts = path.lstrip("/").split("/")
    try:
        output = OutputKind(parts[0])
    except ValueError:
        raise RouteError(f"Unknown route: {path!r}") from None

    if output is OutputKind.JSON:
        if len(parts) < 4:
            raise RouteError(f"Expected /json/<fetch>/<relay>/<note>, got {path!r}")
        return RequestParams(
            output=output,
            fetch=parts[1] or FetchMode.NOTE,
            relay=parts[2],
            note=parts[3],
            limit=_parse_int(parts[4], _LIMIT_PREFIX) if len(parts) > 4 else None,
            since=_parse_int(parts[5], _SINCE_PREFIX) if len(parts) > 5 else None,
        )

    if len(parts) < 3:
        raise RouteError(f"Expected /{output}/<relay>/<note>, got {path!r}")
    return RequestParams(output=output, fetch=FetchMode.NOTE, relay=parts[1], note=parts[2])


def create_app(gateway: Gateway, config: GatewayConfig | None = None) -> FastAPI:
    """Build the FastAPI application serving *gateway*.

    Args:
        gateway: Pipeline run for every request.
        config: CORS origins and log format; defaults to ``gateway.config``.
    """
    config = config if config is not None else gateway.config
    logger = Logger("api", json_output=config.json_logs)
    app = FastAPI(title="nostrgate")

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_methods=["GET"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def access_log(request: Request, call_next: Any) -> Response:
        started = time.monotonic()
        response: Response = await call_next(request)
        route_kind = request.url.path.lstrip("/").split("/", 1)[0] or "root"
        logger.info(
            "http_access",
            route=route_kind,
            status=response.status_code,
            content_type=response.headers.get("content-type"),
            elapsed_ms=round((time.monotonic() - started) * 1000, 1),
        )
        return response

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/{path:path}")
    async def gateway_route(request: Request) -> Response:
        try:
            params = parse_route(request.url.path)
            content = await gateway.handle(params)
        except Exception as e:  # HTTP request error boundary
            REQUEST_ERRORS_TOTAL.inc()
            logger.warning(
                "request_error",
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
            )
            content = ERROR_CONTENT
        return Response(content=content.payload, media_type=content.content_type)

    return app


async def serve(app: FastAPI, config: GatewayConfig) -> None:
    """Run uvicorn on ``config.host``/``config.port`` until cancelled."""
    server_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(server_config)
    await server.serve()
