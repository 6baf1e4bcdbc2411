"""CLI entry point for the nostrgate gateway.

Two commands are available: ``serve`` runs the HTTP adapter under uvicorn
(with the Prometheus endpoint when enabled), ``fetch`` runs the pipeline
once for a route path and writes the body to stdout.

Examples:
    ```bash
    python -m nostrgate serve --config config/gateway.yaml
    python -m nostrgate serve --port 9000 --log-level DEBUG
    python -m nostrgate fetch /json/profile/relay.damus.io/npub1...
    python -m nostrgate fetch /file/nos.lol/note1... > out.bin
    ```
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from nostrgate.core import GatewayConfig, MetricsServer, NostrGateError
from nostrgate.core.logger import Logger, StructuredFormatter
from nostrgate.services import Gateway, create_app, parse_route, serve


DEFAULT_CONFIG = Path("config") / "gateway.yaml"

logger = Logger("cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="nostrgate",
        description="Nostr relay to HTTP content gateway",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Gateway config path (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    serve_parser = commands.add_parser("serve", help="Run the HTTP gateway")
    serve_parser.add_argument("--host", help="Override the configured bind address")
    serve_parser.add_argument("--port", type=int, help="Override the configured port")

    fetch_parser = commands.add_parser("fetch", help="Run one request and print the body")
    fetch_parser.add_argument("path", help="Route path, e.g. /text/nos.lol/note1...")

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Install a ``StructuredFormatter`` on the root handler.

    Output from [Logger][nostrgate.core.logger.Logger] and from plain
    ``logging.getLogger()`` calls in ``nips`` and ``utils`` is unified as
    ``level name message key=value ...``.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def load_config(path: Path, overrides: dict[str, Any] | None = None) -> GatewayConfig:
    """Load *path* if it exists, then apply non-``None`` CLI overrides."""
    if path.exists():
        config = GatewayConfig.from_yaml(path)
    else:
        logger.warning("config_not_found", path=str(path))
        config = GatewayConfig()

    updates = {k: v for k, v in (overrides or {}).items() if v is not None}
    if updates:
        config = GatewayConfig.from_dict({**config.model_dump(), **updates})
    return config


async def run_serve(config: GatewayConfig) -> int:
    """Serve HTTP until uvicorn exits, with the metrics endpoint alongside."""
    app = create_app(Gateway(config), config)
    async with MetricsServer(config.metrics) as metrics:
        if metrics.running:
            logger.info("metrics_server_started", url=metrics.url)
        logger.info("http_server_started", host=config.host, port=config.port)
        try:
            await serve(app, config)
        finally:
            logger.info("http_server_stopped")
    return 0


async def run_fetch(config: GatewayConfig, path: str) -> int:
    """Run one request and write its payload to stdout."""
    try:
        content = await Gateway(config).handle(parse_route(path))
    except NostrGateError as e:
        logger.error("fetch_failed", path=path, error=str(e))
        return 1

    logger.info("fetch_completed", path=path, mime_type=content.mime_type)
    if isinstance(content.payload, bytes):
        sys.stdout.buffer.write(content.payload)
        sys.stdout.buffer.flush()
    else:
        sys.stdout.write(content.payload)
        sys.stdout.flush()
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Parse args, load configuration and dispatch the command."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    overrides = {"host": args.host, "port": args.port} if args.command == "serve" else None
    try:
        config = load_config(args.config, overrides)
    except NostrGateError as e:
        logger.error("config_invalid", path=str(args.config), error=str(e))
        return 1

    try:
        if args.command == "serve":
            return await run_serve(config)
        return await run_fetch(config, args.path)
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
