"""Services layer: the gateway pipeline, content formatter and HTTP adapter.

Top of the diamond DAG; may import from every other layer.

Attributes:
    Gateway: Runs query, relay session and formatting for one request.
        See [Gateway][nostrgate.services.gateway.Gateway].
    format_content: Renders a result buffer as json, text, markdown, html
        or file. See [format_content()][nostrgate.services.formatter.format_content].
    create_app: FastAPI application with the path-based routes.
        See [create_app()][nostrgate.services.api.create_app].
"""

from .api import create_app, parse_route, serve
from .formatter import format_content
from .gateway import Gateway


__all__ = [
    "Gateway",
    "create_app",
    "format_content",
    "parse_route",
    "serve",
]
