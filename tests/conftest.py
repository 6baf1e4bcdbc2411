"""
Pytest configuration and shared fixtures for nostrgate tests.

Provides:
- Sample hex identifiers and events
- Relay frame builders for the session and formatter tests
- Websocket and aiohttp session mocks
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from nostrgate.models.message import parse_message


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Sample Data
# ============================================================================


PUBKEY_HEX = "3bf0c63fcb93463407af97a5e5ee64fa883d107ef9e558472c4eb9aaaefa459d"
EVENT_ID_HEX = "b9f5441e45ca39179320e0031cfb18e34078673dcc3d3e3a3b3a981760aa5696"


@pytest.fixture
def pubkey_hex() -> str:
    return PUBKEY_HEX


@pytest.fixture
def event_id_hex() -> str:
    return EVENT_ID_HEX


def event_dict(
    content: str = "hello",
    *,
    kind: int = 1,
    tags: list[list[str]] | None = None,
    event_id: str = EVENT_ID_HEX,
) -> dict[str, Any]:
    """Build a relay event object with plausible field values."""
    return {
        "id": event_id,
        "pubkey": PUBKEY_HEX,
        "created_at": 1700000000,
        "kind": kind,
        "tags": tags or [],
        "content": content,
        "sig": "f" * 128,
    }


@pytest.fixture
def make_event() -> Callable[..., dict[str, Any]]:
    return event_dict


@pytest.fixture
def frame() -> Callable[..., str]:
    """Serialize a relay frame: ``frame("EOSE", "sub")``."""

    def _frame(*elements: Any) -> str:
        return json.dumps(list(elements))

    return _frame


@pytest.fixture
def message(frame: Callable[..., str]) -> Callable[..., Any]:
    """Parse a relay frame into its message variant."""

    def _message(*elements: Any) -> Any:
        return parse_message(frame(*elements))

    return _message


# ============================================================================
# Websocket Mocks
# ============================================================================


def text_frame(data: str) -> aiohttp.WSMessage:
    return aiohttp.WSMessage(aiohttp.WSMsgType.TEXT, data, None)


def close_frame() -> aiohttp.WSMessage:
    return aiohttp.WSMessage(aiohttp.WSMsgType.CLOSE, 1000, "")


@pytest.fixture
def mock_ws() -> MagicMock:
    """Websocket mock recording outbound traffic in ``ws.sent`` and ``ws.calls``.

    ``ws.calls`` interleaves ``("send", payload)`` and ``("close",)`` entries
    so tests can assert ordering. ``ws.feed(*frames)`` queues inbound text
    frames (or raw ``WSMessage`` objects) followed by a server close.
    """
    ws = MagicMock()
    ws.sent = []
    ws.calls = []

    def _send(data: str) -> None:
        payload = json.loads(data)
        ws.sent.append(payload)
        ws.calls.append(("send", payload))

    def _close() -> None:
        ws.calls.append(("close",))

    def _feed(*frames: str | aiohttp.WSMessage) -> None:
        messages = [text_frame(f) if isinstance(f, str) else f for f in frames]
        ws.receive = AsyncMock(side_effect=[*messages, close_frame()])

    ws.send_str = AsyncMock(side_effect=_send)
    ws.close = AsyncMock(side_effect=_close)
    ws.receive = AsyncMock(return_value=close_frame())
    ws.feed = _feed
    return ws


@pytest.fixture
def mock_session(mock_ws: MagicMock) -> MagicMock:
    """aiohttp ``ClientSession`` mock whose ``ws_connect`` returns ``mock_ws``."""
    session = MagicMock()
    session.ws_connect = AsyncMock(return_value=mock_ws)
    session.close = AsyncMock()
    return session
