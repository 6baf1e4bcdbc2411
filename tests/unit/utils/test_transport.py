"""
Unit tests for utils.transport module.

Tests:
- normalize_relay_url() scheme prefixing, normalization and rejection
- RelaySession buffering for EVENT / OK / NOTICE frames
- Termination on EOSE, OK, NOTICE, CLOSED and server close
- CLOSE sent before the socket closes, and only when a subscription is open
- Error, timeout and cancellation behavior
- fetch_events() short-circuits for empty queries and invalid addresses
"""

import asyncio
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from nostrgate.core.metrics import RELAY_SESSIONS_TOTAL
from nostrgate.models.constants import SubscriptionLabel
from nostrgate.models.message import EventMessage, NoticeMessage, OkMessage
from nostrgate.models.query import Filter, Query
from nostrgate.utils.transport import (
    DEFAULT_SCHEME,
    RelaySession,
    SessionState,
    fetch_events,
    normalize_relay_url,
)


URL = "wss://relay.example"
PK = "3bf0c63fcb93463407af97a5e5ee64fa883d107ef9e558472c4eb9aaaefa459d"


@pytest.fixture
def query() -> Query:
    return Query(SubscriptionLabel.PROFILE, Filter(authors=(PK,), kinds=(0,), limit=1))


def _count(outcome: str) -> float:
    return RELAY_SESSIONS_TOTAL.labels(outcome=outcome)._value.get()


# ============================================================================
# normalize_relay_url Tests
# ============================================================================


class TestNormalizeRelayUrl:
    def test_default_scheme(self) -> None:
        assert DEFAULT_SCHEME == "wss://"

    def test_bare_host(self) -> None:
        assert normalize_relay_url("relay.damus.io") == "wss://relay.damus.io"

    def test_host_is_lowercased(self) -> None:
        assert normalize_relay_url("Relay.Damus.IO") == "wss://relay.damus.io"

    def test_port_and_path(self) -> None:
        assert normalize_relay_url("nos.lol:443/inbox") == "wss://nos.lol:443/inbox"

    def test_surrounding_whitespace(self) -> None:
        assert normalize_relay_url("  nos.lol ") == "wss://nos.lol"

    def test_explicit_wss_kept(self) -> None:
        assert normalize_relay_url("wss://nos.lol") == "wss://nos.lol"

    @pytest.mark.parametrize("address", ["ws://nos.lol", "https://nos.lol"])
    def test_other_scheme_rejected(self, address: str) -> None:
        assert normalize_relay_url(address) is None

    @pytest.mark.parametrize("address", [None, "", "   "])
    def test_empty(self, address: str | None) -> None:
        assert normalize_relay_url(address) is None

    def test_invalid_port(self) -> None:
        assert normalize_relay_url("nos.lol:notaport") is None


# ============================================================================
# RelaySession Tests
# ============================================================================


class TestRelaySessionTermination:
    """Frames that end the exchange."""

    @pytest.mark.asyncio
    async def test_events_then_eose(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
        make_event: Callable[..., dict[str, Any]],
    ) -> None:
        e1, e2 = make_event("first"), make_event("second")
        mock_ws.feed(
            frame("EVENT", "fetchProfile", e1),
            frame("EVENT", "fetchProfile", e2),
            frame("EOSE", "fetchProfile"),
        )
        session = RelaySession(URL, query, session=mock_session)

        buffer = await session.run()

        assert [m.raw for m in buffer] == [
            ["EVENT", "fetchProfile", e1],
            ["EVENT", "fetchProfile", e2],
        ]
        assert all(isinstance(m, EventMessage) for m in buffer)
        assert session.state is SessionState.DONE
        mock_session.ws_connect.assert_awaited_once_with(URL)
        assert mock_ws.calls == [
            ("send", query.to_wire()),
            ("send", ["CLOSE", "fetchProfile"]),
            ("close",),
        ]

    @pytest.mark.asyncio
    async def test_notice_is_buffered_and_closes(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
    ) -> None:
        mock_ws.feed(frame("NOTICE", "rate limited"), frame("EOSE", "fetchProfile"))

        buffer = await RelaySession(URL, query, session=mock_session).run()

        assert len(buffer) == 1
        assert isinstance(buffer[0], NoticeMessage)
        assert buffer[0].text == "rate limited"
        assert mock_ws.sent[-1] == ["CLOSE", "fetchProfile"]
        # the EOSE after the NOTICE is never read
        assert mock_ws.receive.await_count == 1

    @pytest.mark.asyncio
    async def test_ok_is_buffered_and_closes(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
    ) -> None:
        mock_ws.feed(frame("OK", "abc", True, ""))

        buffer = await RelaySession(URL, query, session=mock_session).run()

        assert len(buffer) == 1
        assert isinstance(buffer[0], OkMessage)
        assert buffer[0].text == "abc"
        assert mock_ws.sent[-1] == ["CLOSE", "fetchProfile"]

    @pytest.mark.asyncio
    async def test_closed_sends_no_close(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
    ) -> None:
        before = _count("closed")
        mock_ws.feed(frame("CLOSED", "fetchProfile", "auth-required: nope"))

        buffer = await RelaySession(URL, query, session=mock_session).run()

        assert buffer == ()
        assert mock_ws.calls == [("send", query.to_wire()), ("close",)]
        assert _count("closed") == before + 1

    @pytest.mark.asyncio
    async def test_server_close_keeps_partial_buffer(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
        make_event: Callable[..., dict[str, Any]],
    ) -> None:
        before = _count("disconnected")
        mock_ws.feed(frame("EVENT", "fetchProfile", make_event()))

        buffer = await RelaySession(URL, query, session=mock_session).run()

        assert len(buffer) == 1
        assert ("send", ["CLOSE", "fetchProfile"]) not in mock_ws.calls
        assert mock_ws.calls[-1] == ("close",)
        assert _count("disconnected") == before + 1

    @pytest.mark.asyncio
    async def test_eose_with_nothing_buffered(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
    ) -> None:
        before = _count("eose")
        mock_ws.feed(frame("EOSE", "fetchProfile"))

        assert await RelaySession(URL, query, session=mock_session).run() == ()
        assert _count("eose") == before + 1


class TestRelaySessionFrames:
    """Frames that do not change the session state."""

    @pytest.mark.asyncio
    async def test_unknown_frames_ignored(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
        make_event: Callable[..., dict[str, Any]],
    ) -> None:
        mock_ws.feed(
            frame("AUTH", "challenge"),
            frame("EVENT", "fetchProfile", make_event()),
            frame("EOSE", "fetchProfile"),
        )

        buffer = await RelaySession(URL, query, session=mock_session).run()

        assert len(buffer) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("odd", ['[42,"x"]', "{}", "[]", '"hello"'])
    async def test_headless_json_frames_ignored(
        self,
        odd: str,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
        make_event: Callable[..., dict[str, Any]],
    ) -> None:
        mock_ws.feed(
            frame("EVENT", "fetchProfile", make_event("one")),
            odd,
            frame("EVENT", "fetchProfile", make_event("two")),
            frame("EOSE", "fetchProfile"),
        )

        before = _count("eose")

        buffer = await RelaySession(URL, query, session=mock_session).run()

        assert [m.text for m in buffer] == ["one", "two"]
        assert mock_ws.sent[-1] == ["CLOSE", "fetchProfile"]
        assert _count("eose") == before + 1

    @pytest.mark.asyncio
    async def test_binary_and_ping_ignored(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
    ) -> None:
        mock_ws.feed(
            aiohttp.WSMessage(aiohttp.WSMsgType.BINARY, b"\x00", None),
            aiohttp.WSMessage(aiohttp.WSMsgType.PING, b"", None),
            frame("NOTICE", "hi"),
        )

        buffer = await RelaySession(URL, query, session=mock_session).run()

        assert [m.text for m in buffer] == ["hi"]


# ============================================================================
# RelaySession Failure Tests
# ============================================================================


class TestRelaySessionFailures:
    @pytest.mark.asyncio
    async def test_malformed_frame_keeps_partial_buffer(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
        make_event: Callable[..., dict[str, Any]],
    ) -> None:
        before = _count("transport_error")
        mock_ws.feed(frame("EVENT", "fetchProfile", make_event()), "{not json")

        buffer = await RelaySession(URL, query, session=mock_session).run()

        assert len(buffer) == 1
        assert mock_ws.calls[-1] == ("close",)
        assert _count("transport_error") == before + 1

    @pytest.mark.asyncio
    async def test_connect_error(self, query: Query, mock_session: MagicMock) -> None:
        mock_session.ws_connect = AsyncMock(side_effect=aiohttp.ClientError("refused"))

        session = RelaySession(URL, query, session=mock_session)

        assert await session.run() == ()
        assert session.state is SessionState.DONE

    @pytest.mark.asyncio
    async def test_os_error(self, query: Query, mock_session: MagicMock) -> None:
        mock_session.ws_connect = AsyncMock(side_effect=OSError("unreachable"))
        assert await RelaySession(URL, query, session=mock_session).run() == ()

    @pytest.mark.asyncio
    async def test_timeout(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
        make_event: Callable[..., dict[str, Any]],
    ) -> None:
        frames = iter([frame("EVENT", "fetchProfile", make_event())])

        async def _receive() -> aiohttp.WSMessage:
            for data in frames:
                return aiohttp.WSMessage(aiohttp.WSMsgType.TEXT, data, None)
            await asyncio.sleep(10)
            raise AssertionError("deadline not enforced")

        mock_ws.receive = AsyncMock(side_effect=_receive)
        before = _count("timeout")

        buffer = await RelaySession(URL, query, timeout=0.05, session=mock_session).run()

        assert len(buffer) == 1
        assert mock_ws.calls[-1] == ("close",)
        assert _count("timeout") == before + 1

    @pytest.mark.asyncio
    async def test_cancellation_propagates(
        self, query: Query, mock_ws: MagicMock, mock_session: MagicMock
    ) -> None:
        mock_ws.receive = AsyncMock(side_effect=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await RelaySession(URL, query, session=mock_session).run()
        mock_ws.close.assert_awaited_once()


# ============================================================================
# RelaySession Lifecycle Tests
# ============================================================================


class TestRelaySessionLifecycle:
    def test_initial_state(self, query: Query) -> None:
        session = RelaySession(URL, query)
        assert session.state is SessionState.CONNECTING
        assert session.url == URL
        assert session.query is query

    @pytest.mark.asyncio
    async def test_run_resolves_once(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
    ) -> None:
        mock_ws.feed(frame("NOTICE", "once"))
        session = RelaySession(URL, query, session=mock_session)

        first = await session.run()
        second = await session.run()

        assert first is second
        mock_session.ws_connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_runs_share_result(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
    ) -> None:
        mock_ws.feed(frame("NOTICE", "once"))
        session = RelaySession(URL, query, session=mock_session)

        first, second = await asyncio.gather(session.run(), session.run())

        assert first is second
        mock_session.ws_connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(
        self, query: Query, mock_session: MagicMock
    ) -> None:
        await RelaySession(URL, query, session=mock_session).run()
        mock_session.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_session_closed(
        self, query: Query, mock_ws: MagicMock, mock_session: MagicMock
    ) -> None:
        with patch("aiohttp.ClientSession", return_value=mock_session) as factory:
            await RelaySession(URL, query).run()

        factory.assert_called_once_with()
        mock_session.close.assert_awaited_once()
        mock_ws.close.assert_awaited_once()


# ============================================================================
# fetch_events Tests
# ============================================================================


class TestFetchEvents:
    @pytest.mark.asyncio
    async def test_none_query(self, mock_session: MagicMock) -> None:
        before = _count("skipped")

        assert await fetch_events("nos.lol", None, session=mock_session) == ()

        mock_session.ws_connect.assert_not_awaited()
        assert _count("skipped") == before + 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", [None, "", "ws://nos.lol"])
    async def test_invalid_address(
        self, address: str | None, query: Query, mock_session: MagicMock
    ) -> None:
        assert await fetch_events(address, query, session=mock_session) == ()
        mock_session.ws_connect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_connects_to_normalized_url(
        self,
        query: Query,
        mock_ws: MagicMock,
        mock_session: MagicMock,
        frame: Callable[..., str],
        make_event: Callable[..., dict[str, Any]],
    ) -> None:
        mock_ws.feed(frame("EVENT", "fetchProfile", make_event()), frame("EOSE", "fetchProfile"))

        buffer = await fetch_events("Nos.Lol", query, timeout=5, session=mock_session)

        assert len(buffer) == 1
        mock_session.ws_connect.assert_awaited_once_with("wss://nos.lol")
