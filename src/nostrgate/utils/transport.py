"""
Single-shot NIP-01 relay sessions over aiohttp websockets.

A [RelaySession][nostrgate.utils.transport.RelaySession] opens one socket,
sends one ``REQ``, buffers ``EVENT``/``OK``/``NOTICE`` frames and stops at
the first terminal frame:

```text
CONNECTING --open--> AWAITING_FRAMES --EOSE/OK/NOTICE--> CLOSING --CLOSE sent--> DONE
                           |
                           +--CLOSED / socket closed / error--> DONE
```

Transport problems never escape: connection errors, malformed frames and
the optional deadline all resolve the session with whatever was buffered
so far. Only task cancellation propagates.

Examples:
    ```python
    query = build_query(FetchMode.PROFILE, pubkey)
    buffer = await fetch_events("relay.damus.io", query, timeout=15)
    ```
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from enum import StrEnum
from typing import TYPE_CHECKING, Final

import aiohttp
from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator

from nostrgate.core.exceptions import RelayAddressError
from nostrgate.core.metrics import (
    BUFFERED_MESSAGES,
    RELAY_SESSION_DURATION_SECONDS,
    RELAY_SESSIONS_TOTAL,
)
from nostrgate.models.message import (
    BufferedMessage,
    ClosedMessage,
    EoseMessage,
    EventMessage,
    NoticeMessage,
    OkMessage,
    ResultBuffer,
    parse_message,
)


if TYPE_CHECKING:
    from nostrgate.models.query import Query


DEFAULT_SCHEME: Final[str] = "wss://"

logger = logging.getLogger("utils.transport")

_IGNORED_FRAMES: Final = frozenset(
    {aiohttp.WSMsgType.BINARY, aiohttp.WSMsgType.PING, aiohttp.WSMsgType.PONG}
)


class SessionState(StrEnum):
    """Lifecycle of a [RelaySession][nostrgate.utils.transport.RelaySession]."""

    CONNECTING = "connecting"
    AWAITING_FRAMES = "awaiting_frames"
    CLOSING = "closing"
    DONE = "done"


def _validate_relay_url(address: str, scheme: str) -> str:
    raw = address.strip()
    if "://" not in raw:
        raw = scheme + raw

    uri = uri_reference(raw).normalize()
    validator = (
        Validator()
        .require_presence_of("scheme", "host")
        .allow_schemes(scheme.removesuffix("://"))
        .check_validity_of("scheme", "host", "port", "path")
    )
    try:
        validator.validate(uri)
    except UnpermittedComponentError:
        raise RelayAddressError(f"Invalid scheme: must be {scheme}") from None
    except ValidationError as e:
        raise RelayAddressError(f"Invalid relay URL: {e}") from None
    return uri.unsplit()


def normalize_relay_url(address: str | None, scheme: str = DEFAULT_SCHEME) -> str | None:
    """Prefix *scheme* to a bare relay address and validate it.

    Args:
        address: Relay host with optional port and path (``relay.damus.io``).
            An address that already carries a scheme is validated as is.
        scheme: Scheme to prepend, ``wss://`` by default.

    Returns:
        The normalized URL, or ``None`` if *address* is empty or invalid.
    """
    if not address or not address.strip():
        return None
    try:
        return _validate_relay_url(address, scheme)
    except RelayAddressError as e:
        logger.debug("invalid_relay_address address=%s error=%s", address, e)
        return None


class RelaySession:
    """One websocket, one subscription, one result buffer.

    Attributes:
        url: Validated relay URL.
        query: The ``REQ`` sent once the socket opens.
        state: Current [SessionState][nostrgate.utils.transport.SessionState].

    Note:
        [run()][nostrgate.utils.transport.RelaySession.run] resolves exactly
        once. Later calls return the same buffer without reconnecting.
    """

    def __init__(
        self,
        url: str,
        query: Query,
        *,
        timeout: float | None = None,  # noqa: ASYNC109
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._url = url
        self._query = query
        self._timeout = timeout
        self._session = session
        self._state = SessionState.CONNECTING
        self._buffer: list[BufferedMessage] = []
        self._outcome = "disconnected"
        self._result: ResultBuffer | None = None
        self._lock = asyncio.Lock()

    @property
    def url(self) -> str:
        return self._url

    @property
    def query(self) -> Query:
        return self._query

    @property
    def state(self) -> SessionState:
        return self._state

    async def run(self) -> ResultBuffer:
        """Execute the exchange and return the buffered messages.

        Returns:
            ``EVENT``, ``OK`` and ``NOTICE`` messages in arrival order.

        Raises:
            asyncio.CancelledError: If the calling task is cancelled.
        """
        async with self._lock:
            if self._result is not None:
                return self._result

            start = time.monotonic()
            logger.debug(
                "session_started relay=%s subscription=%s timeout_s=%s",
                self._url,
                self._query.label,
                self._timeout,
            )
            try:
                async with asyncio.timeout(self._timeout):
                    await self._exchange()
            except TimeoutError:
                self._outcome = "timeout"
                logger.debug("session_timeout relay=%s timeout_s=%s", self._url, self._timeout)
            except (aiohttp.ClientError, OSError, ValueError) as e:
                self._outcome = "transport_error"
                logger.debug("session_failed relay=%s error=%s", self._url, str(e))

            self._state = SessionState.DONE
            self._result = tuple(self._buffer)

            duration = time.monotonic() - start
            RELAY_SESSIONS_TOTAL.labels(outcome=self._outcome).inc()
            RELAY_SESSION_DURATION_SECONDS.observe(duration)
            BUFFERED_MESSAGES.observe(len(self._result))
            logger.debug(
                "session_finished relay=%s outcome=%s buffered=%s duration_s=%.3f",
                self._url,
                self._outcome,
                len(self._result),
                duration,
            )
            return self._result

    async def _exchange(self) -> None:
        owns_session = self._session is None
        session = self._session if self._session is not None else aiohttp.ClientSession()
        try:
            ws = await session.ws_connect(self._url)
            try:
                self._state = SessionState.AWAITING_FRAMES
                await ws.send_str(json.dumps(self._query.to_wire()))

                while self._state is SessionState.AWAITING_FRAMES:
                    msg = await ws.receive()
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        self._on_frame(msg.data)
                    elif msg.type not in _IGNORED_FRAMES:
                        # CLOSE, CLOSING, CLOSED, ERROR
                        self._outcome = "disconnected"
                        self._state = SessionState.DONE

                if self._state is SessionState.CLOSING:
                    await ws.send_str(json.dumps(self._query.close_message()))
                    self._state = SessionState.DONE
            finally:
                await ws.close()
        finally:
            if owns_session:
                await session.close()

    def _on_frame(self, data: str) -> None:
        message = parse_message(data)

        if isinstance(message, EventMessage):
            self._buffer.append(message)
        elif isinstance(message, OkMessage | NoticeMessage):
            self._buffer.append(message)
            self._outcome = str(message.type).lower()
            self._state = SessionState.CLOSING
        elif isinstance(message, EoseMessage):
            self._outcome = "eose"
            self._state = SessionState.CLOSING
        elif isinstance(message, ClosedMessage):
            self._outcome = "closed"
            self._state = SessionState.DONE
            logger.debug("subscription_closed relay=%s reason=%s", self._url, message.reason)
        else:
            logger.debug("frame_ignored relay=%s type=%s", self._url, message.tag)


async def fetch_events(
    address: str | None,
    query: Query | None,
    *,
    timeout: float | None = None,  # noqa: ASYNC109
    scheme: str = DEFAULT_SCHEME,
    session: aiohttp.ClientSession | None = None,
) -> ResultBuffer:
    """Run one relay session for *query* against *address*.

    Returns an empty buffer without connecting when the query is ``None``
    or the address does not validate.

    Args:
        address: Relay address, usually without scheme.
        query: Query from [build_query()][nostrgate.nips.nip01.build_query].
        timeout: Optional deadline for the whole session, in seconds.
        scheme: Scheme prepended to *address*.
        session: Optional shared ``aiohttp.ClientSession``; one is created
            and closed per call otherwise.
    """
    if query is None:
        RELAY_SESSIONS_TOTAL.labels(outcome="skipped").inc()
        logger.debug("session_skipped reason=empty_query relay=%s", address)
        return ()

    url = normalize_relay_url(address, scheme)
    if url is None:
        RELAY_SESSIONS_TOTAL.labels(outcome="skipped").inc()
        logger.debug("session_skipped reason=invalid_address relay=%s", address)
        return ()

    return await RelaySession(url, query, timeout=timeout, session=session).run()
