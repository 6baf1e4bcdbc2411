"""Request and response records exchanged with the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass

from .constants import FetchMode, OutputKind


@dataclass(frozen=True, slots=True)
class RequestParams:
    """Parameters of one gateway invocation.

    Attributes:
        output: Requested output encoding.
        fetch: Request mode. Kept as a plain string when it came from an
            untrusted route so the query builder can reject unknown modes.
        relay: Relay address without scheme (e.g. ``relay.damus.io``).
        note: Identifier or search term.
        limit: Optional limit override.
        since: Optional lower bound on ``created_at``.
    """

    output: OutputKind = OutputKind.JSON
    fetch: FetchMode | str = FetchMode.NOTE
    relay: str | None = None
    note: str | None = None
    limit: int | None = None
    since: int | None = None


@dataclass(frozen=True, slots=True)
class OutputContent:
    """A formatted response body and its MIME type."""

    mime_type: str
    payload: str | bytes

    @property
    def content_type(self) -> str:
        """``Content-Type`` header value, always declaring UTF-8."""
        return f"{self.mime_type}; charset=utf-8"
