"""
Relay-to-client NIP-01 messages as tagged variants.

[parse_message()][nostrgate.models.message.parse_message] turns one websocket
text frame into exactly one variant. Each variant keeps the decoded frame in
``raw`` so the JSON output can reproduce what the relay sent verbatim.

Only [EventMessage][nostrgate.models.message.EventMessage],
[OkMessage][nostrgate.models.message.OkMessage] and
[NoticeMessage][nostrgate.models.message.NoticeMessage] are ever stored in a
result buffer; EOSE and CLOSED only drive session termination.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .constants import MessageType


@dataclass(frozen=True, slots=True)
class Event:
    """A Nostr event as delivered by a relay.

    Construction is lenient: relays are untrusted, and the gateway never
    verifies signatures, so missing or mistyped fields become empty values
    instead of errors.
    """

    id: str = ""
    pubkey: str = ""
    created_at: int = 0
    kind: int = 0
    tags: tuple[tuple[str, ...], ...] = ()
    content: str = ""
    sig: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Event:
        if not isinstance(data, dict):
            return cls()
        raw_tags = data.get("tags")
        tags = tuple(
            tuple(str(v) for v in tag)
            for tag in (raw_tags if isinstance(raw_tags, list) else [])
            if isinstance(tag, list)
        )
        created_at = data.get("created_at")
        kind = data.get("kind")
        content = data.get("content")
        return cls(
            id=str(data.get("id") or ""),
            pubkey=str(data.get("pubkey") or ""),
            created_at=created_at if isinstance(created_at, int) else 0,
            kind=kind if isinstance(kind, int) else 0,
            tags=tags,
            content=content if isinstance(content, str) else "",
            sig=str(data.get("sig") or ""),
        )

    def tag_value(self, name: str) -> str | None:
        """Return the first value of the first tag called *name*."""
        for tag in self.tags:
            if len(tag) >= 2 and tag[0] == name:
                return tag[1]
        return None


@dataclass(frozen=True, slots=True)
class EventMessage:
    """``["EVENT", <subscription_id>, <event>]``"""

    subscription: str
    event: Event
    raw: list[Any] = field(compare=False, repr=False)

    type = MessageType.EVENT

    @property
    def text(self) -> str:
        return self.event.content


@dataclass(frozen=True, slots=True)
class OkMessage:
    """``["OK", <event_id>, <accepted>, <message>]``

    The second element is treated as the message's text payload.
    """

    text: str
    accepted: bool | None = None
    message: str | None = None
    raw: list[Any] = field(default_factory=list, compare=False, repr=False)

    type = MessageType.OK


@dataclass(frozen=True, slots=True)
class NoticeMessage:
    """``["NOTICE", <message>]``"""

    text: str
    raw: list[Any] = field(default_factory=list, compare=False, repr=False)

    type = MessageType.NOTICE


@dataclass(frozen=True, slots=True)
class EoseMessage:
    """``["EOSE", <subscription_id>]``"""

    subscription: str
    raw: list[Any] = field(default_factory=list, compare=False, repr=False)

    type = MessageType.EOSE


@dataclass(frozen=True, slots=True)
class ClosedMessage:
    """``["CLOSED", <subscription_id>, <reason>]``"""

    subscription: str
    reason: str = ""
    raw: list[Any] = field(default_factory=list, compare=False, repr=False)

    type = MessageType.CLOSED


@dataclass(frozen=True, slots=True)
class UnknownMessage:
    """Any frame whose first element is not a recognised message type."""

    tag: str
    raw: list[Any] = field(default_factory=list, compare=False, repr=False)

    type = MessageType.UNKNOWN


ProtocolMessage = (
    EventMessage | OkMessage | NoticeMessage | EoseMessage | ClosedMessage | UnknownMessage
)
BufferedMessage = EventMessage | OkMessage | NoticeMessage
ResultBuffer = tuple[BufferedMessage, ...]


def _str_at(frame: list[Any], index: int) -> str:
    if len(frame) > index and frame[index] is not None:
        value = frame[index]
        return value if isinstance(value, str) else json.dumps(value)
    return ""


def parse_message(frame: str | bytes) -> ProtocolMessage:
    """Decode one relay frame into its message variant.

    Args:
        frame: Raw websocket text payload.

    Returns:
        The matching variant; any other JSON value becomes
        [UnknownMessage][nostrgate.models.message.UnknownMessage], tagged
        with its JSON-encoded head or ``""`` when it has none.

    Raises:
        ValueError: If the frame is not JSON.
    """
    decoded = json.loads(frame)
    if not isinstance(decoded, list) or not decoded:
        return UnknownMessage("", raw=decoded if isinstance(decoded, list) else [decoded])

    head = decoded[0]
    if not isinstance(head, str):
        return UnknownMessage(json.dumps(head), raw=decoded)
    if head == MessageType.EVENT:
        event_data = decoded[2] if len(decoded) > 2 else None
        return EventMessage(_str_at(decoded, 1), Event.from_dict(event_data), raw=decoded)
    if head == MessageType.OK:
        accepted = decoded[2] if len(decoded) > 2 and isinstance(decoded[2], bool) else None
        message = decoded[3] if len(decoded) > 3 and isinstance(decoded[3], str) else None
        return OkMessage(_str_at(decoded, 1), accepted, message, raw=decoded)
    if head == MessageType.NOTICE:
        return NoticeMessage(_str_at(decoded, 1), raw=decoded)
    if head == MessageType.EOSE:
        return EoseMessage(_str_at(decoded, 1), raw=decoded)
    if head == MessageType.CLOSED:
        return ClosedMessage(_str_at(decoded, 1), _str_at(decoded, 2), raw=decoded)
    return UnknownMessage(head, raw=decoded)
