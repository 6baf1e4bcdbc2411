"""Shared constants for the models layer.

Enumerations used by the identifier decoder, the query builder, the relay
session, and the content formatter. Keeping them here avoids circular
imports between [nostrgate.nips][] and [nostrgate.services][].

See Also:
    [nostrgate.models.query][]: Uses [FetchMode][nostrgate.models.constants.FetchMode]
        and [SubscriptionLabel][nostrgate.models.constants.SubscriptionLabel].
    [nostrgate.models.message][]: Uses [MessageType][nostrgate.models.constants.MessageType]
        to tag inbound relay frames.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class FetchMode(StrEnum):
    """Request modes understood by the query builder.

    Attributes:
        NOTE: A single event by id, or an addressable event by ``naddr``.
        COMMENTS: Replies referencing an event (``#e`` filter).
        PROFILE: The kind 0 metadata of a pubkey.
        AUTHOR: Recent notes and articles written by a pubkey.
        SEARCH: NIP-50 full-text search; the term is never decoded.
    """

    NOTE = "note"
    COMMENTS = "comments"
    PROFILE = "profile"
    AUTHOR = "author"
    SEARCH = "search"


class OutputKind(StrEnum):
    """Output encodings produced by the content formatter."""

    JSON = "json"
    TEXT = "text"
    MARKDOWN = "markdown"
    HTML = "html"
    FILE = "file"


class SubscriptionLabel(StrEnum):
    """Fixed subscription ids, one per fetch mode.

    The label is sent in the ``REQ`` and reused verbatim in the ``CLOSE``.
    """

    NOTE = "fetchNote"
    COMMENTS = "fetchComments"
    PROFILE = "fetchProfile"
    AUTHOR = "fetchNotesByAuthor"
    SEARCH = "fetchNotesBySearchTerms"


class MessageType(StrEnum):
    """First element of a NIP-01 relay-to-client frame.

    ``UNKNOWN`` is never sent by a relay; it tags frames whose head is not
    one of the recognised types.
    """

    EVENT = "EVENT"
    OK = "OK"
    NOTICE = "NOTICE"
    EOSE = "EOSE"
    CLOSED = "CLOSED"
    UNKNOWN = "UNKNOWN"


class Nip19Prefix(StrEnum):
    """Human-readable parts accepted by the NIP-19 decoder."""

    NPUB = "npub"
    NSEC = "nsec"
    NOTE = "note"
    NEVENT = "nevent"
    NADDR = "naddr"
    NPROFILE = "nprofile"
    NRELAY = "nrelay"


class TlvTag(IntEnum):
    """NIP-19 TLV record types.

    Attributes:
        SPECIAL: Event id (nevent), pubkey (nprofile), or ``d`` identifier (naddr).
        RELAY: Relay hint, UTF-8.
        AUTHOR: Author pubkey, 32 bytes.
        KIND: Event kind, 32-bit big-endian unsigned.
    """

    SPECIAL = 0x00
    RELAY = 0x01
    AUTHOR = 0x02
    KIND = 0x03


class EventKind(IntEnum):
    """Event kinds requested by the query builder."""

    METADATA = 0
    TEXT_NOTE = 1
    COMMENT = 1111
    LONG_FORM = 30_023


TLV_PREFIXES: frozenset[Nip19Prefix] = frozenset(
    {Nip19Prefix.NEVENT, Nip19Prefix.NADDR, Nip19Prefix.NPROFILE}
)

DEFAULT_LIMIT = 20
SINGLE_LIMIT = 1
PUBKEY_HEX_LENGTH = 64
