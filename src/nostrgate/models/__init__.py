"""Frozen dataclasses and enums with zero I/O.

The models layer is the foundation of the DAG: it depends only on the
standard library, and every other package imports from it.

Attributes:
    constants: Request modes, output kinds, message types, NIP-19 prefixes
        and TLV tags.
    identifier: NIP-19 decode result variants and TLV records.
    query: NIP-01 ``Filter`` and ``Query`` with wire serialization.
    message: Relay-to-client message variants and the frame parser.
    content: ``RequestParams`` and ``OutputContent`` boundary records.
"""

from .constants import (
    DEFAULT_LIMIT,
    PUBKEY_HEX_LENGTH,
    SINGLE_LIMIT,
    TLV_PREFIXES,
    EventKind,
    FetchMode,
    MessageType,
    Nip19Prefix,
    OutputKind,
    SubscriptionLabel,
    TlvTag,
)
from .content import OutputContent, RequestParams
from .identifier import (
    CompositeIdentifier,
    DecodedIdentifier,
    DecodeFailure,
    DecodeResult,
    HexIdentifier,
    PassThrough,
    TlvRecord,
)
from .message import (
    BufferedMessage,
    ClosedMessage,
    EoseMessage,
    Event,
    EventMessage,
    NoticeMessage,
    OkMessage,
    ProtocolMessage,
    ResultBuffer,
    UnknownMessage,
    parse_message,
)
from .query import Filter, Query


__all__ = [
    "DEFAULT_LIMIT",
    "PUBKEY_HEX_LENGTH",
    "SINGLE_LIMIT",
    "TLV_PREFIXES",
    "BufferedMessage",
    "ClosedMessage",
    "CompositeIdentifier",
    "DecodeFailure",
    "DecodeResult",
    "DecodedIdentifier",
    "EoseMessage",
    "Event",
    "EventKind",
    "EventMessage",
    "FetchMode",
    "Filter",
    "HexIdentifier",
    "MessageType",
    "Nip19Prefix",
    "NoticeMessage",
    "OkMessage",
    "OutputContent",
    "OutputKind",
    "PassThrough",
    "ProtocolMessage",
    "Query",
    "RequestParams",
    "ResultBuffer",
    "SubscriptionLabel",
    "TlvRecord",
    "TlvTag",
    "UnknownMessage",
    "parse_message",
]
