"""Nostr Implementation Possibilities -- identifier decoding and query building.

Pure functions with no I/O. Depends on [nostrgate.models][nostrgate.models]
and the exception types in [nostrgate.core.exceptions][].

Attributes:
    nip19: Decodes hex, bech32 and TLV identifiers into the string used in
        filters. See [decode_identifier()][nostrgate.nips.nip19.decode_identifier].
    nip01: Builds the single ``REQ`` for a fetch mode.
        See [build_query()][nostrgate.nips.nip01.build_query].
"""

from .nip01 import build_query
from .nip19 import decode, decode_identifier, parse_tlv


__all__ = [
    "build_query",
    "decode",
    "decode_identifier",
    "parse_tlv",
]
