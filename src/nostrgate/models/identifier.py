"""
NIP-19 identifier value types.

Decoding never raises; instead it returns one of four result variants so
callers can tell a definitively empty answer from a failed decode:

* [HexIdentifier][nostrgate.models.identifier.HexIdentifier] -- input already protocol-native.
* [PassThrough][nostrgate.models.identifier.PassThrough] -- not an identifier (e.g. a search term).
* [DecodedIdentifier][nostrgate.models.identifier.DecodedIdentifier] -- a bech32 value was decoded.
* [DecodeFailure][nostrgate.models.identifier.DecodeFailure] -- it looked like bech32 but was not.

All four expose ``value`` (the plain string the query builder consumes) and
``usable``. A failure's ``value`` is the empty string, so downstream code
degrades it exactly like an empty identifier.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import PUBKEY_HEX_LENGTH, Nip19Prefix


@dataclass(frozen=True, slots=True)
class TlvRecord:
    """A single tag-length-value record from a NIP-19 payload."""

    tag: int
    value: bytes

    @property
    def length(self) -> int:
        return len(self.value)


@dataclass(frozen=True, slots=True)
class CompositeIdentifier:
    """Fields recovered from an ``nevent``, ``naddr`` or ``nprofile`` payload.

    Attributes:
        prefix: The human-readable part the payload was decoded from.
        special: Hex event id / pubkey, or the ``d`` identifier text for naddr.
            ``None`` when the payload carried no ``0x00`` record.
        relay: Relay hint, decoded but not used for routing.
        author: Author pubkey as hex.
        kind: Event kind.
    """

    prefix: Nip19Prefix
    special: str | None = None
    relay: str | None = None
    author: str | None = None
    kind: int | None = None

    def reduce(self) -> str | None:
        """Collapse the composite into the single string the query builder expects.

        Returns:
            The hex id for nevent/nprofile, ``author + d`` for naddr (the first
            64 characters are always the author), or ``None`` when the payload
            lacks the fields needed for its prefix.
        """
        if self.special is None:
            return None
        if self.prefix is Nip19Prefix.NADDR:
            if self.author is None or len(self.author) != PUBKEY_HEX_LENGTH:
                return None
            return self.author + self.special
        return self.special


@dataclass(frozen=True, slots=True)
class HexIdentifier:
    """A 64-character lowercase hex identifier, returned unchanged."""

    value: str

    @property
    def usable(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class PassThrough:
    """Input that is not a NIP-19 identifier and is returned verbatim."""

    value: str

    @property
    def usable(self) -> bool:
        return bool(self.value)


@dataclass(frozen=True, slots=True)
class DecodedIdentifier:
    """A successfully decoded bech32 identifier.

    Attributes:
        prefix: Human-readable part of the bech32 string.
        hex: Hex encoding of the raw payload bytes.
        composite: TLV fields, present only for nevent/naddr/nprofile.
    """

    prefix: str
    hex: str
    composite: CompositeIdentifier | None = None

    @property
    def value(self) -> str:
        if self.composite is None:
            return self.hex
        return self.composite.reduce() or ""

    @property
    def usable(self) -> bool:
        return bool(self.value)


@dataclass(frozen=True, slots=True)
class DecodeFailure:
    """A value that matched the NIP-19 shape but could not be decoded."""

    raw: str
    reason: str

    @property
    def value(self) -> str:
        return ""

    @property
    def usable(self) -> bool:
        return False


DecodeResult = HexIdentifier | PassThrough | DecodedIdentifier | DecodeFailure
