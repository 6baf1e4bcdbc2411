"""
NIP-19 identifier decoding.

Turns whatever the caller typed into the string the query builder puts in a
filter. Three shapes are recognised:

* 64 lowercase hex characters, returned unchanged.
* A bech32 value whose human-readable part is a NIP-19 prefix
  (``npub``, ``nsec``, ``note``, ``nevent``, ``naddr``, ``nprofile``,
  ``nrelay``). Its payload is checksum-verified, regrouped to bytes and
  hex-encoded. ``nevent``, ``naddr`` and ``nprofile`` payloads are TLV
  records that are reduced to a single string.
* Anything else (search terms, garbage), returned verbatim.

[decode_identifier()][nostrgate.nips.nip19.decode_identifier] never raises:
a value that looks like bech32 but fails to decode becomes a
[DecodeFailure][nostrgate.models.identifier.DecodeFailure] whose ``value``
is the empty string.

Note:
    The ``bech32`` package caps ``bech32_decode`` at 90 characters, which is
    too short for TLV identifiers carrying relay hints. The separator split
    and length bound are done here; charset, checksum and bit regrouping
    come from the library.

Examples:
    ```python
    decode("npub180cvv07tjdrrgpa0j7j7tmnyl2yr6yr7l8j4s3evf6u64th6gkwsyjh6w6")
    # '3bf0c63fcb93463407af97a5e5ee64fa883d107ef9e558472c4eb9aaaefa459d'

    decode_identifier("hello world")
    # PassThrough(value='hello world')
    ```
"""

from __future__ import annotations

import logging
import re
from typing import Final

from bech32 import CHARSET, bech32_verify_checksum, convertbits

from nostrgate.core.exceptions import IdentifierError
from nostrgate.models.constants import TLV_PREFIXES, Nip19Prefix, TlvTag
from nostrgate.models.identifier import (
    CompositeIdentifier,
    DecodedIdentifier,
    DecodeFailure,
    DecodeResult,
    HexIdentifier,
    PassThrough,
    TlvRecord,
)


MAX_BECH32_LENGTH: Final[int] = 1000
CHECKSUM_LENGTH: Final[int] = 6

_HEX_RE: Final = re.compile(r"^[0-9a-f]{64}$")
_BECH32_RE: Final = re.compile(
    r"^(" + "|".join(p.value for p in Nip19Prefix) + r")[a-z0-9]{1,255}$"
)

logger = logging.getLogger("nips.nip19")


def _bech32_decode(value: str) -> tuple[str, bytes]:
    """Split, verify and regroup a bech32 string.

    Returns:
        The human-readable part and the payload bytes.

    Raises:
        IdentifierError: On length, separator, charset, checksum or padding errors.
    """
    if len(value) > MAX_BECH32_LENGTH:
        raise IdentifierError(f"bech32 string exceeds {MAX_BECH32_LENGTH} characters")

    pos = value.rfind("1")
    if pos < 1 or pos + CHECKSUM_LENGTH + 1 > len(value):
        raise IdentifierError("missing separator or checksum")

    hrp, data_part = value[:pos], value[pos + 1 :]
    try:
        words = [CHARSET.index(c) for c in data_part]
    except ValueError as e:
        raise IdentifierError("invalid bech32 character") from e

    if not bech32_verify_checksum(hrp, words):
        raise IdentifierError("invalid checksum")

    regrouped = convertbits(words[:-CHECKSUM_LENGTH], 5, 8, False)
    if regrouped is None:
        raise IdentifierError("invalid padding")

    return hrp, bytes(regrouped)


def parse_tlv(payload: bytes) -> tuple[TlvRecord, ...]:
    """Split a payload into 1-byte tag, 1-byte length, value records.

    A trailing record whose declared length runs past the end of the
    payload is dropped.
    """
    records: list[TlvRecord] = []
    i = 0
    while i + 2 <= len(payload):
        tag, length = payload[i], payload[i + 1]
        start, end = i + 2, i + 2 + length
        if end > len(payload):
            logger.debug(
                "tlv_truncated tag=%s length=%s remaining=%s", tag, length, len(payload) - start
            )
            break
        records.append(TlvRecord(tag=tag, value=payload[start:end]))
        i = end
    return tuple(records)


def _to_composite(prefix: Nip19Prefix, records: tuple[TlvRecord, ...]) -> CompositeIdentifier:
    special: str | None = None
    relay: str | None = None
    author: str | None = None
    kind: int | None = None
    for record in records:
        if record.tag == TlvTag.SPECIAL:
            if prefix is Nip19Prefix.NADDR:
                try:
                    special = record.value.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise IdentifierError("d identifier is not valid UTF-8") from e
            else:
                special = record.value.hex()
        elif record.tag == TlvTag.RELAY:
            relay = record.value.decode("utf-8", errors="replace")
        elif record.tag == TlvTag.AUTHOR:
            author = record.value.hex()
        elif record.tag == TlvTag.KIND:
            kind = int.from_bytes(record.value, "big")
        # unknown tags are ignored
    return CompositeIdentifier(
        prefix=prefix, special=special, relay=relay, author=author, kind=kind
    )


def decode_identifier(raw: str) -> DecodeResult:
    """Classify and decode an identifier.

    Args:
        raw: Hex id, NIP-19 bech32 value, or free text.

    Returns:
        [HexIdentifier][nostrgate.models.identifier.HexIdentifier],
        [PassThrough][nostrgate.models.identifier.PassThrough],
        [DecodedIdentifier][nostrgate.models.identifier.DecodedIdentifier] or
        [DecodeFailure][nostrgate.models.identifier.DecodeFailure].
    """
    if _HEX_RE.match(raw):
        return HexIdentifier(raw)
    if not _BECH32_RE.match(raw):
        return PassThrough(raw)

    try:
        hrp, payload = _bech32_decode(raw)
        try:
            prefix = Nip19Prefix(hrp)
        except ValueError:
            return DecodedIdentifier(prefix=hrp, hex=payload.hex())

        if prefix not in TLV_PREFIXES:
            return DecodedIdentifier(prefix=prefix, hex=payload.hex())

        composite = _to_composite(prefix, parse_tlv(payload))
        if composite.reduce() is None:
            raise IdentifierError(f"{prefix} payload lacks required fields")
        return DecodedIdentifier(prefix=prefix, hex=payload.hex(), composite=composite)
    except IdentifierError as e:
        logger.debug("decode_failed raw=%s reason=%s", raw[:80], e)
        return DecodeFailure(raw=raw, reason=str(e))


def decode(raw: str) -> str:
    """Return the plain string form of *raw*; ``""`` when decoding fails."""
    return decode_identifier(raw).value
