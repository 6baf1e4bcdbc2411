"""Shared helpers for the nips test package.

Identifiers are built with the ``bech32`` library's encoder so the decoder
under test is checked against an independent implementation.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest
from bech32 import bech32_encode, convertbits


def encode_bech32(hrp: str, payload: bytes) -> str:
    words = convertbits(payload, 8, 5, True)
    assert words is not None
    return bech32_encode(hrp, words)


def tlv(tag: int, value: bytes) -> bytes:
    return bytes([tag, len(value)]) + value


@pytest.fixture
def bech32_of() -> Callable[[str, bytes], str]:
    """Encode raw payload bytes under a human-readable part."""
    return encode_bech32


@pytest.fixture
def tlv_record() -> Callable[[int, bytes], bytes]:
    """Serialize one TLV record."""
    return tlv
