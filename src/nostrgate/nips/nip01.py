"""
NIP-01 query construction per request mode.

Each fetch mode maps to exactly one filter shape and one subscription
label:

| mode     | filter                                            | label                   |
|----------|---------------------------------------------------|-------------------------|
| note     | ``ids`` (or ``authors`` + ``#d`` for naddr), limit 1 | fetchNote            |
| comments | ``#e``, kinds 1 and 1111, limit 20                | fetchComments           |
| profile  | ``authors``, kind 0, limit 1                      | fetchProfile            |
| author   | ``authors``, kinds 1, 1111 and 30023, limit 20    | fetchNotesByAuthor      |
| search   | NIP-50 ``search``, limit 20                       | fetchNotesBySearchTerms |

Modes with a limit of 20 accept a caller override and an optional
``since``. An identifier that decodes to nothing, or an empty search term,
yields ``None`` instead of a query.
"""

from __future__ import annotations

import logging
from typing import assert_never

from nostrgate.core.exceptions import UnsupportedModeError
from nostrgate.models.constants import (
    DEFAULT_LIMIT,
    PUBKEY_HEX_LENGTH,
    SINGLE_LIMIT,
    EventKind,
    FetchMode,
    Nip19Prefix,
    SubscriptionLabel,
)
from nostrgate.models.query import Filter, Query

from .nip19 import decode


logger = logging.getLogger("nips.nip01")

_COMMENT_KINDS = (int(EventKind.TEXT_NOTE), int(EventKind.COMMENT))
_AUTHOR_KINDS = (int(EventKind.TEXT_NOTE), int(EventKind.COMMENT), int(EventKind.LONG_FORM))


def _note(term: str) -> Query | None:
    value = decode(term)
    if not value:
        return None
    if term.startswith(Nip19Prefix.NADDR):
        return Query(
            SubscriptionLabel.NOTE,
            Filter(
                authors=(value[:PUBKEY_HEX_LENGTH],),
                d_tags=(value[PUBKEY_HEX_LENGTH:],),
                limit=SINGLE_LIMIT,
            ),
        )
    return Query(SubscriptionLabel.NOTE, Filter(ids=(value,), limit=SINGLE_LIMIT))


def _comments(term: str, limit: int, since: int | None) -> Query | None:
    value = decode(term)
    if not value:
        return None
    return Query(
        SubscriptionLabel.COMMENTS,
        Filter(e_tags=(value,), kinds=_COMMENT_KINDS, limit=limit, since=since),
    )


def _profile(term: str) -> Query | None:
    value = decode(term)
    if not value:
        return None
    return Query(
        SubscriptionLabel.PROFILE,
        Filter(authors=(value,), kinds=(int(EventKind.METADATA),), limit=SINGLE_LIMIT),
    )


def _author(term: str, limit: int, since: int | None) -> Query | None:
    value = decode(term)
    if not value:
        return None
    return Query(
        SubscriptionLabel.AUTHOR,
        Filter(authors=(value,), kinds=_AUTHOR_KINDS, limit=limit, since=since),
    )


def _search(term: str, limit: int, since: int | None) -> Query | None:
    if not term:
        return None
    return Query(SubscriptionLabel.SEARCH, Filter(search=term, limit=limit, since=since))


def build_query(
    mode: FetchMode | str,
    term: str | None,
    limit: int | None = None,
    since: int | None = None,
) -> Query | None:
    """Build the single ``REQ`` for a request mode.

    Args:
        mode: A [FetchMode][nostrgate.models.constants.FetchMode] or its string value.
        term: Identifier (decoded via [decode()][nostrgate.nips.nip19.decode])
            or, for ``search``, the verbatim search string.
        limit: Overrides the default of 20 for comments, author and search.
        since: Lower bound on ``created_at`` for the same three modes.

    Returns:
        The query, or ``None`` when there is nothing to ask for.

    Raises:
        UnsupportedModeError: If *mode* is not a known fetch mode.
    """
    try:
        fetch = FetchMode(mode)
    except ValueError as e:
        raise UnsupportedModeError(f"Unsupported fetch mode: {mode!r}") from e

    term = term or ""
    page = DEFAULT_LIMIT if limit is None else limit

    if fetch is FetchMode.NOTE:
        query = _note(term)
    elif fetch is FetchMode.COMMENTS:
        query = _comments(term, page, since)
    elif fetch is FetchMode.PROFILE:
        query = _profile(term)
    elif fetch is FetchMode.AUTHOR:
        query = _author(term, page, since)
    elif fetch is FetchMode.SEARCH:
        query = _search(term, page, since)
    else:
        assert_never(fetch)

    if query is None:
        logger.debug("empty_query mode=%s term=%s", fetch, term[:80])
    return query
