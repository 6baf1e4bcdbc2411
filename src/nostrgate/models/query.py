"""
NIP-01 subscription request models.

A [Query][nostrgate.models.query.Query] is the ``["REQ", label, filter]``
triple sent to a relay. Its [Filter][nostrgate.models.query.Filter] only
serializes the fields the request mode populated, in the order the mode
declares them, so the wire form is fully determined by the mode.

See Also:
    [nostrgate.nips.nip01][]: Builds queries from request modes.
    [nostrgate.utils.transport][]: Sends them over a websocket.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Final

from .constants import SubscriptionLabel


REQ: Final = "REQ"
CLOSE: Final = "CLOSE"


@dataclass(frozen=True, slots=True)
class Filter:
    """Immutable NIP-01 filter.

    Every field defaults to ``None`` and is omitted from
    [to_dict()][nostrgate.models.query.Filter.to_dict] when unset.

    Attributes:
        ids: Event ids.
        authors: Author pubkeys.
        kinds: Event kinds.
        e_tags: Values of the ``#e`` tag filter.
        d_tags: Values of the ``#d`` tag filter.
        search: NIP-50 search string.
        limit: Maximum number of events.
        since: Lower bound on ``created_at`` (unix seconds).
    """

    ids: tuple[str, ...] | None = None
    authors: tuple[str, ...] | None = None
    kinds: tuple[int, ...] | None = None
    e_tags: tuple[str, ...] | None = None
    d_tags: tuple[str, ...] | None = None
    search: str | None = None
    limit: int | None = None
    since: int | None = None

    # (attribute, wire key) in serialization order
    _WIRE_KEYS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("ids", "ids"),
        ("authors", "authors"),
        ("d_tags", "#d"),
        ("e_tags", "#e"),
        ("kinds", "kinds"),
        ("search", "search"),
        ("limit", "limit"),
        ("since", "since"),
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready filter object with unset fields dropped."""
        result: dict[str, Any] = {}
        for attr, key in self._WIRE_KEYS:
            value = getattr(self, attr)
            if value is None:
                continue
            result[key] = list(value) if isinstance(value, tuple) else value
        return result


@dataclass(frozen=True, slots=True)
class Query:
    """A single-subscription ``REQ`` message.

    Examples:
        ```python
        query = Query(SubscriptionLabel.PROFILE, Filter(authors=(pk,), kinds=(0,), limit=1))
        query.to_wire()        # ['REQ', 'fetchProfile', {'authors': [pk], 'kinds': [0], 'limit': 1}]
        query.close_message()  # ['CLOSE', 'fetchProfile']
        ```
    """

    label: SubscriptionLabel
    filter: Filter

    @property
    def verb(self) -> str:
        return REQ

    def to_wire(self) -> list[Any]:
        return [REQ, str(self.label), self.filter.to_dict()]

    def close_message(self) -> list[str]:
        return [CLOSE, str(self.label)]
