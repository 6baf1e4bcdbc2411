"""nostrgate exception hierarchy.

Internal layers degrade silently (empty query, empty or partial buffer);
only request-level programming errors are allowed to reach the HTTP
boundary, where they become a generic error body.

Exception hierarchy:

```text
NostrGateError (base -- never raised directly)
├── ConfigurationError        -- config validation, bad YAML
├── IdentifierError           -- bech32/TLV decode failure (caught inside nips.nip19)
├── RequestError              -- malformed request, reaches the HTTP catch-all
│   ├── RouteError            -- path does not map to a parameter record
│   ├── UnsupportedModeError  -- unknown fetch mode
│   └── UnsupportedFormatError -- unknown output kind
└── RelayError                -- transport failure (caught inside RelaySession)
    └── RelayAddressError     -- relay address is not a valid wss:// URL
```

See Also:
    [decode_identifier()][nostrgate.nips.nip19.decode_identifier]: Converts
        [IdentifierError][nostrgate.core.exceptions.IdentifierError] into a
        ``DecodeFailure`` result.
    [RelaySession][nostrgate.utils.transport.RelaySession]: Never lets
        [RelayError][nostrgate.core.exceptions.RelayError] escape.
    [create_app()][nostrgate.services.api.create_app]: Catch-all that turns
        [RequestError][nostrgate.core.exceptions.RequestError] into ``["error"]``.
"""

from __future__ import annotations


class NostrGateError(Exception):
    """Base exception for all nostrgate errors."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(NostrGateError):
    """Invalid or missing configuration (YAML, CLI flags)."""


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class IdentifierError(NostrGateError):
    """A NIP-19 value could not be decoded (checksum, charset, padding, TLV).

    Never leaves [nostrgate.nips.nip19][]: the decoder reports it as a
    ``DecodeFailure`` result instead.
    """


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RequestError(NostrGateError):
    """Base for request errors that propagate to the HTTP boundary."""


class RouteError(RequestError):
    """The request path does not describe a gateway request."""


class UnsupportedModeError(RequestError):
    """The fetch mode is not one of note, comments, profile, author, search."""


class UnsupportedFormatError(RequestError):
    """The output kind is not one of json, text, markdown, html, file."""


# ---------------------------------------------------------------------------
# Relay transport
# ---------------------------------------------------------------------------


class RelayError(NostrGateError):
    """Relay connection or protocol failure.

    Callers of [fetch_events()][nostrgate.utils.transport.fetch_events] never
    see it; the session resolves with whatever it buffered.
    """


class RelayAddressError(RelayError):
    """The relay address is not a valid secure websocket URL."""
