"""
Structured logging with key=value and JSON output support.

[Logger][nostrgate.core.logger.Logger] wraps a standard ``logging.Logger``
and attaches keyword arguments to each record. The
[StructuredFormatter][nostrgate.core.logger.StructuredFormatter] renders them
as ``key=value`` pairs; with ``json_output=True`` each record is emitted as a
single JSON object instead.

The formatter is installed on the root handler by the CLI, so plain
``logging.getLogger(__name__)`` calls made in the ``nips`` and ``utils``
layers come out in the same ``level name message`` shape.

Examples:
    ```python
    from nostrgate.core.logger import Logger

    logger = Logger("gateway")
    logger.info("request_handled", output="json", buffered=3)
    # info gateway request_handled output=json buffered=3

    Logger("gateway", json_output=True).info("request_handled", output="json")
    # info gateway {"timestamp": "...", "level": "info", "service": "gateway", ...}
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


_NEEDS_QUOTING: frozenset[str] = frozenset(" =\"'")


def _truncate(value: Any, max_value_length: int | None) -> Any:
    s = str(value)
    if max_value_length and len(s) > max_value_length:
        return s[:max_value_length] + f"...<truncated {len(s) - max_value_length} chars>"
    return value


def _render_value(value: Any, max_value_length: int | None) -> str:
    text = str(_truncate(value, max_value_length))
    if text and _NEEDS_QUOTING.isdisjoint(text):
        return text
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Join *kwargs* into a ``key=value key=value`` string.

    Empty values and values containing a space, ``=`` or a quote are
    wrapped in double quotes with backslashes and double quotes escaped.

    Args:
        kwargs: Fields to render, in insertion order.
        max_value_length: Maximum characters per value; ``None`` disables truncation.
        prefix: String prepended to a non-empty result.

    Returns:
        e.g. ``' relay=wss://nos.lol reason="bad request"'``, or ``""``.
    """
    if not kwargs:
        return ""
    return prefix + " ".join(
        f"{key}={_render_value(value, max_value_length)}" for key, value in kwargs.items()
    )


class StructuredFormatter(logging.Formatter):
    """Render every record as ``level name message key=value ...``.

    Structured fields are read from the ``structured_kv`` extra attached by
    [Logger][nostrgate.core.logger.Logger]; records without it are emitted
    with the same prefix and no pairs.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if extra:
            line += format_kv_pairs(extra)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class Logger:
    """Structured logger that appends keyword arguments as extra fields.

    All public methods mirror the standard logging API with an added
    ``**kwargs`` parameter.
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
    ) -> None:
        """Initialize a structured logger.

        Args:
            name: Name passed to ``logging.getLogger``.
            json_output: Emit JSON objects instead of key=value pairs.
            max_value_length: Per-value truncation limit. Defaults to 1000.
        """
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = (
            self._DEFAULT_MAX_VALUE_LENGTH if max_value_length is None else max_value_length
        )

    @property
    def name(self) -> str:
        return self._logger.name

    def _format_json(self, msg: str, level: str, kwargs: dict[str, Any]) -> str:
        """Serialize the record with the fields log aggregators expect."""
        record = {
            "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
            "level": level,
            "service": self._logger.name,
            "message": msg,
            **{k: _truncate(v, self._max_value_length) for k, v in kwargs.items()},
        }
        return json.dumps(record, default=str)

    def _log(self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if self._json_output:
            name = logging.getLevelName(level).lower()
            self._logger.log(level, self._format_json(msg, name, kwargs), exc_info=exc_info)
            return
        extra = (
            {"structured_kv": {k: _truncate(v, self._max_value_length) for k, v in kwargs.items()}}
            if kwargs
            else {}
        )
        self._logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._log(logging.ERROR, msg, kwargs, exc_info=True)
