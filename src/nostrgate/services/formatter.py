"""
Content formatting for relay result buffers.

[format_content()][nostrgate.services.formatter.format_content] renders a
[ResultBuffer][nostrgate.models.message.ResultBuffer] in one of five
output kinds:

* ``json`` -- every buffered frame, verbatim, as a compact JSON array.
* ``text`` -- the text of every message joined by blank lines.
* ``markdown`` -- the first message rendered as a standalone HTML page.
* ``html`` -- the first message's text served as HTML.
* ``file`` -- the first message's text decoded from a data URI or base64.

The "text" of a message is the content of an ``EVENT`` and the second
element of an ``OK`` or ``NOTICE``. An empty buffer always yields an empty
but well-formed body.
"""

from __future__ import annotations

import base64
import html
import json
import re
from string import Template
from typing import Final, assert_never

import filetype
import markdown

from nostrgate.core.exceptions import UnsupportedFormatError
from nostrgate.models.constants import OutputKind
from nostrgate.models.content import OutputContent
from nostrgate.models.message import EventMessage, ResultBuffer


TEXT_SEPARATOR: Final[str] = "\r\n\r\n"
TITLE_PREVIEW_LENGTH: Final[int] = 80
DEFAULT_FILE_MIME: Final[str] = "application/octet-stream"
MARKDOWN_EXTENSIONS: Final[tuple[str, ...]] = ("fenced_code", "tables")

_DATA_URI_RE: Final = re.compile(r"^data:([a-z0-9]*/[a-z0-9]*);base64,([a-zA-Z0-9+/=]*)$")
_BASE64_RE: Final = re.compile(r"^[a-zA-Z0-9+/=]*$")

_PAGE: Final = Template(
    """<!DOCTYPE html>
<html>
  <head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>$title</title>
    <style>
      #markdown {
        margin: 20px auto;
        padding: 20px;
        max-width: 800px;
        font-family: sans-serif;
      }
      img {
        margin: 10px auto;
        max-width: 100%;
        height: auto;
      }
      pre, code {
        white-space: break-spaces;
        word-wrap: anywhere;
        max-width: 100%;
      }
    </style>
  </head>
  <body>
    <div id="markdown">$body</div>
  </body>
</html>
"""
)


def _first_text(buffer: ResultBuffer) -> str:
    return buffer[0].text if buffer else ""


def _lenient_b64decode(data: str) -> bytes:
    """Decode base64 the forgiving way browsers and Node do.

    Input stops at the first ``=`` and missing padding is tolerated; a
    dangling sixth bit group is discarded.
    """
    stripped = data.split("=", 1)[0]
    if len(stripped) % 4 == 1:
        stripped = stripped[:-1]
    return base64.b64decode(stripped + "=" * (-len(stripped) % 4))


def format_json(buffer: ResultBuffer) -> OutputContent:
    frames = [message.raw for message in buffer]
    return OutputContent(
        "application/json",
        json.dumps(frames, separators=(",", ":"), ensure_ascii=False),
    )


def format_text(buffer: ResultBuffer) -> OutputContent:
    return OutputContent("text/plain", TEXT_SEPARATOR.join(m.text for m in buffer))


def format_markdown(buffer: ResultBuffer) -> OutputContent:
    """Render the first message as a markdown page.

    A ``title`` tag on an ``EVENT`` becomes the page title and a leading
    ``# heading``. Without one, the first 80 characters of the body are
    used as the title.
    """
    body = _first_text(buffer)
    first = buffer[0] if buffer else None
    title = first.event.tag_value("title") if isinstance(first, EventMessage) else None

    if title:
        body = f"# {title}\n\n{body}"
    else:
        title = body[:TITLE_PREVIEW_LENGTH] + "..."

    rendered = markdown.markdown(body, extensions=list(MARKDOWN_EXTENSIONS))
    return OutputContent("text/html", _PAGE.substitute(title=html.escape(title), body=rendered))


def format_html(buffer: ResultBuffer) -> OutputContent:
    return OutputContent("text/html", _first_text(buffer))


def format_file(buffer: ResultBuffer) -> OutputContent:
    """Decode the first message into bytes.

    Tries a ``data:<mime>;base64,`` URI first, then bare base64 with magic
    number sniffing. Anything else is returned as plain text.
    """
    text = _first_text(buffer)

    if match := _DATA_URI_RE.match(text):
        return OutputContent(match.group(1), _lenient_b64decode(match.group(2)))

    if _BASE64_RE.match(text):
        data = _lenient_b64decode(text)
        kind = filetype.guess(data) if data else None
        return OutputContent(kind.mime if kind else DEFAULT_FILE_MIME, data)

    return OutputContent("text/plain", text)


def format_content(kind: OutputKind | str | None, buffer: ResultBuffer) -> OutputContent:
    """Render *buffer* in the requested output kind.

    Args:
        kind: An [OutputKind][nostrgate.models.constants.OutputKind], its
            string value, or ``None`` for JSON.
        buffer: Messages returned by the relay session.

    Raises:
        UnsupportedFormatError: If *kind* is not a known output kind.
    """
    try:
        output = OutputKind(kind) if kind else OutputKind.JSON
    except ValueError as e:
        raise UnsupportedFormatError(f"Unsupported output kind: {kind!r}") from e

    if output is OutputKind.JSON:
        return format_json(buffer)
    if output is OutputKind.TEXT:
        return format_text(buffer)
    if output is OutputKind.MARKDOWN:
        return format_markdown(buffer)
    if output is OutputKind.HTML:
        return format_html(buffer)
    if output is OutputKind.FILE:
        return format_file(buffer)
    assert_never(output)
