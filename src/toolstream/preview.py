"""Live preview of ``file_write`` arguments that are still streaming.

The argument text of an in-flight call is not valid JSON, so instead of
parsing it we pattern-match the two fields we care about. The result is
for display only and may be wrong; execution always parses the complete
arguments.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_FILE_PATH_RE = re.compile(r'"file_path"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)
_CONTENT_RE = re.compile(r'"content"\s*:\s*"((?:[^"\\]|\\.)*)(")?', re.DOTALL)
_ESCAPE_RE = re.compile(
    r"\\("
    r"u[dD][89abAB][0-9a-fA-F]{2}\\u[dD][c-fC-F][0-9a-fA-F]{2}"
    r"|u[0-9a-fA-F]{4}"
    r"|u[0-9a-fA-F]{0,3}$"
    r"|.)",
    re.DOTALL,
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    '"': '"',
    "\\": "\\",
    "/": "/",
}


@dataclass(frozen=True)
class PartialPreview:
    file_path: str
    content: str


def _replace_escape(match: re.Match) -> str:
    seq = match.group(1)
    if seq.startswith("u"):
        # a truncated \uXXX at the end of the buffer has not arrived yet
        if len(seq) < 5:
            return ""
        if len(seq) == 11:
            high, low = int(seq[1:5], 16), int(seq[7:11], 16)
            return chr(0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00))
        code = int(seq[1:], 16)
        # unpaired surrogate, usually a pair whose low half is still in flight
        if 0xD800 <= code <= 0xDFFF:
            return ""
        return chr(code)
    return _SIMPLE_ESCAPES.get(seq, seq)


def unescape_partial(raw: str) -> str:
    """Undo JSON string escapes in a possibly truncated string body."""
    return _ESCAPE_RE.sub(_replace_escape, raw)


def _decode_string(raw: str, closed: bool) -> str:
    if closed:
        try:
            return json.loads(f'"{raw}"')
        except json.JSONDecodeError:
            pass
    return unescape_partial(raw)


def preview_file_write(arguments_text: str) -> PartialPreview | None:
    """Extract ``file_path`` and ``content`` from partial arguments.

    Returns ``None`` until the file path value has been closed, and on
    any failure.
    """
    try:
        path_match = _FILE_PATH_RE.search(arguments_text)
        if path_match is None:
            return None
        file_path = _decode_string(path_match.group(1), closed=True)

        content = ""
        content_match = _CONTENT_RE.search(arguments_text)
        if content_match is not None:
            content = _decode_string(
                content_match.group(1),
                closed=content_match.group(2) is not None,
            )
        return PartialPreview(file_path=file_path, content=content)
    except Exception as e:
        logger.debug(f"Preview extraction failed: {e}")
        return None
