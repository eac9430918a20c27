#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/utils/escape.py
"""Escaping for markdown link and image destinations.

mistune percent-encodes every destination it parses: whitespace, non-ASCII
text and characters such as ``<`` or ``"`` come back as ``%XX`` escapes,
HTML entities are resolved and backslash escapes are removed. The two
functions here form a pair around that step so a destination written by the
serializer parses back to the original string.

"""

from __future__ import annotations

import re

# ASCII characters mistune encodes, plus "%" so literal escapes survive
URL_DECODED_CHARS = frozenset(" \t\n\r\"'<>[\\]^`{|}%")

_PERCENT_RUN_RE = re.compile(r"(?:%[0-9A-Fa-f]{2})+")
_PERCENT_ESCAPE_RE = re.compile(r"%(?=[0-9A-Fa-f]{2})")
_ENTITY_RE = re.compile(r"&(?=#?[0-9A-Za-z]+;)")


def escape_link_destination(url: str) -> str:
    r"""Escape ``url`` for use inside ``](...)``.

    Parameters
    ----------
    url : str
        Destination as stored in the document

    Returns
    -------
    str
        Destination text that mistune parses back to ``url`` once passed
        through :func:`unescape_link_destination`

    Examples
    --------
        >>> escape_link_destination("my image (1).png")
        'my%20image%20\\(1\\).png'
        >>> escape_link_destination("100%25.png")
        '100%2525.png'

    """
    url = _PERCENT_ESCAPE_RE.sub("%25", url)
    url = _ENTITY_RE.sub("&amp;", url)
    parts = []
    for char in url:
        if char in URL_DECODED_CHARS and char != "%":
            parts.append(f"%{ord(char):02X}")
        elif char in "()":
            parts.append("\\" + char)
        elif ord(char) < 0x20 or char == "\x7f":
            parts.append(f"%{ord(char):02X}")
        else:
            parts.append(char)
    return "".join(parts)


def _decode_run(match: re.Match[str]) -> str:
    run = match.group(0)
    data = bytes.fromhex(run.replace("%", ""))
    parts: list[str] = []
    pending_start = 0
    pending = bytearray()

    def flush(end: int) -> None:
        if not pending:
            return
        try:
            parts.append(pending.decode("utf-8"))
        except UnicodeDecodeError:
            parts.append(run[pending_start * 3 : end * 3])
        pending.clear()

    for index, byte in enumerate(data):
        if byte >= 0x80:
            if not pending:
                pending_start = index
            pending.append(byte)
            continue
        flush(index)
        char = chr(byte)
        decodable = char in URL_DECODED_CHARS or byte < 0x20 or byte == 0x7F
        parts.append(char if decodable else run[index * 3 : index * 3 + 3])
    flush(len(data))
    return "".join(parts)


def unescape_link_destination(url: str) -> str:
    """Undo the percent-encoding mistune applies to a parsed destination.

    Only escapes of characters mistune encodes itself (and of ``%``) are
    decoded; ``%2F`` and the like keep their meaning in the URL.

    Examples
    --------
        >>> unescape_link_destination("my%20image.png")
        'my image.png'
        >>> unescape_link_destination("a%2Fb%C3%A9")
        'a%2Fbé'

    """
    if "%" not in url:
        return url
    return _PERCENT_RUN_RE.sub(_decode_run, url)


__all__ = ["URL_DECODED_CHARS", "escape_link_destination", "unescape_link_destination"]
