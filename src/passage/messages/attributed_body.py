"""Recover message text from ``message.attributedBody`` blobs.

Newer macOS releases often leave ``message.text`` NULL and keep the text only
inside ``attributedBody``, a serialized NSAttributedString. Two encodings show
up in the wild:

* binary property lists (``bplist00`` magic), sometimes NSKeyedArchiver
  archives, parsed with :mod:`plistlib`;
* NeXTSTEP typedstreams (``streamtyped``), where the text follows the
  ``NSString`` class name as a length-prefixed UTF-8 run.

Decoding is best effort. Malformed blobs yield None, never an exception.
"""

from __future__ import annotations

import logging
import plistlib
import re
from typing import Any

logger = logging.getLogger(__name__)

MIN_BLOB_LENGTH = 8

BPLIST_MAGIC = b"bplist"
NSSTRING_MARKER = b"NSString"

# Bytes between the NSString class name and the string payload (01 94 84 01)
_TYPEDSTREAM_HEADER_LENGTH = 4
_TYPEDSTREAM_STRING_TAG = 0x2B  # '+'
_EXTENDED_LENGTH_FLAG = 0x80

_STRING_KEYS = ("NSString", "NS.string")
_ATTRIBUTED_STRING_KEY = "NSAttributedString"

_TRAILING_GARBAGE_RE = re.compile(r"[\x00-\x1f\x80-\x9f]+$")
_CONTROL_ONLY_RE = re.compile(r"^[\x00-\x1f]*$")


def decode_attributed_body(blob: bytes | None) -> str | None:
    """Return the plain text stored in an attributedBody blob, or None."""
    if not blob or len(blob) < MIN_BLOB_LENGTH:
        return None
    data = bytes(blob)

    if data.startswith(BPLIST_MAGIC):
        text = _decode_bplist(data)
        if text:
            return text

    return _decode_typedstream(data)


# ------------------------------------------------------------------
# Binary plist
# ------------------------------------------------------------------


def _decode_bplist(data: bytes) -> str | None:
    try:
        parsed = plistlib.loads(data, fmt=plistlib.FMT_BINARY)
    except Exception as e:
        logger.debug(f"attributedBody bplist parse failed: {e}")
        return None

    if not isinstance(parsed, dict):
        return None

    objects: list[Any] = []
    top: Any = parsed
    if isinstance(parsed.get("$objects"), list) and isinstance(parsed.get("$top"), dict):
        # NSKeyedArchiver: the real object graph hangs off $top.root
        objects = parsed["$objects"]
        top = _deref(parsed["$top"].get("root"), objects)
        if not isinstance(top, dict):
            return None

    text = _find_string(top, objects)
    if text:
        return text

    nested = _deref(top.get(_ATTRIBUTED_STRING_KEY), objects)
    if isinstance(nested, dict):
        return _find_string(nested, objects)
    return None


def _deref(value: Any, objects: list[Any]) -> Any:
    """Follow NSKeyedArchiver UID references into ``$objects``."""
    seen: set[int] = set()
    while isinstance(value, plistlib.UID):
        index = value.data
        if index in seen or not 0 <= index < len(objects):
            return None
        seen.add(index)
        value = objects[index]
    return value


def _find_string(node: dict, objects: list[Any]) -> str | None:
    for key in _STRING_KEYS:
        value = _deref(node.get(key), objects)
        # NSMutableString archives as {"NS.string": ...}
        if isinstance(value, dict):
            value = _deref(value.get("NS.string"), objects)
        if isinstance(value, str) and value:
            return value
    return None


# ------------------------------------------------------------------
# Typedstream
# ------------------------------------------------------------------


def _decode_typedstream(data: bytes) -> str | None:
    marker = data.find(NSSTRING_MARKER)
    if marker == -1:
        return None

    try:
        offset = marker + len(NSSTRING_MARKER) + _TYPEDSTREAM_HEADER_LENGTH
        if offset < len(data) and data[offset] == _TYPEDSTREAM_STRING_TAG:
            offset += 1

        length, offset = _read_length(data, offset)
        if length <= 0 or offset + length > len(data):
            return None

        text = data[offset:offset + length].decode("utf-8", errors="replace")
    except (IndexError, ValueError) as e:
        logger.debug(f"attributedBody typedstream parse failed: {e}")
        return None

    cleaned = _TRAILING_GARBAGE_RE.sub("", text).strip()
    if not cleaned or _CONTROL_ONLY_RE.match(cleaned):
        return None
    return cleaned


def _read_length(data: bytes, offset: int) -> tuple[int, int]:
    """Read a typedstream length field, returning ``(length, new_offset)``.

    A first byte below 0x80 is the length itself. Otherwise its low 7 bits give
    the number of big-endian length bytes that follow (1 or 2 seen in
    practice), optionally followed by a single 0x00 separator.
    """
    if offset >= len(data):
        return 0, offset

    first = data[offset]
    offset += 1
    if first < _EXTENDED_LENGTH_FLAG:
        return first, offset

    width = first & 0x7F
    if width not in (1, 2) or offset + width > len(data):
        return 0, offset

    length = int.from_bytes(data[offset:offset + width], "big")
    offset += width
    if offset < len(data) and data[offset] == 0x00:
        offset += 1
    return length, offset
