"""Line classification for if-change-then-change annotations.

Comments are recognised generically: a keyword counts as a marker when
everything before it on the line is ASCII punctuation or whitespace. This
accepts ``#``, ``//``, ``--``, ``/*``, ``<!--`` and any indentation without a
per-language table.
"""

from __future__ import annotations

import string

from . import types

IF_CHANGE = "if-change"
THEN_CHANGE = "then-change"
END_CHANGE = "end-change"

_COMMENT_CHARS = frozenset(string.punctuation + string.whitespace)
_TRIM_CHARS = string.punctuation + string.whitespace


def is_comment_prefix(text: str) -> bool:
    return all(ch in _COMMENT_CHARS for ch in text)


def _trim_end(text: str) -> str:
    return text.rstrip(_TRIM_CHARS)


def _starts_with_space(text: str) -> bool:
    return not text or text[0] in string.whitespace


def strip_comment(line: str) -> str:
    """Remove comment punctuation and whitespace from both ends of *line*."""

    return line.strip(_TRIM_CHARS)


def classify(line: str) -> types.LineMarker:
    """Return the marker *line* represents, independent of parser state."""

    pre, found, post = line.partition(IF_CHANGE)
    if found and is_comment_prefix(pre) and _starts_with_space(_trim_end(post)):
        return types.LineMarker(types.MarkerKind.IF_CHANGE)

    pre, found, post = line.partition(THEN_CHANGE)
    if found and is_comment_prefix(pre):
        post = _trim_end(post)
        if not post:
            return types.LineMarker(types.MarkerKind.THEN_CHANGE_BLOCK_START)
        if _starts_with_space(post):
            return types.LineMarker(types.MarkerKind.THEN_CHANGE_INLINE, target=post.lstrip())

    pre, found, _post = line.partition(END_CHANGE)
    if found and is_comment_prefix(pre):
        return types.LineMarker(types.MarkerKind.END_CHANGE)

    return types.LineMarker(types.MarkerKind.SOURCE_LINE)
