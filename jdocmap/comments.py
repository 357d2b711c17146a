"""Associate ``/** ... */`` blocks with the declaration that follows them."""

from __future__ import annotations

import re
from typing import Sequence

from .scanner import paren_delta

ANNOTATION_PATTERN = re.compile(r"^\s*@[\w.]+")
_DELIMITERS = re.compile(r"/\*\*|\*/")
_LINE_MARKER = re.compile(r"^\s*\*\s?")


def _is_annotation_head(line: str) -> bool:
    return bool(ANNOTATION_PATTERN.match(line))


def extract_comment(lines: Sequence[str], target_line: int) -> str:
    """Return the raw doc comment directly above *target_line*, or ``""``.

    Blank lines and annotations (including annotations whose argument list
    spans several lines) may sit between the comment and the declaration.
    Anything else breaks the association.
    """
    search = min(target_line, len(lines)) - 1

    while search >= 0:
        stripped = lines[search].strip()

        if stripped == "":
            search -= 1
            continue

        if stripped.endswith("*/"):
            break

        if _is_annotation_head(stripped) and paren_delta(stripped) <= 0:
            search -= 1
            continue

        # Possibly the tail of a multi-line annotation: climb until the
        # parentheses balance and require an annotation head there.
        depth = -paren_delta(stripped)
        if depth <= 0:
            return ""
        head = search - 1
        while head >= 0 and depth > 0:
            depth -= paren_delta(lines[head])
            if depth > 0:
                head -= 1
        if head < 0 or depth != 0 or not _is_annotation_head(lines[head].strip()):
            return ""
        search = head - 1

    if search < 0:
        return ""

    end = search
    for start in range(end, -1, -1):
        line = lines[start]
        # An earlier closer means the block we are in is not a doc comment.
        if start != end and "*/" in line:
            return ""
        if "/**" in line:
            return "\n".join(lines[start:end + 1])
    return ""


def associate_member_comment(
    lines: Sequence[str],
    target_line: int,
    container_comment: str,
) -> str:
    """Like :func:`extract_comment`, but never hand back the container's comment.

    Synthesised members (implicit constructors, record components) can be
    reported on the container's own line; their "comment" is then the class
    comment and must be ignored.
    """
    comment = extract_comment(lines, target_line)
    if comment and container_comment and comment == container_comment:
        return ""
    return comment


def clean_comment(raw: str) -> str:
    """Strip ``/**``, ``*/`` and the leading ``*`` of each line."""
    body = _DELIMITERS.sub("", raw)
    return "\n".join(_LINE_MARKER.sub("", line, count=1) for line in body.split("\n")).strip()
