"""Reconstruct declaration signatures from raw source lines."""

from __future__ import annotations

import re
from typing import List, Sequence

from .models import UNKNOWN_TYPE, AccessModifier
from .scanner import find_matching, split_top_level, strip_annotations

DEFAULT_MAX_LINES = 20

_WHITESPACE = re.compile(r"\s+")
_BODY = re.compile(r"\{.*$")

FIELD_MODIFIERS = frozenset({
    "public", "private", "protected", "static", "final", "transient", "volatile",
})


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_full_signature(
    lines: Sequence[str],
    start_line: int,
    max_lines: int = DEFAULT_MAX_LINES,
) -> str:
    """Collect a declaration from *start_line* up to its closing parenthesis.

    Parameter lists spanning several lines are joined into one line.
    Annotation arguments before the parameter list are kept in the text but do
    not end the declaration. When the list is not closed within *max_lines*
    lines, whatever was collected is returned.
    """
    collected: List[str] = []
    depth = 0
    annotation_depth = 0
    in_annotation_name = False
    seen_open = False
    index = start_line

    while 0 <= index < len(lines) and index - start_line < max_lines:
        for ch in lines[index]:
            collected.append(ch)
            if in_annotation_name:
                if ch.isalnum() or ch in "_.":
                    continue
                in_annotation_name = False
                if ch == "(":
                    annotation_depth = 1
                    continue
            if annotation_depth:
                if ch == "(":
                    annotation_depth += 1
                elif ch == ")":
                    annotation_depth -= 1
                continue
            if ch == "@" and not seen_open:
                in_annotation_name = True
            elif ch == "(":
                seen_open = True
                depth += 1
            elif ch == ")":
                depth -= 1
                if seen_open and depth == 0:
                    return normalize_whitespace("".join(collected))
        in_annotation_name = False
        collected.append(" ")
        index += 1

    return normalize_whitespace("".join(collected))


def display_signature(line: str) -> str:
    """The declaration line with any same-line body removed."""
    without_body = _BODY.sub("", line).strip()
    return without_body or line.strip()


def _declaration_head(signature: str) -> str:
    """Text before the parameter list or initializer, annotations removed."""
    signature = strip_annotations(signature)
    cut = len(signature)
    for marker in ("(", "="):
        pos = signature.find(marker)
        if pos != -1:
            cut = min(cut, pos)
    return signature[:cut]


def extract_access_modifier(signature: str) -> AccessModifier:
    words = set(_declaration_head(signature).split())
    if "public" in words:
        return "public"
    if "protected" in words:
        return "protected"
    if "private" in words:
        return "private"
    return "default"


def is_constant_declaration(line: str) -> bool:
    words = set(_declaration_head(line).split())
    return "static" in words and "final" in words


def extract_field_type(line: str) -> str:
    """``private static final Map<String, Integer> COUNTS = ...;`` -> ``Map<String, Integer>``.

    Only the first declarator of ``int a, b;`` is considered.
    """
    head = _declaration_head(line).strip().rstrip(";").strip()
    declarators = split_top_level(head)
    if not declarators:
        return UNKNOWN_TYPE
    words = declarators[0].split()
    while words and words[0] in FIELD_MODIFIERS:
        words.pop(0)
    declaration = " ".join(words)
    last_space = declaration.rfind(" ")
    if last_space == -1:
        return UNKNOWN_TYPE
    return declaration[:last_space]


def extract_enum_arguments(
    lines: Sequence[str],
    start_line: int,
    name: str,
    max_lines: int = DEFAULT_MAX_LINES,
) -> str:
    """Constructor arguments of an enum constant, e.g. ``(200, "OK")``."""
    if not 0 <= start_line < len(lines):
        return ""
    text = " ".join(lines[start_line:start_line + max_lines])
    match = re.search(r"\b" + re.escape(name) + r"\b\s*", text)
    if match is None:
        return ""
    open_index = match.end()
    if open_index >= len(text) or text[open_index] != "(":
        return ""
    close_index = find_matching(text, open_index)
    if close_index == -1:
        return ""
    return normalize_whitespace(text[open_index:close_index + 1])
