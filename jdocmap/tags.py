"""Parse Javadoc bodies into structured tag tables.

Tags never carry type information themselves; parameter and return types are
recovered textually from the declaration signature. When that recovery fails
the result falls back to the ``"unknown"`` / ``"void"`` sentinels instead of
raising.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from .comments import clean_comment
from .models import (
    EMPTY_TAG_TABLE,
    NO_VALUE_TYPE,
    UNKNOWN_TYPE,
    ParamTag,
    ReturnTag,
    TagTable,
    ThrowsTag,
)
from .scanner import annotation_end, find_matching, split_top_level, strip_annotations

TAG_KEYWORDS = (
    "param", "returns", "return", "throws", "exception",
    "since", "author", "deprecated", "see",
)
_TAG_SPLIT = re.compile(r"@(" + "|".join(TAG_KEYWORDS) + r")\b[ \t]*")
_FIRST_TAG = re.compile(r"@\w+")
_PARAM_CONTENT = re.compile(r"^(\w+)\s*(.*)$", re.DOTALL)
_THROWS_CONTENT = re.compile(r"^([\w.]+)\s*(.*)$", re.DOTALL)

PARAM_MODIFIERS = frozenset({"final"})
METHOD_MODIFIERS = frozenset({
    "public", "private", "protected", "static", "final", "abstract",
    "synchronized", "default", "native", "strictfp",
})

_RETURN_TYPE = re.compile(
    r"(?:public|private|protected|static|final|abstract|synchronized|default|native|strictfp|\s)*"
    r"\s*([\w<>\[\],.\s?]+?)\s+\w+\s*\("
)
_RETURN_TYPE_FALLBACK = re.compile(r"([\w<>\[\].]+)\s+\w+\s*\(")
_TYPE_THEN_NAME = re.compile(r"^[\w.]+(?:<.*?>)?(?:\[\])*\s+\w+\s*\(")
_BODY_RE = re.compile(r"\{.*$")


def parse_javadoc(raw_comment: str, signature: str) -> Tuple[str, TagTable]:
    """Split a raw comment into its description and tag table."""
    cleaned = clean_comment(raw_comment)
    match = _FIRST_TAG.search(cleaned)
    if match is None:
        return cleaned, EMPTY_TAG_TABLE
    description = cleaned[:match.start()].strip()
    return description, parse_tag_table(cleaned[match.start():], signature)


def parse_tag_table(raw_tags: str, signature: str) -> TagTable:
    if not raw_tags.strip():
        return EMPTY_TAG_TABLE

    param_types = parse_signature_params(signature)
    return_type = parse_return_type(signature)

    params: List[ParamTag] = []
    throws: List[ThrowsTag] = []
    see: List[str] = []
    returns: Optional[ReturnTag] = None
    since: Optional[str] = None
    author: Optional[str] = None
    deprecated: Optional[str] = None

    segments = _TAG_SPLIT.split(raw_tags)
    for i in range(1, len(segments), 2):
        tag = segments[i]
        content = segments[i + 1].strip() if i + 1 < len(segments) else ""

        if tag == "param":
            param = _parse_param_tag(content, param_types)
            if param is not None:
                params.append(param)
        elif tag in ("return", "returns"):
            if return_type != NO_VALUE_TYPE:
                returns = ReturnTag(type=return_type, description=content)
        elif tag in ("throws", "exception"):
            thrown = _parse_throws_tag(content)
            if thrown is not None:
                throws.append(thrown)
        elif tag == "since":
            since = content
        elif tag == "author":
            author = content
        elif tag == "deprecated":
            deprecated = content
        elif tag == "see":
            see.append(content)

    return TagTable(
        params=tuple(params),
        returns=returns,
        throws=tuple(throws),
        since=since,
        author=author,
        deprecated=deprecated,
        see=tuple(see),
    )


def _parse_param_tag(content: str, param_types: Dict[str, str]) -> Optional[ParamTag]:
    match = _PARAM_CONTENT.match(content)
    if match is None:
        return None
    name = match.group(1)
    return ParamTag(
        name=name,
        type=param_types.get(name, UNKNOWN_TYPE),
        description=match.group(2).strip(),
    )


def _parse_throws_tag(content: str) -> Optional[ThrowsTag]:
    match = _THROWS_CONTENT.match(content)
    if match is None:
        return None
    return ThrowsTag(type=match.group(1), description=match.group(2).strip())


# ---------------------------------------------------------------------------
# Parameter types
# ---------------------------------------------------------------------------

def extract_paren_content(signature: str) -> Optional[str]:
    """Contents of the parameter list, or ``None``.

    Annotation arguments ahead of the list are skipped. A truncated signature
    yields everything after the opening parenthesis.
    """
    signature = strip_annotations(signature)
    open_index = signature.find("(")
    if open_index == -1:
        return None
    close_index = find_matching(signature, open_index)
    if close_index == -1:
        content = signature[open_index + 1:]
    else:
        content = signature[open_index + 1:close_index]
    return content.strip() or None


def strip_annotations_and_modifiers(declaration: str, modifiers: frozenset = PARAM_MODIFIERS) -> str:
    """``@NotNull final String name`` -> ``String name``."""
    remaining = declaration
    while remaining:
        trimmed = remaining.lstrip()
        if trimmed.startswith("@"):
            remaining = trimmed[annotation_end(trimmed, 0):]
            continue
        word = trimmed.split(None, 1)
        if word and word[0] in modifiers:
            remaining = trimmed[len(word[0]):]
            continue
        return trimmed
    return remaining


def parse_signature_params(signature: str) -> Dict[str, str]:
    """Map parameter names to their declared types.

    >>> parse_signature_params("void save(@Valid final Map<String, List<User>> data, int n)")
    {'data': 'Map<String, List<User>>', 'n': 'int'}
    """
    types: Dict[str, str] = {}
    content = extract_paren_content(signature)
    if not content:
        return types

    for param in split_top_level(content):
        cleaned = strip_annotations_and_modifiers(param.strip())
        last_space = cleaned.rfind(" ")
        if last_space == -1:
            continue
        type_text = cleaned[:last_space].strip()
        name = cleaned[last_space + 1:].strip()
        if type_text and name:
            types[name] = type_text
    return types


# ---------------------------------------------------------------------------
# Return type
# ---------------------------------------------------------------------------

def remove_method_generic_decl(signature: str) -> str:
    """Drop a method-level type parameter list such as ``<T extends Comparable<T>>``."""
    open_angle = signature.find("<")
    open_paren = signature.find("(")
    if open_angle == -1 or open_paren == -1 or open_angle > open_paren:
        return signature

    close_angle = find_matching(signature, open_angle, "<", ">")
    if close_angle == -1:
        return signature

    after = signature[close_angle + 1:].lstrip()
    if _TYPE_THEN_NAME.match(after):
        return signature[:open_angle] + after
    return signature


def parse_return_type(signature: str) -> str:
    """Best-effort return type of a callable signature, ``"void"`` on failure.

    >>> parse_return_type("public <T> List<T> convert(Object o)")
    'List<T>'
    """
    clean = _BODY_RE.sub("", strip_annotations(signature)).strip()
    clean = remove_method_generic_decl(clean)

    match = _RETURN_TYPE.search(clean)
    if match is not None:
        found = match.group(1).strip()
    else:
        fallback = _RETURN_TYPE_FALLBACK.search(clean)
        found = fallback.group(1).strip() if fallback is not None else ""

    if not found or found in METHOD_MODIFIERS:
        return NO_VALUE_TYPE
    return found

