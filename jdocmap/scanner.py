"""Character-level scanning helpers that respect nested delimiters.

Every component that has to bound or split source text without being fooled
by braces inside comments, string literals, or nested generic arguments goes
through the functions in this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ScanState:
    """Lexical state carried from one line to the next."""
    in_block_comment: bool = False
    in_string: bool = False
    in_char: bool = False


@dataclass(frozen=True)
class ScannedLine:
    code: str
    open_braces: int
    close_braces: int
    open_parens: int
    close_parens: int
    state: ScanState

    @property
    def brace_delta(self) -> int:
        return self.open_braces - self.close_braces

    @property
    def paren_delta(self) -> int:
        return self.open_parens - self.close_parens


def scan_line(line: str, state: Optional[ScanState] = None) -> ScannedLine:
    """Project *line* onto its code-only characters.

    Comment bodies and the contents of string / char literals are dropped
    (the quote characters too), ``//`` truncates the rest of the line, and
    ``/*`` / ``*/`` are consumed as two-character units.
    """
    state = state or ScanState()
    in_block_comment = state.in_block_comment
    in_string = state.in_string
    in_char = state.in_char
    escaped = False

    code: List[str] = []
    open_braces = close_braces = 0
    open_parens = close_parens = 0

    i = 0
    length = len(line)
    while i < length:
        ch = line[i]
        nxt = line[i + 1] if i + 1 < length else ""

        if in_block_comment:
            if ch == "*" and nxt == "/":
                in_block_comment = False
                i += 2
                continue
            i += 1
            continue

        if in_string or in_char:
            quote = '"' if in_string else "'"
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                in_string = in_char = False
            i += 1
            continue

        if ch == "/" and nxt == "/":
            break
        if ch == "/" and nxt == "*":
            in_block_comment = True
            i += 2
            continue
        if ch == '"':
            in_string = True
            i += 1
            continue
        if ch == "'":
            in_char = True
            i += 1
            continue

        if ch == "{":
            open_braces += 1
        elif ch == "}":
            close_braces += 1
        elif ch == "(":
            open_parens += 1
        elif ch == ")":
            close_parens += 1
        code.append(ch)
        i += 1

    return ScannedLine(
        code="".join(code),
        open_braces=open_braces,
        close_braces=close_braces,
        open_parens=open_parens,
        close_parens=close_parens,
        state=ScanState(in_block_comment, in_string, in_char),
    )


def paren_delta(line: str) -> int:
    """Unmatched ``(`` minus ``)`` on a single line, ignoring literals."""
    return scan_line(line).paren_delta


def find_matching(text: str, index: int, open_ch: str = "(", close_ch: str = ")") -> int:
    """Return the index of the delimiter closing the one at *index*.

    Returns ``-1`` when the group is never closed.
    """
    depth = 0
    for i in range(index, len(text)):
        ch = text[i]
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return i
    return -1


def annotation_end(text: str, index: int) -> int:
    """Index just past the annotation whose ``@`` sits at *index*.

    An argument list belongs to the annotation; an unclosed one runs to the
    end of *text*.
    """
    i = index + 1
    while i < len(text) and (text[i].isalnum() or text[i] in "_."):
        i += 1
    if i < len(text) and text[i] == "(":
        close_index = find_matching(text, i)
        return len(text) if close_index == -1 else close_index + 1
    return i


def strip_annotations(text: str) -> str:
    """Drop annotations ahead of the parameter list, keeping the rest verbatim.

    >>> strip_annotations('@SuppressWarnings("unchecked") public String find(@Valid long id)')
    ' public String find(@Valid long id)'
    """
    kept: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "(":
            kept.append(text[i:])
            break
        if ch == "@" and not text.startswith("@interface", i):
            i = annotation_end(text, i)
            continue
        kept.append(ch)
        i += 1
    return "".join(kept)


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split *text* on separators outside ``<...>`` and ``(...)`` groups.

    >>> split_top_level("Map<String, List<User>> data, int count")
    ['Map<String, List<User>> data', ' int count']
    """
    parts: List[str] = []
    current: List[str] = []
    angle_depth = 0
    paren_depth = 0

    for ch in text:
        if ch == "<":
            angle_depth += 1
        elif ch == ">":
            angle_depth -= 1
        elif ch == "(":
            paren_depth += 1
        elif ch == ")":
            paren_depth -= 1
        elif ch == separator and angle_depth == 0 and paren_depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)

    tail = "".join(current)
    if tail.strip():
        parts.append(tail)
    return parts
