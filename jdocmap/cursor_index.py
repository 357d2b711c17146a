"""Map a cursor line to the callable whose span contains it."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence, Tuple

from .models import CursorSpan, MethodDoc


def binary_search_span(spans: Sequence[CursorSpan], line: int) -> Optional[CursorSpan]:
    """Find the span containing *line* in *spans* sorted by start line.

    Locates the rightmost span starting at or before *line*, then checks that
    it actually reaches *line*; lines in the gap between two declarations
    yield ``None``.
    """
    lo, hi = 0, len(spans) - 1
    candidate: Optional[CursorSpan] = None
    while lo <= hi:
        mid = (lo + hi) // 2
        span = spans[mid]
        if span.start_line <= line:
            candidate = span
            lo = mid + 1
        else:
            hi = mid - 1

    if candidate is not None and candidate.end_line >= line:
        return candidate
    return None


class CursorIndex:
    """Immutable, start-line ordered index over callable spans."""

    def __init__(self, spans: Iterable[CursorSpan] = ()) -> None:
        self._spans: Tuple[CursorSpan, ...] = tuple(spans)

    @classmethod
    def from_methods(cls, methods: Iterable[MethodDoc]) -> "CursorIndex":
        # Methods arrive sorted by start line from the parser.
        return cls(CursorSpan(m.start_line, m.end_line, m.id) for m in methods)

    def lookup(self, line: int) -> Optional[CursorSpan]:
        return binary_search_span(self._spans, line)

    def lookup_id(self, line: int) -> Optional[str]:
        span = self.lookup(line)
        return span.id if span is not None else None

    @property
    def spans(self) -> Tuple[CursorSpan, ...]:
        return self._spans

    def __len__(self) -> int:
        return len(self._spans)

    def __iter__(self) -> Iterator[CursorSpan]:
        return iter(self._spans)


EMPTY_INDEX = CursorIndex()
