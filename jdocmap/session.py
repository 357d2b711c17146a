"""Per-document navigation state: parse results, cursor index, highlighting.

A :class:`DocumentSession` is what an editor host talks to. It re-parses on
``refresh``, answers cursor lookups, and turns a stream of selection changes
into at most one highlight notification per quiet interval.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from .config_manager import Settings
from .cursor_index import EMPTY_INDEX, CursorIndex
from .debounce import Debouncer, IdentityGuard, Scheduler
from .models import FileDoc, MethodDoc, SourceDocument
from .parser import JavaDocParser
from .symbols import CachedSymbolProvider, SymbolCache, SymbolProvider, SymbolProviderError

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_DELAY = 0.3


class DocumentSession:
    """Navigation controller for one document at a time.

    Args:
        provider: Source of declaration trees.
        parser: Assembler; a default :class:`JavaDocParser` without git.
        on_update: Called with the new FileDoc after every accepted parse.
        on_highlight: Called with a callable id when the cursor settles in a
            different callable.
        on_clear: Called when the session drops its document.
        debounce_delay: Quiet interval for selection changes, in seconds.
        scheduler: Timer factory for the debouncer (tests inject a fake).
        enable_auto_highlight: When False, selection changes are ignored.
        cache: Optional shared symbol cache, evicted on :meth:`close`.
    """

    def __init__(
        self,
        provider: SymbolProvider,
        parser: Optional[JavaDocParser] = None,
        on_update: Optional[Callable[[FileDoc], None]] = None,
        on_highlight: Optional[Callable[[str], None]] = None,
        on_clear: Optional[Callable[[], None]] = None,
        debounce_delay: float = DEFAULT_DEBOUNCE_DELAY,
        scheduler: Optional[Scheduler] = None,
        enable_auto_highlight: bool = True,
        cache: Optional[SymbolCache] = None,
    ) -> None:
        self.cache = cache
        self.provider = CachedSymbolProvider(provider, cache) if cache is not None else provider
        self.parser = parser or JavaDocParser()
        self.on_update = on_update
        self.on_highlight = on_highlight
        self.on_clear = on_clear
        self.enable_auto_highlight = enable_auto_highlight

        self._lock = threading.Lock()
        self._debouncer = Debouncer(self._on_selection_settled, debounce_delay, scheduler)
        self._guard = IdentityGuard()

        self._file_path: Optional[str] = None
        self._version: Optional[int] = None
        self._doc: Optional[FileDoc] = None
        self._index: CursorIndex = EMPTY_INDEX
        self._methods_by_id: Dict[str, MethodDoc] = {}
        self.diagnostics: List[str] = []

    @classmethod
    def from_settings(
        cls,
        provider: SymbolProvider,
        settings: Settings,
        parser: Optional[JavaDocParser] = None,
        **kwargs,
    ) -> "DocumentSession":
        """Session using the configured debounce delay and highlight switch."""
        return cls(
            provider,
            parser,
            debounce_delay=settings.debounce_delay,
            enable_auto_highlight=settings.enable_auto_highlight,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def doc(self) -> Optional[FileDoc]:
        return self._doc

    @property
    def index(self) -> CursorIndex:
        return self._index

    @property
    def version(self) -> Optional[int]:
        return self._version

    def _is_stale(self, document: SourceDocument) -> bool:
        return (
            self._file_path == document.file_path
            and self._version is not None
            and document.version < self._version
        )

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def refresh(self, document: SourceDocument) -> Optional[FileDoc]:
        """Re-parse *document* and replace the current state.

        Returns the new FileDoc, or ``None`` when the result was discarded
        (older version than the accepted one, or provider failure). In both
        of those cases the previous state is kept.
        """
        if self._is_stale(document):
            logger.debug("Ignoring %s@%s: already at version %s",
                         document.file_path, document.version, self._version)
            return None

        try:
            symbols = self.provider.resolve(document)
        except SymbolProviderError as exc:
            logger.warning("Keeping previous documentation for %s: %s", document.file_path, exc)
            return None

        result = self.parser.parse(document.text, document.file_path, symbols)

        with self._lock:
            # A newer version may have been accepted while this one was parsing.
            if self._is_stale(document):
                logger.debug("Discarding stale parse of %s@%s", document.file_path, document.version)
                return None
            if self._file_path != document.file_path:
                self._debouncer.cancel()
            self._file_path = document.file_path
            self._version = document.version
            self._doc = result.doc
            self._index = CursorIndex.from_methods(result.doc.methods)
            self._methods_by_id = {m.id: m for m in result.doc.methods}
            self.diagnostics = list(result.diagnostics)
            self._guard.reset()

        if self.on_update is not None:
            self.on_update(result.doc)
        return result.doc

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def locate(self, line: int) -> Optional[MethodDoc]:
        """The callable whose span contains *line*, or ``None``."""
        method_id = self._index.lookup_id(line)
        if method_id is None:
            return None
        return self._methods_by_id.get(method_id)

    def handle_selection_change(self, line: int) -> None:
        if not self.enable_auto_highlight or self._doc is None:
            return
        self._debouncer.schedule(line)

    def _on_selection_settled(self, line: int) -> None:
        method_id = self._index.lookup_id(line)
        if method_id is None:
            # Leaving every callable re-arms the guard without notifying.
            self._guard.reset()
            return
        if self._guard.offer(method_id) and self.on_highlight is not None:
            self.on_highlight(method_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear(self) -> None:
        self._debouncer.cancel()
        with self._lock:
            self._file_path = None
            self._version = None
            self._doc = None
            self._index = EMPTY_INDEX
            self._methods_by_id = {}
            self.diagnostics = []
            self._guard.reset()
        if self.on_clear is not None:
            self.on_clear()

    def close(self) -> None:
        """Drop the document and evict its cached declaration tree."""
        path = self._file_path
        if self.cache is not None and path is not None:
            self.cache.evict(path)
        self.clear()
