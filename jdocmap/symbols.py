"""Declaration-tree providers.

A provider turns a :class:`SourceDocument` into a forest of
:class:`DeclarationNode` objects. Three are available:

* :class:`TreeSitterSymbolProvider` parses Java locally with tree-sitter.
* :class:`JsonSymbolProvider` reads a ``textDocument/documentSymbol``
  response saved by a language server.
* :class:`CachedSymbolProvider` wraps either one with a per-document,
  version-keyed :class:`SymbolCache`.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .models import DeclarationNode, SourceDocument, Span, SymbolKind

logger = logging.getLogger(__name__)


class SymbolProviderError(Exception):
    """The declaration tree for a document could not be produced."""


class SymbolProvider(ABC):
    """Abstract base class for declaration-tree providers."""

    @abstractmethod
    def resolve(self, document: SourceDocument) -> List[DeclarationNode]:
        """Return the top-level declarations of *document* (possibly empty).

        Raises:
            SymbolProviderError: The tree cannot be produced at all.
        """


# ===================================================================
# Tree-sitter provider
# ===================================================================

_CONTAINER_TYPES: Dict[str, SymbolKind] = {
    "class_declaration": SymbolKind.CLASS,
    "record_declaration": SymbolKind.CLASS,
    "interface_declaration": SymbolKind.INTERFACE,
    "annotation_type_declaration": SymbolKind.INTERFACE,
    "enum_declaration": SymbolKind.ENUM,
}

_CALLABLE_TYPES: Dict[str, SymbolKind] = {
    "method_declaration": SymbolKind.METHOD,
    "annotation_type_element_declaration": SymbolKind.METHOD,
    "constructor_declaration": SymbolKind.CONSTRUCTOR,
    "compact_constructor_declaration": SymbolKind.CONSTRUCTOR,
}

_FIELD_TYPES = frozenset({"field_declaration", "constant_declaration"})


def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace")


def _span(node: Any) -> Span:
    return Span(node.start_point[0], node.end_point[0])


class TreeSitterSymbolProvider(SymbolProvider):
    """Build declaration trees from Java source with tree-sitter.

    Only declarations are reported; method bodies are never descended into,
    so local and anonymous classes do not show up.
    """

    def __init__(self) -> None:
        self._parser: Any = None
        self._init_parser()

    def _init_parser(self) -> None:
        try:
            from tree_sitter import Language, Parser as TSParser  # type: ignore[import-untyped]
            import tree_sitter_java  # type: ignore[import-untyped]
        except ImportError:
            logger.warning(
                "tree-sitter-java is not installed -- declarations unavailable. "
                "Install with: pip install tree-sitter tree-sitter-java"
            )
            return

        try:
            self._parser = TSParser(Language(tree_sitter_java.language()))
            logger.debug("Loaded tree-sitter parser for java")
        except Exception as exc:
            logger.warning("Could not load tree-sitter grammar for java: %s", exc)

    @property
    def available(self) -> bool:
        return self._parser is not None

    def resolve(self, document: SourceDocument) -> List[DeclarationNode]:
        if self._parser is None:
            return []
        try:
            tree = self._parser.parse(document.text.encode("utf-8"))
        except Exception as exc:
            raise SymbolProviderError(f"tree-sitter failed on {document.file_path}: {exc}") from exc
        return self._walk_body(tree.root_node)

    # ------------------------------------------------------------------
    # Walkers
    # ------------------------------------------------------------------

    def _walk_body(self, body: Any) -> List[DeclarationNode]:
        nodes: List[DeclarationNode] = []
        for child in body.named_children:
            if child.type == "enum_body_declarations":
                nodes.extend(self._walk_body(child))
            elif child.type in _CONTAINER_TYPES:
                nodes.append(self._container(child))
            elif child.type in _CALLABLE_TYPES:
                nodes.append(self._named(child, _CALLABLE_TYPES[child.type]))
            elif child.type in _FIELD_TYPES:
                nodes.extend(self._fields(child))
            elif child.type == "enum_constant":
                nodes.append(self._named(child, SymbolKind.ENUM_MEMBER))
        return nodes

    def _container(self, ts_node: Any) -> DeclarationNode:
        name_node = ts_node.child_by_field_name("name")
        body = ts_node.child_by_field_name("body")
        return DeclarationNode(
            name=_text(name_node) if name_node is not None else "",
            kind=_CONTAINER_TYPES[ts_node.type],
            range=_span(ts_node),
            selection_range=_span(name_node) if name_node is not None else None,
            children=tuple(self._walk_body(body)) if body is not None else (),
        )

    def _named(self, ts_node: Any, kind: SymbolKind) -> DeclarationNode:
        name_node = ts_node.child_by_field_name("name")
        return DeclarationNode(
            name=_text(name_node) if name_node is not None else "",
            kind=kind,
            range=_span(ts_node),
            selection_range=_span(name_node) if name_node is not None else None,
        )

    def _fields(self, ts_node: Any) -> List[DeclarationNode]:
        """One node per declarator: ``int a, b;`` yields ``a`` and ``b``."""
        type_node = ts_node.child_by_field_name("type")
        detail = _text(type_node) if type_node is not None else None
        kind = SymbolKind.CONSTANT if self._is_constant(ts_node) else SymbolKind.FIELD

        nodes: List[DeclarationNode] = []
        for declarator in ts_node.children_by_field_name("declarator"):
            name_node = declarator.child_by_field_name("name")
            if name_node is None:
                continue
            nodes.append(DeclarationNode(
                name=_text(name_node),
                kind=kind,
                range=_span(ts_node),
                selection_range=_span(name_node),
                detail=detail,
            ))
        return nodes

    @staticmethod
    def _is_constant(ts_node: Any) -> bool:
        if ts_node.type == "constant_declaration":
            return True
        for child in ts_node.children:
            if child.type == "modifiers":
                words = _text(child).split()
                return "static" in words and "final" in words
        return False


# ===================================================================
# Language-server JSON
# ===================================================================

# LSP SymbolKind numbers
_LSP_KINDS: Dict[int, SymbolKind] = {
    5: SymbolKind.CLASS,
    6: SymbolKind.METHOD,
    8: SymbolKind.FIELD,
    9: SymbolKind.CONSTRUCTOR,
    10: SymbolKind.ENUM,
    11: SymbolKind.INTERFACE,
    14: SymbolKind.CONSTANT,
    22: SymbolKind.ENUM_MEMBER,
}


def _lsp_span(data: Dict[str, Any]) -> Span:
    return Span(int(data["start"]["line"]), int(data["end"]["line"]))


def _lsp_node(data: Dict[str, Any]) -> DeclarationNode:
    selection = data.get("selectionRange")
    return DeclarationNode(
        name=str(data["name"]),
        kind=_LSP_KINDS.get(int(data.get("kind", 0)), SymbolKind.OTHER),
        range=_lsp_span(data["range"]),
        selection_range=_lsp_span(selection) if selection else None,
        detail=data.get("detail") or None,
        children=tuple(_lsp_node(child) for child in data.get("children") or ()),
    )


def symbols_from_lsp(data: Union[List[Any], Dict[str, Any]]) -> List[DeclarationNode]:
    """Convert ``DocumentSymbol`` JSON into declaration nodes.

    Accepts the bare list, a JSON-RPC envelope (``{"result": [...]}``) or
    ``{"symbols": [...]}``.

    Raises:
        ValueError: The payload is not a DocumentSymbol list.
    """
    if isinstance(data, dict):
        data = data.get("result", data.get("symbols"))
    if not isinstance(data, list):
        raise ValueError("Expected a list of DocumentSymbol objects")
    try:
        return [_lsp_node(item) for item in data]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Malformed DocumentSymbol: {exc}") from exc


class JsonSymbolProvider(SymbolProvider):
    """Serve a declaration tree saved by a language server."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def resolve(self, document: SourceDocument) -> List[DeclarationNode]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
            return symbols_from_lsp(payload)
        except (OSError, ValueError) as exc:
            raise SymbolProviderError(f"Cannot read symbols from {self.path}: {exc}") from exc


# ===================================================================
# Caching
# ===================================================================

class SymbolCache:
    """Declaration trees keyed by document path and version.

    A lookup with a different version is a miss; closing a document evicts
    its entry.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[int, Tuple[DeclarationNode, ...]]] = {}

    def get(self, path: str, version: int) -> Optional[List[DeclarationNode]]:
        entry = self._entries.get(path)
        if entry is None or entry[0] != version:
            return None
        return list(entry[1])

    def put(self, path: str, version: int, nodes: Iterable[DeclarationNode]) -> None:
        self._entries[path] = (version, tuple(nodes))

    def evict(self, path: str) -> None:
        self._entries.pop(path, None)

    on_document_closed = evict

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class CachedSymbolProvider(SymbolProvider):
    def __init__(self, inner: SymbolProvider, cache: Optional[SymbolCache] = None) -> None:
        self.inner = inner
        self.cache = cache if cache is not None else SymbolCache()

    def resolve(self, document: SourceDocument) -> List[DeclarationNode]:
        cached = self.cache.get(document.file_path, document.version)
        if cached is not None:
            logger.debug("Symbol cache hit for %s@%s", document.file_path, document.version)
            return cached
        nodes = self.inner.resolve(document)
        self.cache.put(document.file_path, document.version, nodes)
        return nodes
