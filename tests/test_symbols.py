"""Tests for declaration-tree providers and the symbol cache."""

from pathlib import Path

import pytest

from jdocmap.models import SourceDocument, Span, SymbolKind
from jdocmap.symbols import (
    CachedSymbolProvider,
    JsonSymbolProvider,
    SymbolCache,
    SymbolProvider,
    SymbolProviderError,
    symbols_from_lsp,
)


class CountingProvider(SymbolProvider):
    def __init__(self):
        self.calls = 0

    def resolve(self, document):
        self.calls += 1
        return []


# ------------------------------------------------------------------
# LSP JSON
# ------------------------------------------------------------------

def test_symbols_from_lsp(user_service_symbols):
    (service,) = user_service_symbols
    assert service.name == "UserService"
    assert service.kind is SymbolKind.CLASS
    assert service.range == Span(11, 69)
    assert service.start_line == 12

    kinds = {child.name: child.kind for child in service.children}
    assert kinds["MAX_PAGE"] is SymbolKind.CONSTANT
    assert kinds["findAll"] is SymbolKind.METHOD
    assert kinds["Status"] is SymbolKind.ENUM

    status = next(c for c in service.children if c.name == "Status")
    assert status.children[0].kind is SymbolKind.ENUM_MEMBER


def test_symbols_from_lsp_envelopes():
    item = {
        "name": "A",
        "kind": 13,
        "range": {"start": {"line": 0}, "end": {"line": 2}},
    }
    (node,) = symbols_from_lsp({"result": [item]})
    assert node.kind is SymbolKind.OTHER
    assert node.selection_range is None
    assert node.start_line == 0
    assert symbols_from_lsp({"symbols": []}) == []


@pytest.mark.parametrize("payload", [{"nope": 1}, "text", [{"name": "A"}]])
def test_symbols_from_lsp_rejects_malformed(payload):
    with pytest.raises(ValueError):
        symbols_from_lsp(payload)


def test_json_provider(sample_symbols_path: Path):
    nodes = JsonSymbolProvider(sample_symbols_path).resolve(SourceDocument("UserService.java", ""))
    assert nodes[0].name == "UserService"


def test_json_provider_errors(temp_dir: Path):
    with pytest.raises(SymbolProviderError):
        JsonSymbolProvider(temp_dir / "missing.json").resolve(SourceDocument("A.java", ""))

    broken = temp_dir / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(SymbolProviderError):
        JsonSymbolProvider(broken).resolve(SourceDocument("A.java", ""))


# ------------------------------------------------------------------
# Cache
# ------------------------------------------------------------------

def test_cache_hit_and_version_miss():
    inner = CountingProvider()
    provider = CachedSymbolProvider(inner)

    provider.resolve(SourceDocument("A.java", "", version=1))
    provider.resolve(SourceDocument("A.java", "", version=1))
    assert inner.calls == 1

    provider.resolve(SourceDocument("A.java", "", version=2))
    assert inner.calls == 2


def test_cache_eviction_on_close():
    cache = SymbolCache()
    cache.put("A.java", 1, [])
    assert "A.java" in cache
    cache.on_document_closed("A.java")
    assert "A.java" not in cache
    assert cache.get("A.java", 1) is None
    cache.evict("never-added.java")
    assert len(cache) == 0


def test_cache_returns_copies():
    cache = SymbolCache()
    cache.put("A.java", 1, [])
    cache.get("A.java", 1).append("junk")
    assert cache.get("A.java", 1) == []


# ------------------------------------------------------------------
# Tree-sitter
# ------------------------------------------------------------------

@pytest.fixture
def tree_sitter_provider():
    pytest.importorskip("tree_sitter")
    pytest.importorskip("tree_sitter_java")
    from jdocmap.symbols import TreeSitterSymbolProvider

    provider = TreeSitterSymbolProvider()
    if not provider.available:
        pytest.skip("tree-sitter grammar for java could not be loaded")
    return provider


def test_tree_sitter_matches_language_server(tree_sitter_provider, sample_java_source):
    nodes = tree_sitter_provider.resolve(SourceDocument("UserService.java", sample_java_source))

    (service,) = nodes
    assert service.name == "UserService"
    assert service.start_line == 12

    def summary(tree):
        out = []
        for n in tree:
            out.append((n.name, n.kind, n.start_line, n.end_line))
            out.extend(summary(n.children))
        return out

    by_name = {(name, start): (kind, end) for name, kind, start, end in summary(nodes)}
    assert by_name[("findAll", 37)] == (SymbolKind.METHOD, 40)
    assert by_name[("UserService", 24)] == (SymbolKind.CONSTRUCTOR, 26)
    assert by_name[("MAX_PAGE", 15)][0] is SymbolKind.CONSTANT
    assert by_name[("repository", 17)][0] is SymbolKind.FIELD
    assert by_name[("ACTIVE", 58)][0] is SymbolKind.ENUM_MEMBER
    assert by_name[("Status", 64)][0] is SymbolKind.CONSTRUCTOR
    assert by_name[("label", 62)][0] is SymbolKind.FIELD


def test_tree_sitter_one_node_per_declarator(tree_sitter_provider):
    source = "class P {\n    int x, y;\n    interface K { int LIMIT = 3; }\n}"
    (cls,) = tree_sitter_provider.resolve(SourceDocument("P.java", source))

    fields = [c for c in cls.children if c.kind is SymbolKind.FIELD]
    assert [(f.name, f.detail, f.start_line) for f in fields] == [("x", "int", 1), ("y", "int", 1)]

    iface = next(c for c in cls.children if c.kind is SymbolKind.INTERFACE)
    assert [(c.name, c.kind) for c in iface.children] == [("LIMIT", SymbolKind.CONSTANT)]


def test_parse_with_tree_sitter_end_to_end(tree_sitter_provider, sample_java_source):
    from jdocmap.parser import JavaDocParser

    document = SourceDocument("/src/UserService.java", sample_java_source)
    doc = JavaDocParser().parse(document.text, document.file_path, tree_sitter_provider.resolve(document)).doc

    assert [m.id for m in doc.methods] == [
        "UserService_24", "findAll_37", "delete_49", "countActive_53", "Status_64",
    ]
    assert doc.methods[1].tags.returns.type == "List<User>"
    assert doc.fields[0].is_constant
