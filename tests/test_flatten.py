"""Tests for declaration-tree flattening."""

from conftest import node

from jdocmap.flatten import flatten_declarations, is_field_symbol, is_method_symbol
from jdocmap.models import SymbolKind


def test_members_carry_parent_path():
    tree = [
        node("Outer", SymbolKind.CLASS, (0, 30), children=[
            node("run", SymbolKind.METHOD, (2, 4)),
            node("count", SymbolKind.FIELD, (1, 1)),
            node("Inner", SymbolKind.CLASS, (6, 20), children=[
                node("Inner", SymbolKind.CONSTRUCTOR, (7, 8)),
                node("Mode", SymbolKind.ENUM, (10, 14), children=[
                    node("FAST", SymbolKind.ENUM_MEMBER, (11, 11)),
                ]),
            ]),
        ]),
    ]

    flat = flatten_declarations(tree)

    assert [(m.node.name, m.belongs_to) for m in flat.methods] == [
        ("run", "Outer"),
        ("Inner", "Outer.Inner"),
    ]
    assert [(m.node.name, m.belongs_to) for m in flat.fields] == [("count", "Outer")]
    assert [(m.node.name, m.belongs_to) for m in flat.enum_constants] == [
        ("FAST", "Outer.Inner.Mode"),
    ]


def test_top_level_member_gets_unknown_container():
    flat = flatten_declarations([node("orphan", SymbolKind.METHOD, (0, 1))])
    assert flat.methods[0].belongs_to == "Unknown"


def test_unclassified_nodes_are_dropped():
    tree = [
        node("A", SymbolKind.CLASS, (0, 5), children=[
            node("static-init", SymbolKind.OTHER, (1, 2)),
        ]),
        node("pkg", SymbolKind.OTHER, (0, 0)),
    ]
    flat = flatten_declarations(tree)
    assert flat.methods == ()
    assert flat.fields == ()
    assert flat.enum_constants == ()


def test_parent_path_prefix():
    flat = flatten_declarations([node("B", SymbolKind.INTERFACE, (0, 3), children=[
        node("m", SymbolKind.METHOD, (1, 1)),
    ])], parent_path="A")
    assert flat.methods[0].belongs_to == "A.B"


def test_classifiers():
    constant = node("MAX", SymbolKind.CONSTANT, (0, 0))
    ctor = node("A", SymbolKind.CONSTRUCTOR, (1, 2))
    assert is_field_symbol(constant)
    assert is_method_symbol(ctor)
    assert not is_field_symbol(node("ON", SymbolKind.ENUM_MEMBER, (3, 3)))
