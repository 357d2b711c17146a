"""Flatten a nested declaration tree into per-category member lists."""

from __future__ import annotations

from typing import Iterable, List

from .models import (
    UNKNOWN_CONTAINER,
    DeclarationNode,
    FlattenedMember,
    FlattenedMembers,
    SymbolKind,
)

CONTAINER_KINDS = frozenset({SymbolKind.CLASS, SymbolKind.INTERFACE, SymbolKind.ENUM})
CALLABLE_KINDS = frozenset({SymbolKind.METHOD, SymbolKind.CONSTRUCTOR})
FIELD_KINDS = frozenset({SymbolKind.FIELD, SymbolKind.CONSTANT})


def is_container_symbol(node: DeclarationNode) -> bool:
    return node.kind in CONTAINER_KINDS


def is_method_symbol(node: DeclarationNode) -> bool:
    return node.kind in CALLABLE_KINDS


def is_constructor_symbol(node: DeclarationNode) -> bool:
    return node.kind is SymbolKind.CONSTRUCTOR


def is_field_symbol(node: DeclarationNode) -> bool:
    """Plain fields and constants; enum constants are classified separately."""
    return node.kind in FIELD_KINDS


def is_enum_member_symbol(node: DeclarationNode) -> bool:
    return node.kind is SymbolKind.ENUM_MEMBER


def flatten_declarations(
    nodes: Iterable[DeclarationNode],
    parent_path: str = "",
) -> FlattenedMembers:
    """Collect every member of *nodes*, tagged with its enclosing container path.

    Containers contribute their name to the path of their children and are
    not emitted themselves. Members keep the path of their parent (never
    their own name). Unclassified nodes are dropped.
    """
    methods: List[FlattenedMember] = []
    fields: List[FlattenedMember] = []
    enum_constants: List[FlattenedMember] = []

    stack = [(node, parent_path) for node in reversed(list(nodes))]
    while stack:
        node, path = stack.pop()
        if is_container_symbol(node):
            child_path = f"{path}.{node.name}" if path else node.name
            stack.extend((child, child_path) for child in reversed(node.children))
            continue

        belongs_to = path or UNKNOWN_CONTAINER
        if is_method_symbol(node):
            methods.append(FlattenedMember(node, belongs_to))
        elif is_field_symbol(node):
            fields.append(FlattenedMember(node, belongs_to))
        elif is_enum_member_symbol(node):
            enum_constants.append(FlattenedMember(node, belongs_to))

    return FlattenedMembers(
        methods=tuple(methods),
        fields=tuple(fields),
        enum_constants=tuple(enum_constants),
    )
