"""Core data models shared by the extraction, indexing, and session layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Literal, Optional, Tuple

# Sentinels for best-effort textual type recovery.
UNKNOWN_TYPE = "unknown"
NO_VALUE_TYPE = "void"
UNKNOWN_CONTAINER = "Unknown"

AccessModifier = Literal["public", "protected", "private", "default"]

MethodKind = Literal["method", "constructor"]


class SymbolKind(str, Enum):
    """Fine-grained declaration kinds reported by a symbol provider."""

    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    FIELD = "field"
    CONSTANT = "constant"
    ENUM_MEMBER = "enum_member"
    OTHER = "other"


@dataclass(frozen=True)
class Span:
    """Inclusive 0-based line range."""
    start_line: int
    end_line: int


@dataclass(frozen=True)
class DeclarationNode:
    """One node of the declaration tree supplied by a symbol provider."""
    name: str
    kind: SymbolKind
    range: Span
    selection_range: Optional[Span] = None
    detail: Optional[str] = None
    children: Tuple["DeclarationNode", ...] = ()

    @property
    def start_line(self) -> int:
        """Line of the identifying token, falling back to the body start."""
        if self.selection_range is not None:
            return self.selection_range.start_line
        return self.range.start_line

    @property
    def end_line(self) -> int:
        return self.range.end_line


@dataclass(frozen=True)
class FlattenedMember:
    node: DeclarationNode
    belongs_to: str


@dataclass(frozen=True)
class FlattenedMembers:
    methods: Tuple[FlattenedMember, ...] = ()
    fields: Tuple[FlattenedMember, ...] = ()
    enum_constants: Tuple[FlattenedMember, ...] = ()


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParamTag:
    name: str
    type: str
    description: str

    @property
    def is_resolved(self) -> bool:
        """False when no parameter with this name exists in the signature."""
        return self.type != UNKNOWN_TYPE


@dataclass(frozen=True)
class ReturnTag:
    type: str
    description: str


@dataclass(frozen=True)
class ThrowsTag:
    type: str
    description: str


@dataclass(frozen=True)
class TagTable:
    params: Tuple[ParamTag, ...] = ()
    returns: Optional[ReturnTag] = None
    throws: Tuple[ThrowsTag, ...] = ()
    since: Optional[str] = None
    author: Optional[str] = None
    deprecated: Optional[str] = None
    see: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self == EMPTY_TAG_TABLE


EMPTY_TAG_TABLE = TagTable()


# ---------------------------------------------------------------------------
# Documentation records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GitAuthorInfo:
    author: str
    last_modifier: str
    last_modify_date: str


@dataclass(frozen=True)
class GitBlameInfo:
    author: str
    email: str
    date: str
    commit_hash: str


@dataclass(frozen=True)
class MemberDoc:
    """Fields shared by every documented member."""
    id: str
    name: str
    signature: str
    start_line: int
    has_comment: bool
    description: str
    tags: TagTable
    belongs_to: str
    access_modifier: AccessModifier


@dataclass(frozen=True)
class MethodDoc(MemberDoc):
    kind: MethodKind = "method"
    end_line: int = 0
    git_info: Optional[GitAuthorInfo] = None


@dataclass(frozen=True)
class FieldDoc(MemberDoc):
    type: str = UNKNOWN_TYPE
    is_constant: bool = False


@dataclass(frozen=True)
class EnumConstantDoc(MemberDoc):
    arguments: str = ""


@dataclass(frozen=True)
class FileDoc:
    """Parse result for a whole source file. Replaced wholesale on re-parse."""
    class_name: str
    class_comment: str
    package_name: str
    file_path: str
    methods: Tuple[MethodDoc, ...] = ()
    fields: Tuple[FieldDoc, ...] = ()
    enum_constants: Tuple[EnumConstantDoc, ...] = ()
    git_info: Optional[GitAuthorInfo] = None
    javadoc_author: Optional[str] = None
    javadoc_since: Optional[str] = None


@dataclass(frozen=True)
class ParseResult:
    doc: FileDoc
    diagnostics: Tuple[str, ...] = ()


@dataclass
class SourceDocument:
    """In-memory document handed to a session by its host."""
    file_path: str
    text: str
    version: int = 0
    language_id: str = "java"

    @property
    def lines(self) -> List[str]:
        return self.text.split("\n")


@dataclass(frozen=True)
class CursorSpan:
    start_line: int
    end_line: int
    id: str


@dataclass
class PrimaryTypeInfo:
    class_name: str
    class_line: int
    class_comment: str = ""
