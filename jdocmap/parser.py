"""Assemble a :class:`FileDoc` from source text and its declaration tree.

Parsing pipeline::

    text + declaration tree
      -> primary type, package, class comment
      -> flattened members (methods / fields / enum constants)
      -> comment association, signature and tag parsing per member
      -> sorted, id-stamped member records
      -> optional git authorship

Nothing raises out of :meth:`JavaDocParser.parse`: a member whose
processing fails is dropped and reported in ``ParseResult.diagnostics``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .comments import associate_member_comment, clean_comment, extract_comment
from .flatten import flatten_declarations, is_constructor_symbol, is_container_symbol
from .git_service import GitService
from .models import (
    EMPTY_TAG_TABLE,
    UNKNOWN_CONTAINER,
    DeclarationNode,
    EnumConstantDoc,
    FieldDoc,
    FileDoc,
    FlattenedMember,
    GitAuthorInfo,
    MemberDoc,
    MethodDoc,
    ParseResult,
    PrimaryTypeInfo,
    SymbolKind,
    TagTable,
)
from .scanner import ScanState, scan_line
from .signature import (
    DEFAULT_MAX_LINES,
    display_signature,
    extract_access_modifier,
    extract_enum_arguments,
    extract_field_type,
    extract_full_signature,
    is_constant_declaration,
    normalize_whitespace,
)
from .tags import parse_javadoc

logger = logging.getLogger(__name__)

DEFAULT_MAX_METHODS = 200

_PACKAGE = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)
_TYPE_DECLARATION = re.compile(
    r"^\s*(?:@[\w.]+(?:\([^)]*\))?\s*)*"
    r"(?:(?:public|protected|private|abstract|final|static|sealed|non-sealed|strictfp)\s+)*"
    r"(?:class|interface|enum|record|@interface)\s+(\w+)"
)

M = TypeVar("M", bound=MemberDoc)


# ---------------------------------------------------------------------------
# File-level helpers
# ---------------------------------------------------------------------------

def find_class_symbol(
    symbols: Sequence[DeclarationNode],
    file_path: str = "",
) -> Optional[DeclarationNode]:
    """Primary top-level container: the one named after the file, else the first."""
    containers = [s for s in symbols if is_container_symbol(s)]
    if not containers:
        return None
    stem = Path(file_path).stem if file_path else ""
    for container in containers:
        if container.name == stem:
            return container
    return containers[0]


def extract_primary_type_info(text: str, file_path: str = "") -> PrimaryTypeInfo:
    """Find the primary type declaration without a declaration tree.

    Only declarations at brace depth zero count, so nested types and the
    word ``class`` inside comments or strings are ignored.
    """
    stem = Path(file_path).stem if file_path else ""
    candidates: List[Tuple[str, int]] = []
    state = ScanState()
    depth = 0

    for line_no, line in enumerate(text.split("\n")):
        scanned = scan_line(line, state)
        state = scanned.state
        if depth == 0:
            match = _TYPE_DECLARATION.match(scanned.code)
            if match is not None:
                candidates.append((match.group(1), line_no))
        depth = max(0, depth + scanned.brace_delta)

    if not candidates:
        return PrimaryTypeInfo(class_name=UNKNOWN_CONTAINER, class_line=0)
    for name, line_no in candidates:
        if name == stem:
            return PrimaryTypeInfo(class_name=name, class_line=line_no)
    name, line_no = candidates[0]
    return PrimaryTypeInfo(class_name=name, class_line=line_no)


def extract_package_name(text: str) -> str:
    match = _PACKAGE.search(text)
    return match.group(1) if match else ""


def _first_line(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.split("\n", 1)[0].strip() or None


def _line_at(lines: Sequence[str], index: int) -> str:
    return lines[index] if 0 <= index < len(lines) else ""


def _by_start_line(members: List[M]) -> List[M]:
    # Stable: declarations sharing a line keep their source order.
    return sorted(members, key=lambda m: m.start_line)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class JavaDocParser:
    """Turn one Java source file plus its declaration tree into a FileDoc."""

    def __init__(
        self,
        git_service: Optional[GitService] = None,
        signature_max_lines: int = DEFAULT_MAX_LINES,
        max_methods: int = DEFAULT_MAX_METHODS,
    ) -> None:
        self.git_service = git_service
        self.signature_max_lines = signature_max_lines
        self.max_methods = max_methods

    def parse(
        self,
        text: str,
        file_path: str,
        symbols: Sequence[DeclarationNode],
    ) -> ParseResult:
        lines = text.split("\n")
        diagnostics: List[str] = []

        # -- Primary type ---------------------------------------------------
        class_symbol = find_class_symbol(symbols, file_path)
        if class_symbol is not None:
            class_name = class_symbol.name
            class_line = class_symbol.start_line
        else:
            info = extract_primary_type_info(text, file_path)
            class_name, class_line = info.class_name, info.class_line

        raw_class_comment = ""
        if class_name != UNKNOWN_CONTAINER:
            raw_class_comment = extract_comment(lines, class_line)
        class_tags = EMPTY_TAG_TABLE
        if raw_class_comment:
            _, class_tags = parse_javadoc(raw_class_comment, "")

        # -- Members --------------------------------------------------------
        flattened = flatten_declarations(symbols)

        methods = _by_start_line(self._collect(
            flattened.methods, lambda m: self._build_method(lines, m, raw_class_comment),
            "method", diagnostics,
        ))
        if self.max_methods and len(methods) > self.max_methods:
            message = (
                f"{file_path}: {len(methods)} callables exceed the limit of "
                f"{self.max_methods}; the rest are omitted"
            )
            logger.warning("%s", message)
            diagnostics.append(message)
            methods = methods[:self.max_methods]

        fields = _by_start_line(self._collect(
            flattened.fields, lambda m: self._build_field(lines, m, raw_class_comment),
            "field", diagnostics,
        ))
        enum_constants = _by_start_line(self._collect(
            flattened.enum_constants,
            lambda m: self._build_enum_constant(lines, m, raw_class_comment),
            "enum constant", diagnostics,
        ))

        doc = FileDoc(
            class_name=class_name,
            class_comment=clean_comment(raw_class_comment),
            package_name=extract_package_name(text),
            file_path=file_path,
            methods=tuple(methods),
            fields=tuple(fields),
            enum_constants=tuple(enum_constants),
            git_info=self._git_info(file_path, class_line),
            javadoc_author=_first_line(class_tags.author),
            javadoc_since=_first_line(class_tags.since),
        )
        return ParseResult(doc=doc, diagnostics=tuple(diagnostics))

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    @staticmethod
    def _collect(
        members: Sequence[FlattenedMember],
        build: Callable[[FlattenedMember], M],
        label: str,
        diagnostics: List[str],
    ) -> List[M]:
        built: List[M] = []
        for member in members:
            try:
                built.append(build(member))
            except Exception as exc:
                message = f"Skipped {label} '{member.node.name}' at line {member.node.start_line}: {exc}"
                logger.warning("%s", message)
                diagnostics.append(message)
        return built

    def _comment(
        self,
        lines: Sequence[str],
        start_line: int,
        raw_class_comment: str,
        signature: str,
    ) -> Tuple[bool, str, TagTable]:
        raw = associate_member_comment(lines, start_line, raw_class_comment)
        if not raw:
            return False, "", EMPTY_TAG_TABLE
        description, tags = parse_javadoc(raw, signature)
        return True, description, tags

    def _build_method(
        self,
        lines: Sequence[str],
        member: FlattenedMember,
        raw_class_comment: str,
    ) -> MethodDoc:
        node = member.node
        start = node.start_line
        full_signature = extract_full_signature(lines, start, self.signature_max_lines)
        has_comment, description, tags = self._comment(lines, start, raw_class_comment, full_signature)
        return MethodDoc(
            id=f"{node.name}_{start}",
            name=node.name,
            signature=node.detail or display_signature(full_signature),
            start_line=start,
            has_comment=has_comment,
            description=description,
            tags=tags,
            belongs_to=member.belongs_to,
            access_modifier=extract_access_modifier(full_signature),
            kind="constructor" if is_constructor_symbol(node) else "method",
            end_line=max(node.end_line, start),
        )

    def _build_field(
        self,
        lines: Sequence[str],
        member: FlattenedMember,
        raw_class_comment: str,
    ) -> FieldDoc:
        node = member.node
        start = node.start_line
        line = _line_at(lines, start)
        has_comment, description, tags = self._comment(lines, start, raw_class_comment, "")
        field_type = node.detail.lstrip(":").strip() if node.detail else extract_field_type(line)
        return FieldDoc(
            id=f"{node.name}_{start}",
            name=node.name,
            signature=normalize_whitespace(line).rstrip(";").rstrip(),
            start_line=start,
            has_comment=has_comment,
            description=description,
            tags=tags,
            belongs_to=member.belongs_to,
            access_modifier=extract_access_modifier(line),
            type=field_type,
            is_constant=node.kind is SymbolKind.CONSTANT or is_constant_declaration(line),
        )

    def _build_enum_constant(
        self,
        lines: Sequence[str],
        member: FlattenedMember,
        raw_class_comment: str,
    ) -> EnumConstantDoc:
        node = member.node
        start = node.start_line
        arguments = extract_enum_arguments(lines, start, node.name, self.signature_max_lines)
        has_comment, description, tags = self._comment(lines, start, raw_class_comment, "")
        return EnumConstantDoc(
            id=f"{node.name}_{start}",
            name=node.name,
            signature=f"{node.name}{arguments}",
            start_line=start,
            has_comment=has_comment,
            description=description,
            tags=tags,
            belongs_to=member.belongs_to,
            access_modifier="public",
            arguments=arguments,
        )

    # ------------------------------------------------------------------
    # Authorship
    # ------------------------------------------------------------------

    def _git_info(self, file_path: str, class_line: int) -> Optional[GitAuthorInfo]:
        if self.git_service is None or not file_path:
            return None
        try:
            if not self.git_service.is_git_repository(file_path):
                return None
            return self.git_service.get_class_git_info(file_path, class_line)
        except Exception as exc:
            logger.debug("Git info unavailable for %s: %s", file_path, exc)
            return None
