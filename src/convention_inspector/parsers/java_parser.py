"""Java source parser using tree-sitter 0.25.

Turns one ``.java`` file into a :class:`ParsedFile`: the package, the
non-static imports and every declared type (nested types included) as
:class:`~src.shared.models.source.SourceEntity` objects with their
methods, fields and method bodies.  Type names are kept as written;
linking them to entities is the job of the source index.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import tree_sitter_java
from tree_sitter import Language, Node, Parser, Query, QueryCursor

from src.shared.errors import ParsingError
from src.shared.models.source import (
    CodeNode,
    EntityKind,
    NodeKind,
    SourceEntity,
    SourceMethod,
    SourceVariable,
    VariableKind,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tree-sitter query patterns for the file header
# ---------------------------------------------------------------------------

_HEADER_QUERY = """
(package_declaration) @package
(import_declaration) @import
"""

_DECLARATION_KINDS: dict[str, EntityKind] = {
    "class_declaration": EntityKind.CLASS,
    "interface_declaration": EntityKind.INTERFACE,
    "enum_declaration": EntityKind.ENUM,
    "annotation_type_declaration": EntityKind.ANNOTATION,
    "record_declaration": EntityKind.RECORD,
}

_METHOD_TYPES = frozenset({"method_declaration", "constructor_declaration"})
_FIELD_TYPES = frozenset({"field_declaration", "constant_declaration"})
_COMMENT_TYPES = frozenset({"block_comment", "line_comment", "comment"})
_ANNOTATION_TYPES = frozenset({"marker_annotation", "annotation"})

_MODIFIER_KEYWORDS = frozenset({
    "public", "protected", "private",
    "static", "final", "abstract", "default",
    "synchronized", "native", "transient", "volatile", "strictfp",
    "sealed", "non-sealed",
})


def _node_text(node: Node | None) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8")


def _line(node: Node) -> int:
    return node.start_point.row + 1


def _type_name(node: Node | None) -> str:
    """Erased type name as written: ``List<Foo>`` -> ``List``,
    ``Foo[]`` -> ``Foo[]``, ``a.b.Foo`` -> ``a.b.Foo``."""
    if node is None:
        return ""
    if node.type == "generic_type":
        return _type_name(node.named_children[0])
    if node.type == "array_type":
        return _type_name(node.child_by_field_name("element")) + "[]"
    if node.type == "annotated_type":
        return _type_name(node.named_children[-1])
    return _node_text(node)


def _modifiers_of(node: Node) -> tuple[frozenset[str], frozenset[str]]:
    """Return ``(markers, modifier keywords)`` declared on ``node``."""
    markers: set[str] = set()
    modifiers: set[str] = set()
    for child in node.children:
        if child.type != "modifiers":
            continue
        for mod in child.children:
            if mod.type in _ANNOTATION_TYPES:
                markers.add(_node_text(mod.child_by_field_name("name")))
            elif mod.type in _MODIFIER_KEYWORDS:
                modifiers.add(mod.type)
    return frozenset(markers), frozenset(modifiers)


def _javadoc_of(node: Node) -> str | None:
    """Return the ``/** ... */`` comment directly preceding ``node``."""
    prev = node.prev_sibling
    if prev is None or prev.type not in _COMMENT_TYPES:
        return None
    text = _node_text(prev).strip()
    if not text.startswith("/**"):
        return None
    return _clean_javadoc(text)


def _clean_javadoc(raw: str) -> str | None:
    """Strip Javadoc delimiters and leading ``*`` characters."""
    body = raw[3:]
    if body.endswith("*/"):
        body = body[:-2]
    lines: list[str] = []
    for line in body.split("\n"):
        stripped = line.strip()
        if stripped.startswith("*"):
            stripped = stripped[1:].strip()
        lines.append(stripped)
    result = "\n".join(lines).strip()
    return result or None


def _super_type_names(node: Node) -> list[str]:
    names: list[str] = []
    for child in node.named_children:
        if child.type not in ("super_interfaces", "extends_interfaces"):
            continue
        for type_list in child.named_children:
            if type_list.type == "type_list":
                names.extend(_type_name(t) for t in type_list.named_children)
    return names


def _superclass_name(node: Node) -> str | None:
    superclass = node.child_by_field_name("superclass")
    if superclass is None or not superclass.named_children:
        return None
    return _type_name(superclass.named_children[0])


# ---------------------------------------------------------------------------
# Parsed file container
# ---------------------------------------------------------------------------


@dataclass
class ParsedFile:
    """Everything extracted from one Java file."""
    file_path: str
    package: str = ""
    imports: list[str] = field(default_factory=list)
    entities: list[SourceEntity] = field(default_factory=list)
    has_errors: bool = False


# ---------------------------------------------------------------------------
# Method body conversion
# ---------------------------------------------------------------------------


class _BodyBuilder:
    """Converts a method body into a :class:`CodeNode` tree, binding simple
    names to parameters, locals (one flat scope per method) and fields of
    the owning entity."""

    def __init__(
        self,
        owner: SourceEntity,
        method: SourceMethod,
        scope: dict[str, SourceVariable],
    ) -> None:
        self._owner = owner
        self._method = method
        self._scope = scope

    def build(self, node: Node) -> CodeNode:
        return self._convert(node) or CodeNode(NodeKind.BLOCK, line=_line(node))

    def _convert(self, node: Node | None) -> CodeNode | None:
        if node is None or node.type in _COMMENT_TYPES:
            return None

        kind = node.type
        if kind in ("block", "constructor_body"):
            return CodeNode(NodeKind.BLOCK, self._children(node), line=_line(node))
        if kind == "method_invocation":
            return self._call(node)
        if kind == "identifier":
            text = _node_text(node)
            return CodeNode(NodeKind.NAME, name=text, variable=self._lookup(text), line=_line(node))
        if kind == "type_identifier":
            return CodeNode(NodeKind.NAME, name=_node_text(node), line=_line(node))
        if kind == "field_access":
            return self._field_access(node)
        if kind == "local_variable_declaration":
            return self._local_declaration(node)
        if kind == "enhanced_for_statement":
            return self._for_each(node)
        if kind == "object_creation_expression":
            return self._new(node)
        return CodeNode(NodeKind.OTHER, self._children(node), line=_line(node))

    def _new(self, node: Node) -> CodeNode:
        args = node.child_by_field_name("arguments")
        children = self._children(args) if args is not None else []
        # Anonymous class bodies contribute their method bodies.
        for body in (c for c in node.named_children if c.type == "class_body"):
            for member in body.named_children:
                if member.type == "method_declaration":
                    converted = self._convert(member.child_by_field_name("body"))
                    if converted is not None:
                        children.append(converted)
        return CodeNode(
            NodeKind.NEW,
            children,
            type_name=_type_name(node.child_by_field_name("type")),
            line=_line(node),
        )

    def _children(self, node: Node) -> list[CodeNode]:
        converted = (self._convert(child) for child in node.named_children)
        return [c for c in converted if c is not None]

    def _lookup(self, name: str) -> SourceVariable | None:
        if name in self._scope:
            return self._scope[name]
        return self._owner.find_field(name)

    def _call(self, node: Node) -> CodeNode:
        obj = node.child_by_field_name("object")
        receiver = None
        # this.run() and super.run() are implicit-receiver calls
        if obj is not None and obj.type not in ("this", "super"):
            receiver = self._convert(obj)

        children = [receiver] if receiver is not None else []
        args = node.child_by_field_name("arguments")
        if args is not None:
            children.extend(self._children(args))
        return CodeNode(
            NodeKind.CALL,
            children,
            name=_node_text(node.child_by_field_name("name")),
            receiver=receiver,
            line=_line(node),
        )

    def _field_access(self, node: Node) -> CodeNode:
        obj = node.child_by_field_name("object")
        name = _node_text(node.child_by_field_name("field"))
        if obj is not None and obj.type == "this":
            return CodeNode(
                NodeKind.NAME, name=name, variable=self._owner.find_field(name), line=_line(node)
            )
        receiver = self._convert(obj)
        return CodeNode(
            NodeKind.OTHER,
            [receiver] if receiver is not None else [],
            name=name,
            line=_line(node),
        )

    def _local_declaration(self, node: Node) -> CodeNode:
        declared_type = _type_name(node.child_by_field_name("type"))
        markers, modifiers = _modifiers_of(node)

        declarations: list[CodeNode] = []
        for declarator in node.children_by_field_name("declarator"):
            value = self._convert(declarator.child_by_field_name("value"))
            type_name = declared_type
            if type_name == "var" and value is not None and value.kind == NodeKind.NEW:
                type_name = value.type_name or type_name
            variable = SourceVariable(
                name=_node_text(declarator.child_by_field_name("name")),
                type_name=type_name,
                kind=VariableKind.LOCAL,
                owner=self._owner,
                method=self._method,
                markers=markers,
                modifiers=modifiers,
                line=_line(declarator),
            )
            self._scope[variable.name] = variable
            declarations.append(
                CodeNode(
                    NodeKind.LOCAL_DECLARATION,
                    [value] if value is not None else [],
                    name=variable.name,
                    variable=variable,
                    type_name=type_name,
                    line=variable.line,
                )
            )

        if len(declarations) == 1:
            return declarations[0]
        return CodeNode(NodeKind.OTHER, declarations, line=_line(node))

    def _for_each(self, node: Node) -> CodeNode:
        iterable = self._convert(node.child_by_field_name("value"))
        type_name = _type_name(node.child_by_field_name("type"))
        variable = SourceVariable(
            name=_node_text(node.child_by_field_name("name")),
            type_name=type_name,
            kind=VariableKind.LOCAL,
            owner=self._owner,
            method=self._method,
            line=_line(node),
        )
        self._scope[variable.name] = variable

        children: list[CodeNode] = [
            CodeNode(
                NodeKind.LOCAL_DECLARATION,
                [iterable] if iterable is not None else [],
                name=variable.name,
                variable=variable,
                type_name=type_name,
                line=variable.line,
            )
        ]
        body = self._convert(node.child_by_field_name("body"))
        if body is not None:
            children.append(body)
        return CodeNode(NodeKind.OTHER, children, line=_line(node))


# ---------------------------------------------------------------------------
# Main parser class
# ---------------------------------------------------------------------------


class JavaParser:
    """Extract entities, members and method bodies from Java source code."""

    def __init__(self) -> None:
        self._language = Language(tree_sitter_java.language())
        self._header_query = Query(self._language, _HEADER_QUERY)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_file(self, path: Path | str) -> ParsedFile:
        """Read and parse a ``.java`` file.

        Raises:
            ParsingError: If the file cannot be read or decoded.
        """
        path = Path(path)
        try:
            source = path.read_bytes()
        except OSError as exc:
            raise ParsingError(f"Cannot read {path}: {exc}") from exc
        return self.parse_source(source, str(path))

    def parse_source(self, source: bytes | str, file_path: str = "<memory>") -> ParsedFile:
        """Parse Java source held in memory.

        Syntax errors are tolerated: tree-sitter recovers and whatever
        declarations it still recognises are extracted.

        Raises:
            ParsingError: If the source is not valid UTF-8 or tree-sitter fails.
        """
        if isinstance(source, str):
            source = source.encode("utf-8")
        try:
            source.decode("utf-8")
            tree = Parser(self._language).parse(source)
        except (UnicodeDecodeError, ValueError, RuntimeError) as exc:
            raise ParsingError(f"Failed to parse {file_path}: {exc}") from exc

        root = tree.root_node
        parsed = ParsedFile(file_path=file_path, has_errors=root.has_error)
        if root.has_error:
            logger.warning("Parse errors in %s", file_path)

        self._extract_header(root, parsed)
        for child in root.named_children:
            if child.type in _DECLARATION_KINDS:
                self._extract_entity(child, parsed, outer=None)

        logger.debug("Parsed %s: %d entities", file_path, len(parsed.entities))
        return parsed

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def _extract_header(self, root: Node, parsed: ParsedFile) -> None:
        cursor = QueryCursor(self._header_query)
        for _pattern_idx, captures in cursor.matches(root):
            for node in captures.get("package", []):
                parsed.package = self._dotted_name(node)
            for node in captures.get("import", []):
                imported = self._import_name(node)
                if imported:
                    parsed.imports.append(imported)

    @staticmethod
    def _dotted_name(node: Node) -> str:
        for child in node.named_children:
            if child.type in ("scoped_identifier", "identifier"):
                return _node_text(child)
        return ""

    @staticmethod
    def _import_name(node: Node) -> str | None:
        """``a.b.C`` or ``a.b.*``; static imports carry no types and are dropped."""
        name = ""
        wildcard = False
        for child in node.children:
            if child.type == "static":
                return None
            if child.type in ("scoped_identifier", "identifier"):
                name = _node_text(child)
            elif child.type == "asterisk":
                wildcard = True
        if not name:
            return None
        return f"{name}.*" if wildcard else name

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _extract_entity(
        self, node: Node, parsed: ParsedFile, outer: SourceEntity | None
    ) -> SourceEntity:
        name = _node_text(node.child_by_field_name("name"))
        if outer is not None:
            qualified_name = f"{outer.qualified_name}.{name}"
        elif parsed.package:
            qualified_name = f"{parsed.package}.{name}"
        else:
            qualified_name = name

        markers, modifiers = _modifiers_of(node)
        entity = SourceEntity(
            name=name,
            qualified_name=qualified_name,
            kind=_DECLARATION_KINDS[node.type],
            markers=markers,
            modifiers=modifiers,
            package=parsed.package,
            doc=_javadoc_of(node),
            interface_names=_super_type_names(node),
            superclass_name=_superclass_name(node),
            imports=list(parsed.imports),
            file_path=parsed.file_path,
            line=_line(node),
        )
        parsed.entities.append(entity)

        if entity.kind == EntityKind.RECORD:
            self._extract_record_components(node, entity)

        body = node.child_by_field_name("body")
        if body is not None:
            self._extract_members(body, entity, parsed)
        return entity

    def _extract_members(self, body: Node, entity: SourceEntity, parsed: ParsedFile) -> None:
        # Fields first so method bodies can bind names declared further down.
        method_nodes: list[Node] = []
        for child in body.named_children:
            if child.type == "enum_body_declarations":
                for member in child.named_children:
                    self._extract_member(member, entity, parsed, method_nodes)
            else:
                self._extract_member(child, entity, parsed, method_nodes)

        for node in method_nodes:
            self._extract_method(node, entity)

    def _extract_member(
        self,
        node: Node,
        entity: SourceEntity,
        parsed: ParsedFile,
        method_nodes: list[Node],
    ) -> None:
        if node.type in _DECLARATION_KINDS:
            self._extract_entity(node, parsed, outer=entity)
        elif node.type in _FIELD_TYPES:
            self._extract_fields(node, entity)
        elif node.type in _METHOD_TYPES:
            method_nodes.append(node)

    def _extract_fields(self, node: Node, entity: SourceEntity) -> None:
        markers, modifiers = _modifiers_of(node)
        if entity.is_interface:
            modifiers = modifiers | {"public", "static", "final"}
        type_name = _type_name(node.child_by_field_name("type"))
        doc = _javadoc_of(node)
        for declarator in node.children_by_field_name("declarator"):
            entity.add_field(
                SourceVariable(
                    name=_node_text(declarator.child_by_field_name("name")),
                    type_name=type_name,
                    kind=VariableKind.FIELD,
                    doc=doc,
                    markers=markers,
                    modifiers=modifiers,
                    line=_line(declarator),
                )
            )

    def _extract_record_components(self, node: Node, entity: SourceEntity) -> None:
        params = node.child_by_field_name("parameters")
        if params is None:
            return
        for param in params.named_children:
            if param.type != "formal_parameter":
                continue
            markers, _ = _modifiers_of(param)
            entity.add_field(
                SourceVariable(
                    name=_node_text(param.child_by_field_name("name")),
                    type_name=_type_name(param.child_by_field_name("type")),
                    kind=VariableKind.FIELD,
                    markers=markers,
                    modifiers=frozenset({"private", "final"}),
                    line=_line(param),
                )
            )

    def _extract_method(self, node: Node, entity: SourceEntity) -> SourceMethod:
        is_constructor = node.type == "constructor_declaration"
        markers, modifiers = _modifiers_of(node)
        method = entity.add_method(
            SourceMethod(
                name=_node_text(node.child_by_field_name("name")),
                doc=_javadoc_of(node),
                markers=markers,
                modifiers=modifiers,
                return_type=None if is_constructor else _type_name(node.child_by_field_name("type")),
                is_constructor=is_constructor,
                line=_line(node),
            )
        )

        scope: dict[str, SourceVariable] = {}
        params = node.child_by_field_name("parameters")
        if params is not None:
            for param in params.named_children:
                variable = self._parameter(param, entity, method)
                if variable is not None:
                    method.parameters.append(variable)
                    scope[variable.name] = variable

        body = node.child_by_field_name("body")
        if body is not None:
            method.body = _BodyBuilder(entity, method, scope).build(body)
        return method

    @staticmethod
    def _parameter(
        node: Node, entity: SourceEntity, method: SourceMethod
    ) -> SourceVariable | None:
        if node.type == "formal_parameter":
            name = _node_text(node.child_by_field_name("name"))
            type_name = _type_name(node.child_by_field_name("type"))
        elif node.type == "spread_parameter":
            name = ""
            type_name = ""
            for child in node.named_children:
                if child.type == "variable_declarator":
                    name = _node_text(child.child_by_field_name("name"))
                elif child.type != "modifiers" and not type_name:
                    type_name = _type_name(child) + "[]"
        else:
            return None

        markers, modifiers = _modifiers_of(node)
        return SourceVariable(
            name=name,
            type_name=type_name,
            kind=VariableKind.PARAMETER,
            owner=entity,
            method=method,
            markers=markers,
            modifiers=modifiers,
            line=_line(node),
        )
