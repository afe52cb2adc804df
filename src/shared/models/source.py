"""Read-only source model: entities, methods, variables and body trees.

These are plain dataclasses rather than Pydantic models: the graph is
cyclic (methods point back at their owner, names point at declarations)
and identity, not value, is what deduplication relies on, so every class
uses ``eq=False`` and hashes by identity.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


class EntityKind(str, Enum):
    """Structural kind of a declared type."""
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    ANNOTATION = "annotation"
    RECORD = "record"


class VariableKind(str, Enum):
    """Where a variable is declared."""
    FIELD = "field"
    PARAMETER = "parameter"
    LOCAL = "local"


class NodeKind(str, Enum):
    """Kinds of nodes in a method body tree."""
    BLOCK = "block"
    CALL = "call"
    NAME = "name"
    LOCAL_DECLARATION = "local_declaration"
    NEW = "new"
    OTHER = "other"


def simple_name(name: str) -> str:
    """Return the last dotted segment of ``name`` ("a.b.Service" -> "Service")."""
    return name.rsplit(".", 1)[-1]


@dataclass(eq=False)
class SourceVariable:
    """A field, parameter or local variable declaration."""
    name: str
    type_name: str
    kind: VariableKind
    owner: SourceEntity | None = None
    method: SourceMethod | None = None
    doc: str | None = None
    markers: frozenset[str] = frozenset()
    modifiers: frozenset[str] = frozenset()
    line: int = 1

    def has_marker(self, marker: str) -> bool:
        return _has_marker(self.markers, marker)

    def __repr__(self) -> str:
        return f"SourceVariable({self.kind.value} {self.type_name} {self.name})"


@dataclass(eq=False)
class CodeNode:
    """A statement or expression inside a method body.

    ``receiver`` is set on CALL nodes that have an explicit qualifier
    (``svc.run()``); it is also the first entry of ``children``.
    ``variable`` binds NAME nodes and LOCAL_DECLARATION nodes to their
    declaration when the parser could resolve it.
    """
    kind: NodeKind
    children: list[CodeNode] = field(default_factory=list)
    name: str | None = None
    receiver: CodeNode | None = None
    variable: SourceVariable | None = None
    type_name: str | None = None
    line: int = 1

    def walk(self) -> Iterator[CodeNode]:
        """Yield this node and all descendants in pre-order."""
        stack: list[CodeNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        label = self.name or self.type_name or ""
        return f"CodeNode({self.kind.value} {label})".rstrip()


@dataclass(eq=False)
class SourceMethod:
    """A method or constructor declared in a SourceEntity."""
    name: str
    owner: SourceEntity | None = None
    doc: str | None = None
    markers: frozenset[str] = frozenset()
    modifiers: frozenset[str] = frozenset()
    parameters: list[SourceVariable] = field(default_factory=list)
    body: CodeNode | None = None
    return_type: str | None = None
    is_constructor: bool = False
    line: int = 1

    @property
    def parameter_types(self) -> list[str]:
        return [p.type_name for p in self.parameters]

    @property
    def qualified_name(self) -> str:
        if self.owner is None:
            return self.name
        return f"{self.owner.qualified_name}#{self.name}"

    def has_marker(self, marker: str) -> bool:
        return _has_marker(self.markers, marker)

    def __repr__(self) -> str:
        return f"SourceMethod({self.qualified_name})"


@dataclass(eq=False)
class SourceEntity:
    """A class, interface, enum, annotation type or record."""
    name: str
    qualified_name: str
    kind: EntityKind = EntityKind.CLASS
    markers: frozenset[str] = frozenset()
    modifiers: frozenset[str] = frozenset()
    package: str = ""
    doc: str | None = None
    interfaces: list[SourceEntity] = field(default_factory=list)
    superclass: SourceEntity | None = None
    methods: list[SourceMethod] = field(default_factory=list)
    fields: list[SourceVariable] = field(default_factory=list)
    interface_names: list[str] = field(default_factory=list)
    superclass_name: str | None = None
    imports: list[str] = field(default_factory=list)
    file_path: str | None = None
    line: int = 1

    @property
    def is_interface(self) -> bool:
        return self.kind == EntityKind.INTERFACE

    @property
    def is_concrete_type(self) -> bool:
        """True for classes and records (not interfaces, annotations or enums)."""
        return self.kind in (EntityKind.CLASS, EntityKind.RECORD)

    @property
    def package_segments(self) -> list[str]:
        return [seg for seg in self.package.split(".") if seg]

    def has_marker(self, marker: str) -> bool:
        return _has_marker(self.markers, marker)

    def add_method(self, method: SourceMethod) -> SourceMethod:
        method.owner = self
        self.methods.append(method)
        return method

    def add_field(self, variable: SourceVariable) -> SourceVariable:
        variable.owner = self
        self.fields.append(variable)
        return variable

    def find_method(self, name: str) -> SourceMethod | None:
        for method in self.methods:
            if method.name == name:
                return method
        return None

    def find_field(self, name: str) -> SourceVariable | None:
        for variable in self.fields:
            if variable.name == name:
                return variable
        return None

    def __repr__(self) -> str:
        return f"SourceEntity({self.kind.value} {self.qualified_name})"


def _has_marker(markers: frozenset[str], marker: str) -> bool:
    """Match a marker by qualified name, or by simple name when either side
    is unqualified (``Service`` matches ``org...stereotype.Service``)."""
    if marker in markers:
        return True
    wanted = simple_name(marker)
    for present in markers:
        if "." in present and "." in marker:
            continue
        if simple_name(present) == wanted:
            return True
    return False
