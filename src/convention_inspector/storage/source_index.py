"""In-memory index over parsed Java files.

:class:`SourceIndex` links the type names the parser saw to entities,
keeps the type hierarchy in a NetworkX ``DiGraph`` (sub-type -> super-type
edges) and precomputes reference sites, so it can serve as the reference
index, the implementor search and the type resolver of the engine.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

import networkx as nx

from src.convention_inspector.parsers.java_parser import ParsedFile
from src.convention_inspector.services.collaborators import (
    Referenceable,
    ReferenceSite,
    SearchScope,
)
from src.shared.models.source import (
    CodeNode,
    NodeKind,
    SourceEntity,
    SourceMethod,
    SourceVariable,
    VariableKind,
    simple_name,
)

logger = logging.getLogger(__name__)


class SourceIndex:
    """Resolved view of a set of parsed files.

    Build with :meth:`build`. Entities, hierarchy and reference sites are
    fixed once built; the only later writes go to a memo of resolved type
    names, whose entries are idempotent, so concurrent queries may share
    one index.
    """

    def __init__(self, files: Iterable[ParsedFile]) -> None:
        self._files: list[ParsedFile] = list(files)
        self._entities: dict[str, SourceEntity] = {}
        self._by_simple_name: dict[str, list[SourceEntity]] = defaultdict(list)
        self._hierarchy = nx.DiGraph()
        self._entity_sites: dict[SourceEntity, list[ReferenceSite]] = defaultdict(list)
        self._variable_sites: dict[SourceVariable, list[ReferenceSite]] = defaultdict(list)
        self._node_context: dict[CodeNode, SourceEntity] = {}
        self._type_cache: dict[tuple[str, str], SourceEntity | None] = {}

        for parsed in self._files:
            for entity in parsed.entities:
                if entity.qualified_name in self._entities:
                    logger.warning(
                        "Duplicate type %s in %s; keeping the first declaration",
                        entity.qualified_name, parsed.file_path,
                    )
                    continue
                self._entities[entity.qualified_name] = entity
                self._by_simple_name[entity.name].append(entity)

    @classmethod
    def build(cls, files: Iterable[ParsedFile]) -> SourceIndex:
        """Create an index and resolve everything the engine will ask for."""
        index = cls(files)
        index._link_entities()
        index._build_hierarchy()
        index._collect_references()
        logger.info(
            "Indexed %d entities from %d files (%d hierarchy edges)",
            len(index._entities), len(index._files), index._hierarchy.number_of_edges(),
        )
        return index

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def entities(self) -> list[SourceEntity]:
        return list(self._entities.values())

    @property
    def files(self) -> list[ParsedFile]:
        return list(self._files)

    @property
    def hierarchy(self) -> nx.DiGraph:
        return self._hierarchy

    def find_entity(self, name: str) -> SourceEntity | None:
        """Look an entity up by qualified name, or by a unique simple name."""
        if name in self._entities:
            return self._entities[name]
        candidates = self._by_simple_name.get(name, [])
        if len(candidates) == 1:
            return candidates[0]
        return None

    def entities_in_file(self, file_path: str) -> list[SourceEntity]:
        for parsed in self._files:
            if parsed.file_path == file_path:
                return [e for e in parsed.entities if self._entities.get(e.qualified_name) is e]
        return []

    def resolve_type_name(self, name: str, context: SourceEntity | None) -> SourceEntity | None:
        """Resolve a type name as written inside ``context``.

        Lookup order: nested types of the context chain, explicit
        import, same package, wildcard import, unique simple name.
        """
        if not name or name.endswith("[]"):
            return None
        key = (name, context.qualified_name if context is not None else "")
        if key not in self._type_cache:
            self._type_cache[key] = self._resolve_uncached(name, context)
        return self._type_cache[key]

    # ------------------------------------------------------------------
    # ImplementorSearch
    # ------------------------------------------------------------------

    def find_implementors(self, entity: SourceEntity, transitive: bool = True) -> list[SourceEntity]:
        """Sub-types of ``entity`` in breadth-first order, each level sorted
        by qualified name."""
        start = entity.qualified_name
        if start not in self._hierarchy:
            return []

        result: list[SourceEntity] = []
        seen = {start}
        level = [start]
        while level:
            next_level: list[str] = []
            for node in level:
                for sub in sorted(self._hierarchy.predecessors(node)):
                    if sub in seen:
                        continue
                    seen.add(sub)
                    next_level.append(sub)
                    result.append(self._entities[sub])
            if not transitive:
                break
            level = next_level
        return result

    # ------------------------------------------------------------------
    # ReferenceIndex
    # ------------------------------------------------------------------

    def use_scope(self, element: Referenceable) -> SearchScope:
        if isinstance(element, SourceVariable):
            owner = element.owner
            private_field = element.kind == VariableKind.FIELD and "private" in element.modifiers
            if owner is not None and (private_field or element.kind != VariableKind.FIELD):
                nested = [
                    qn for qn in self._entities
                    if qn.startswith(owner.qualified_name + ".")
                ]
                return SearchScope.local_to(owner.qualified_name, *nested)
        return SearchScope.project()

    def find_references(self, element: Referenceable, scope: SearchScope) -> list[ReferenceSite]:
        if isinstance(element, SourceVariable):
            sites = self._variable_sites.get(element, [])
        else:
            sites = self._entity_sites.get(element, [])
        return [site for site in sites if scope.contains(site.entity)]

    # ------------------------------------------------------------------
    # TypeResolver
    # ------------------------------------------------------------------

    def resolve_static_type(self, node: CodeNode) -> SourceEntity | None:
        context = self._node_context.get(node)
        if node.kind == NodeKind.NEW:
            return self.resolve_type_name(node.type_name or "", context)
        if node.kind == NodeKind.NAME:
            if node.variable is not None:
                return self.resolve_variable_type(node.variable)
            return self.resolve_type_name(node.name or "", context)
        if node.kind == NodeKind.CALL:
            owner = self.resolve_static_type(node.receiver) if node.receiver else context
            method = self._find_method(owner, node.name or "")
            if method is None or not method.return_type:
                return None
            return self.resolve_type_name(method.return_type, method.owner)
        if node.kind == NodeKind.OTHER and node.name and node.children:
            owner = self.resolve_static_type(node.children[0])
            variable = self._find_field(owner, node.name)
            if variable is None:
                return None
            return self.resolve_variable_type(variable)
        return None

    def resolve_variable_type(self, variable: SourceVariable) -> SourceEntity | None:
        return self.resolve_type_name(variable.type_name, variable.owner)

    # ------------------------------------------------------------------
    # Build steps
    # ------------------------------------------------------------------

    def _resolve_uncached(self, name: str, context: SourceEntity | None) -> SourceEntity | None:
        if "." in name:
            if name in self._entities:
                return self._entities[name]
            if context is not None and context.package:
                return self._entities.get(f"{context.package}.{name}")
            return None

        if context is None:
            return self.find_entity(name)

        # Nested types of the context and its enclosing types.
        prefix = context.qualified_name
        while len(prefix) > len(context.package):
            candidate = self._entities.get(f"{prefix}.{name}")
            if candidate is not None:
                return candidate
            prefix = prefix.rpartition(".")[0]
        if context.name == name:
            return context

        for imported in context.imports:
            if not imported.endswith(".*") and simple_name(imported) == name:
                return self._entities.get(imported)

        same_package = f"{context.package}.{name}" if context.package else name
        if same_package in self._entities:
            return self._entities[same_package]

        for imported in context.imports:
            if imported.endswith(".*"):
                candidate = self._entities.get(f"{imported[:-2]}.{name}")
                if candidate is not None:
                    return candidate

        candidates = self._by_simple_name.get(name, [])
        if len(candidates) == 1:
            return candidates[0]
        return None

    def _link_entities(self) -> None:
        for entity in self._entities.values():
            entity.interfaces = [
                resolved
                for resolved in (self.resolve_type_name(n, entity) for n in entity.interface_names)
                if resolved is not None
            ]
            if entity.superclass_name:
                entity.superclass = self.resolve_type_name(entity.superclass_name, entity)

            entity.markers = self._qualify_markers(entity.markers, entity.imports)
            for method in entity.methods:
                method.markers = self._qualify_markers(method.markers, entity.imports)
                for param in method.parameters:
                    param.markers = self._qualify_markers(param.markers, entity.imports)
            for variable in entity.fields:
                variable.markers = self._qualify_markers(variable.markers, entity.imports)

    @staticmethod
    def _qualify_markers(markers: frozenset[str], imports: list[str]) -> frozenset[str]:
        qualified: set[str] = set()
        for marker in markers:
            if "." not in marker:
                for imported in imports:
                    if not imported.endswith(".*") and simple_name(imported) == marker:
                        marker = imported
                        break
            qualified.add(marker)
        return frozenset(qualified)

    def _build_hierarchy(self) -> None:
        for entity in self._entities.values():
            self._hierarchy.add_node(entity.qualified_name, kind=entity.kind.value)
        for entity in self._entities.values():
            for iface in entity.interfaces:
                relation = "extends" if entity.is_interface else "implements"
                self._hierarchy.add_edge(entity.qualified_name, iface.qualified_name, relation=relation)
            if entity.superclass is not None:
                self._hierarchy.add_edge(
                    entity.qualified_name, entity.superclass.qualified_name, relation="extends"
                )

    def _collect_references(self) -> None:
        for entity in self._entities.values():
            for variable in entity.fields:
                target = self.resolve_type_name(variable.type_name, entity)
                if target is not None:
                    self._entity_sites[target].append(
                        ReferenceSite(variable=variable, entity=entity, line=variable.line)
                    )
            for method in entity.methods:
                self._collect_method_references(entity, method)

    def _collect_method_references(self, entity: SourceEntity, method: SourceMethod) -> None:
        def mention(type_name: str | None, line: int) -> None:
            target = self.resolve_type_name(type_name or "", entity)
            if target is not None:
                self._entity_sites[target].append(
                    ReferenceSite(method=method, entity=entity, line=line)
                )

        for param in method.parameters:
            mention(param.type_name, param.line)
        if method.return_type:
            mention(method.return_type, method.line)
        if method.body is None:
            return

        for node in method.body.walk():
            self._node_context[node] = entity
            if node.kind == NodeKind.LOCAL_DECLARATION:
                mention(node.type_name, node.line)
            elif node.kind == NodeKind.NEW:
                mention(node.type_name, node.line)
            elif node.kind == NodeKind.NAME and node.variable is not None:
                self._variable_sites[node.variable].append(
                    ReferenceSite(method=method, entity=entity, line=node.line)
                )
            elif node.kind == NodeKind.NAME:
                mention(node.name, node.line)

    def _find_method(self, entity: SourceEntity | None, name: str) -> SourceMethod | None:
        for current in self._supertypes(entity):
            method = current.find_method(name)
            if method is not None:
                return method
        return None

    def _find_field(self, entity: SourceEntity | None, name: str) -> SourceVariable | None:
        for current in self._supertypes(entity):
            variable = current.find_field(name)
            if variable is not None:
                return variable
        return None

    def _supertypes(self, entity: SourceEntity | None) -> list[SourceEntity]:
        """``entity`` followed by its super-types, nearest first."""
        if entity is None or entity.qualified_name not in self._hierarchy:
            return [entity] if entity is not None else []
        order = [entity.qualified_name]
        order.extend(
            qn for qn in nx.bfs_tree(self._hierarchy, entity.qualified_name)
            if qn != entity.qualified_name
        )
        return [self._entities[qn] for qn in order]
