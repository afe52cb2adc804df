"""Interfaces of the external collaborators the engine queries.

The engine only ever talks to these protocols, so any index (the in-memory
:class:`~src.convention_inspector.storage.source_index.SourceIndex`, an IDE
index, a test fake) can be substituted.  Every call into a collaborator goes
through :func:`call_backend`, which turns foreign exceptions into
:class:`~src.shared.errors.SearchBackendError` so that the engine's query
boundary can tell "backend failed" apart from "nothing found".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol, TypeVar, Union

from src.convention_inspector.services.outcomes import Cancelled
from src.shared.errors import SearchBackendError
from src.shared.models.source import CodeNode, SourceEntity, SourceMethod, SourceVariable

logger = logging.getLogger(__name__)

T = TypeVar("T")

Referenceable = Union[SourceEntity, SourceVariable]


@dataclass(frozen=True)
class SearchScope:
    """Where a reference search may look.

    ``entities`` holds qualified names of the entities whose bodies are
    searched; ``None`` means the whole project.
    """
    entities: frozenset[str] | None = None

    @classmethod
    def project(cls) -> SearchScope:
        return cls()

    @classmethod
    def local_to(cls, *qualified_names: str) -> SearchScope:
        return cls(entities=frozenset(qualified_names))

    def contains(self, entity: SourceEntity | None) -> bool:
        if self.entities is None:
            return True
        return entity is not None and entity.qualified_name in self.entities


@dataclass(frozen=True)
class ReferenceSite:
    """One place where an entity or variable is mentioned.

    Exactly one of ``method`` (the mention sits inside a method, including
    its parameter list) or ``variable`` (the mention is the declared type of
    a field) is normally set; a site with neither is unresolved.
    """
    method: SourceMethod | None = None
    variable: SourceVariable | None = None
    entity: SourceEntity | None = None
    line: int = 1


class CancellationSignal(Protocol):
    def is_cancelled(self) -> bool: ...


class ReferenceIndex(Protocol):
    def find_references(
        self, element: Referenceable, scope: SearchScope
    ) -> Iterable[ReferenceSite]: ...

    def use_scope(self, element: Referenceable) -> SearchScope: ...


class ImplementorSearch(Protocol):
    def find_implementors(
        self, entity: SourceEntity, transitive: bool = True
    ) -> Iterable[SourceEntity]: ...


class TypeResolver(Protocol):
    def resolve_static_type(self, node: CodeNode) -> SourceEntity | None: ...

    def resolve_variable_type(self, variable: SourceVariable) -> SourceEntity | None: ...


class SourceBackend(ReferenceIndex, ImplementorSearch, TypeResolver, Protocol):
    """One object answering all three lookups, such as ``SourceIndex``."""


def call_backend(operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Invoke a collaborator, normalising any failure to SearchBackendError."""
    try:
        return func(*args, **kwargs)
    except SearchBackendError:
        raise
    except Exception as exc:
        raise SearchBackendError(f"{operation} failed: {exc}", operation=operation) from exc


def collect_backend(
    operation: str, func: Callable[..., Iterable[T]], *args: Any, **kwargs: Any
) -> list[T]:
    """Like :func:`call_backend` but materialises the result inside the guard,
    so lazily failing generators are caught here too."""
    return call_backend(operation, lambda: list(func(*args, **kwargs)))


def cancellation_of(signal: CancellationSignal) -> Cancelled:
    """Build the Cancelled outcome for a tripped signal."""
    reason = getattr(signal, "reason", "") or "cancelled"
    return Cancelled(reason=reason)
