"""Decides whether a method body genuinely invokes a target entity."""
from __future__ import annotations

import logging
from typing import Callable

from src.convention_inspector.services.collaborators import (
    CancellationSignal,
    TypeResolver,
    call_backend,
    cancellation_of,
)
from src.convention_inspector.services.outcomes import NOT_FOUND, Found, NotFound, Outcome
from src.shared.models.source import CodeNode, NodeKind, SourceEntity, SourceMethod, SourceVariable

logger = logging.getLogger(__name__)


def walk_tree(
    root: CodeNode | None,
    visit: Callable[[CodeNode], Outcome],
    signal: CancellationSignal,
) -> Outcome:
    """Visit ``root`` in pre-order until a visit answers Found or Cancelled.

    The signal is polled before every call node, the only nodes whose
    visits reach into the type resolver.
    """
    if root is None:
        return NOT_FOUND
    for node in root.walk():
        if node.kind == NodeKind.CALL and signal.is_cancelled():
            return cancellation_of(signal)
        outcome = visit(node)
        if not isinstance(outcome, NotFound):
            return outcome
    return NOT_FOUND


def is_subtype(candidate: SourceEntity, target: SourceEntity) -> bool:
    """True if ``candidate`` is ``target`` or extends/implements it,
    directly or through any chain of super-types."""
    seen: set[int] = set()
    stack = [candidate]
    while stack:
        current = stack.pop()
        if current is target:
            return True
        if id(current) in seen:
            continue
        seen.add(id(current))
        stack.extend(current.interfaces)
        if current.superclass is not None:
            stack.append(current.superclass)
    return False


class UsageValidator:
    """Checks call expressions in a method body against a target type.

    A call counts as usage when its receiver's static type (or, failing
    that, the declared type of the variable the receiver names) is the
    target or one of its sub-types.  Calls without a receiver (bare or
    implicit ``this`` calls) never count as usage of another entity.
    """

    def __init__(self, resolver: TypeResolver) -> None:
        self._resolver = resolver

    def resolve_receiver_type(self, call: CodeNode) -> SourceEntity | None:
        """Static type of a call's receiver, or None when it has none or it
        cannot be resolved."""
        receiver = call.receiver
        if receiver is None:
            return None
        resolved = call_backend("resolve_static_type", self._resolver.resolve_static_type, receiver)
        if resolved is None and receiver.variable is not None:
            resolved = self.resolve_declared_type(receiver.variable)
        return resolved

    def resolve_declared_type(self, variable: SourceVariable) -> SourceEntity | None:
        return call_backend(
            "resolve_variable_type", self._resolver.resolve_variable_type, variable
        )

    def body_uses_entity(
        self, method: SourceMethod, target: SourceEntity, signal: CancellationSignal
    ) -> Outcome:
        """Found(True) when the body calls into ``target``; NotFound when it
        does not or has no body; Cancelled when the signal tripped."""
        if method.body is None:
            logger.debug("No body to validate in %s", method.qualified_name)
            return NOT_FOUND

        def visit(node: CodeNode) -> Outcome:
            if node.kind != NodeKind.CALL:
                return NOT_FOUND
            resolved = self.resolve_receiver_type(node)
            if resolved is not None and is_subtype(resolved, target):
                return Found(True)
            return NOT_FOUND

        return walk_tree(method.body, visit, signal)
