"""The ordered fallback chain that finds an existing identifier to suggest.

For an entity without its own identifier, the chain prefers the entity's
own documentation, then its concrete relatives (implementors, implemented
interfaces), then its callers:

1. ``self``              -- the entity's own doc
2. ``implementors``      -- service interface: transitive implementors
3. ``interfaces``        -- service implementation: implemented interfaces
4. ``interface_callers`` -- service implementation: callers of its interfaces
5. ``direct_callers``    -- callers of the entity itself

The first strategy that answers Found wins; Cancelled aborts the chain.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from src.convention_inspector.services.collaborators import (
    CancellationSignal,
    ImplementorSearch,
    cancellation_of,
    collect_backend,
)
from src.convention_inspector.services.entity_classifier import EntityClassifier
from src.convention_inspector.services.identifier_matcher import extract_identifier
from src.convention_inspector.services.outcomes import (
    NOT_FOUND,
    Cancelled,
    Found,
    NotFound,
    Outcome,
)
from src.convention_inspector.services.reference_walker import ReferenceGraphWalker
from src.convention_inspector.services.usage_validator import UsageValidator, walk_tree
from src.shared.models.inspection import SuggestionMap
from src.shared.models.source import CodeNode, NodeKind, SourceEntity, SourceMethod

logger = logging.getLogger(__name__)

StrategyFunc = Callable[[SourceEntity, CancellationSignal], Outcome]


@dataclass(frozen=True)
class SuggestionStrategy:
    """One named step of the fallback chain."""
    name: str
    run: StrategyFunc


class SuggestionResolver:
    """Runs the fallback chain for entities and aggregates it for handler
    methods.  Holds only its collaborators; every call builds fresh maps."""

    def __init__(
        self,
        classifier: EntityClassifier,
        implementors: ImplementorSearch,
        walker: ReferenceGraphWalker,
        validator: UsageValidator,
    ) -> None:
        self._classifier = classifier
        self._implementors = implementors
        self._walker = walker
        self._validator = validator

    def strategies(self) -> list[SuggestionStrategy]:
        """The fallback chain, in priority order."""
        return [
            SuggestionStrategy("self", self._from_own_doc),
            SuggestionStrategy("implementors", self._from_implementors),
            SuggestionStrategy("interfaces", self._from_interfaces),
            SuggestionStrategy("interface_callers", self._from_interface_callers),
            SuggestionStrategy("direct_callers", self._from_direct_callers),
        ]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def suggest_for(self, entity: SourceEntity, signal: CancellationSignal) -> Outcome:
        """Found(SuggestionMap) with exactly one entry, NotFound, or Cancelled."""
        for strategy in self.strategies():
            if signal.is_cancelled():
                return cancellation_of(signal)
            outcome = strategy.run(entity, signal)
            if isinstance(outcome, NotFound):
                continue
            if isinstance(outcome, Found):
                logger.debug(
                    "Suggestion for %s found by strategy '%s'",
                    entity.qualified_name, strategy.name,
                )
            return outcome
        return NOT_FOUND

    def suggest_used_by(self, handler_method: SourceMethod, signal: CancellationSignal) -> Outcome:
        """Found(SuggestionMap) merging the suggestions of every distinct
        service the handler body calls into (later entries overwrite earlier
        ones on a key collision), or Cancelled."""
        aggregate: SuggestionMap = {}
        processed: set[SourceEntity] = set()

        if handler_method.body is None:
            return Found(aggregate)

        def visit(node: CodeNode) -> Outcome:
            if node.kind == NodeKind.LOCAL_DECLARATION:
                self._note_service_local(node)
                return NOT_FOUND
            if node.kind != NodeKind.CALL:
                return NOT_FOUND

            service = self._validator.resolve_receiver_type(node)
            if service is None or service in processed:
                return NOT_FOUND
            if not self._classifier.is_service_entity(service):
                return NOT_FOUND
            processed.add(service)

            outcome = self.suggest_for(service, signal)
            if isinstance(outcome, Cancelled):
                return outcome
            if isinstance(outcome, Found):
                aggregate.update(outcome.value)
            return NOT_FOUND

        outcome = walk_tree(handler_method.body, visit, signal)
        if isinstance(outcome, Cancelled):
            return outcome
        return Found(aggregate)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _from_own_doc(self, entity: SourceEntity, signal: CancellationSignal) -> Outcome:
        return self._own_identifier(entity)

    def _from_implementors(self, entity: SourceEntity, signal: CancellationSignal) -> Outcome:
        if not self._classifier.is_service_interface(entity):
            return NOT_FOUND
        implementors = collect_backend(
            "find_implementors", self._implementors.find_implementors, entity, True
        )
        for impl in implementors:
            if signal.is_cancelled():
                return cancellation_of(signal)
            if self._classifier.is_service_implementation(impl):
                outcome = self._own_identifier(impl)
                if isinstance(outcome, Found):
                    return outcome
        return NOT_FOUND

    def _from_interfaces(self, entity: SourceEntity, signal: CancellationSignal) -> Outcome:
        if not self._classifier.is_service_implementation(entity):
            return NOT_FOUND
        for iface in entity.interfaces:
            if self._classifier.is_service_interface(iface):
                outcome = self._own_identifier(iface)
                if isinstance(outcome, Found):
                    return outcome
        return NOT_FOUND

    def _from_interface_callers(self, entity: SourceEntity, signal: CancellationSignal) -> Outcome:
        if not self._classifier.is_service_implementation(entity):
            return NOT_FOUND
        for iface in entity.interfaces:
            if signal.is_cancelled():
                return cancellation_of(signal)
            if not self._classifier.is_service_interface(iface):
                continue
            outcome = self._first_caller_identifier(iface, signal)
            if not isinstance(outcome, NotFound):
                return outcome
        return NOT_FOUND

    def _from_direct_callers(self, entity: SourceEntity, signal: CancellationSignal) -> Outcome:
        return self._first_caller_identifier(entity, signal)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _own_identifier(entity: SourceEntity) -> Outcome:
        identifier = extract_identifier(entity.doc)
        if identifier is None:
            return NOT_FOUND
        return Found({entity.name: identifier})

    def _first_caller_identifier(self, target: SourceEntity, signal: CancellationSignal) -> Outcome:
        outcome = self._walker.find_controller_api_ids(target, signal)
        if not isinstance(outcome, Found):
            return outcome
        for method_name, identifier in outcome.value.items():
            return Found({method_name: identifier})
        return NOT_FOUND

    def _note_service_local(self, node: CodeNode) -> None:
        # Declared-but-unused service locals do not trigger resolution.
        if node.variable is None:
            return
        declared = self._validator.resolve_declared_type(node.variable)
        if declared is not None and self._classifier.is_service_entity(declared):
            logger.debug("Local %s declares service %s", node.variable.name, declared.name)
