"""Identifier association & suggestion engine: the public query surface.

:class:`IdentifierEngine` wires the classifier, synthesizer, usage
validator, reference walker and suggestion resolver around injected
collaborators and turns their step outcomes into terminal
:class:`~src.shared.models.inspection.SuggestionResult` values:

* ``ok``              -- a complete map (possibly empty)
* ``cancelled``       -- the caller's signal tripped; never a partial map
* ``backend_failure`` -- a collaborator raised; logged, empty map

The engine keeps no per-query state, so one instance may serve concurrent
queries against a snapshot the caller keeps stable.
"""
from __future__ import annotations

import logging
from typing import Callable

from src.convention_inspector.services.cancellation import NEVER_CANCELLED, CancellationToken
from src.convention_inspector.services.collaborators import (
    CancellationSignal,
    ImplementorSearch,
    ReferenceIndex,
    SourceBackend,
    TypeResolver,
)
from src.convention_inspector.services.entity_classifier import EntityClassifier
from src.convention_inspector.services.identifier_matcher import (
    extract_identifier,
    has_valid_identifier,
)
from src.convention_inspector.services.identifier_synthesizer import IdentifierSynthesizer
from src.convention_inspector.services.outcomes import Cancelled, Found, Outcome
from src.convention_inspector.services.reference_walker import ReferenceGraphWalker
from src.convention_inspector.services.suggestion_resolver import SuggestionResolver
from src.convention_inspector.services.usage_validator import UsageValidator
from src.shared.config import InspectorConfig
from src.shared.errors import SearchBackendError
from src.shared.logging import query_context
from src.shared.models.inspection import (
    IDENTIFIER_PATTERN,
    RoleClassification,
    SuggestionMap,
    SuggestionResult,
)
from src.shared.models.source import SourceEntity, SourceMethod

logger = logging.getLogger(__name__)


class IdentifierEngine:
    """Stateless facade over the identifier services."""

    def __init__(
        self,
        index: ReferenceIndex,
        implementors: ImplementorSearch,
        resolver: TypeResolver,
        config: InspectorConfig | None = None,
    ) -> None:
        self.config = config if config is not None else InspectorConfig()
        self.classifier = EntityClassifier(self.config)
        self.synthesizer = IdentifierSynthesizer(self.classifier)
        self.validator = UsageValidator(resolver)
        self.walker = ReferenceGraphWalker(index, self.validator)
        self.resolver = SuggestionResolver(
            self.classifier, implementors, self.walker, self.validator
        )

    @classmethod
    def for_index(
        cls, index: SourceBackend, config: InspectorConfig | None = None
    ) -> IdentifierEngine:
        """Build an engine over one object that implements all three
        collaborator protocols (e.g. ``SourceIndex``)."""
        return cls(index, index, index, config)

    # ------------------------------------------------------------------
    # Cheap, index-free queries
    # ------------------------------------------------------------------

    def classify(self, entity: SourceEntity) -> RoleClassification:
        return self.classifier.classify(entity)

    @staticmethod
    def has_valid_identifier(doc: str | None) -> bool:
        return has_valid_identifier(doc)

    @staticmethod
    def extract_identifier(doc: str | None) -> str | None:
        return extract_identifier(doc)

    def generate_identifier_template(self, method: SourceMethod) -> str:
        return self.synthesizer.generate_identifier_template(method)

    def generate_class_identifier_template(self, entity: SourceEntity) -> str:
        return self.synthesizer.generate_class_identifier_template(entity)

    # ------------------------------------------------------------------
    # Index-backed queries
    # ------------------------------------------------------------------

    def suggest_identifiers_for(
        self, entity: SourceEntity, signal: CancellationSignal | None = None
    ) -> SuggestionResult:
        """Suggest one existing identifier for ``entity`` (0 or 1 entries)."""
        signal = self._signal_for(signal)
        with query_context():
            logger.debug("Resolving identifier suggestion for %s", entity.qualified_name)
            return self._run(
                f"suggest_identifiers_for({entity.qualified_name})",
                lambda: self.resolver.suggest_for(entity, signal),
            )

    def suggest_identifiers_used_by(
        self, handler_method: SourceMethod, signal: CancellationSignal | None = None
    ) -> SuggestionResult:
        """Suggest identifiers from every service ``handler_method`` calls."""
        signal = self._signal_for(signal)
        with query_context():
            logger.debug("Resolving service suggestions used by %s", handler_method.qualified_name)
            return self._run(
                f"suggest_identifiers_used_by({handler_method.qualified_name})",
                lambda: self.resolver.suggest_used_by(handler_method, signal),
            )

    def _signal_for(self, signal: CancellationSignal | None) -> CancellationSignal:
        if signal is not None:
            return signal
        if self.config.query_timeout is not None:
            return CancellationToken.with_timeout(self.config.query_timeout)
        return NEVER_CANCELLED

    @staticmethod
    def _run(query: str, step: Callable[[], Outcome]) -> SuggestionResult:
        try:
            outcome: Outcome = step()
        except SearchBackendError as exc:
            logger.warning("Search backend failed during %s: %s", query, exc.detail)
            return SuggestionResult.backend_failure(exc.detail)

        if isinstance(outcome, Cancelled):
            logger.info("Query %s cancelled: %s", query, outcome.reason)
            return SuggestionResult.cancelled(outcome.reason)
        if isinstance(outcome, Found):
            return SuggestionResult.found(_valid_only(query, outcome.value))
        return SuggestionResult.found({})


def _valid_only(query: str, suggestions: SuggestionMap) -> SuggestionMap:
    valid: SuggestionMap = {}
    for source, text in suggestions.items():
        if IDENTIFIER_PATTERN.search(text) is None:
            logger.warning("Dropping malformed identifier %r from %s during %s", text, source, query)
            continue
        valid[source] = text
    return valid
