"""Finds the methods that genuinely use a target entity.

Walks the reference graph one hop directly (mentions inside methods) and
one hop through variables (fields typed as the target, then every method
that touches such a field).  Every candidate method is validated with the
:class:`~src.convention_inspector.services.usage_validator.UsageValidator`
and checked at most once per search.
"""
from __future__ import annotations

import logging

from src.convention_inspector.services.collaborators import (
    CancellationSignal,
    ReferenceIndex,
    ReferenceSite,
    collect_backend,
    call_backend,
    cancellation_of,
)
from src.convention_inspector.services.identifier_matcher import extract_identifier
from src.convention_inspector.services.outcomes import Cancelled, Found, Outcome
from src.convention_inspector.services.usage_validator import UsageValidator
from src.shared.models.inspection import SuggestionMap
from src.shared.models.source import SourceEntity, SourceMethod, SourceVariable

logger = logging.getLogger(__name__)


class ReferenceGraphWalker:
    """Reference search backed by a :class:`ReferenceIndex` collaborator."""

    def __init__(self, index: ReferenceIndex, validator: UsageValidator) -> None:
        self._index = index
        self._validator = validator

    def find_referencing_methods(
        self, target: SourceEntity, signal: CancellationSignal
    ) -> Outcome:
        """Found(list[SourceMethod]) of validated users of ``target``, in
        order of first acceptance, or Cancelled.  An empty list is still
        Found: "searched, nobody uses it"."""
        visited: set[SourceMethod] = set()
        accepted: list[SourceMethod] = []

        sites = self._references_of(target)
        for site in sites:
            if signal.is_cancelled():
                return cancellation_of(signal)

            if site.method is not None:
                outcome = self._check(site.method, target, visited, accepted, signal)
                if isinstance(outcome, Cancelled):
                    return outcome
            elif site.variable is not None:
                outcome = self._check_variable_users(site.variable, target, visited, accepted, signal)
                if isinstance(outcome, Cancelled):
                    return outcome
            else:
                logger.debug("Skipping unresolved reference to %s at line %d", target.qualified_name, site.line)

        return Found(accepted)

    def find_controller_api_ids(
        self, target: SourceEntity, signal: CancellationSignal
    ) -> Outcome:
        """Found(SuggestionMap) mapping each validated user method's name to
        the identifier in its doc; methods without one are skipped."""
        outcome = self.find_referencing_methods(target, signal)
        if not isinstance(outcome, Found):
            return outcome

        result: SuggestionMap = {}
        for method in outcome.value:
            identifier = extract_identifier(method.doc)
            if identifier is None:
                continue
            result[method.name] = identifier
        return Found(result)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _references_of(self, element: SourceEntity | SourceVariable) -> list[ReferenceSite]:
        scope = call_backend("use_scope", self._index.use_scope, element)
        return collect_backend("find_references", self._index.find_references, element, scope)

    def _check_variable_users(
        self,
        variable: SourceVariable,
        target: SourceEntity,
        visited: set[SourceMethod],
        accepted: list[SourceMethod],
        signal: CancellationSignal,
    ) -> Outcome | None:
        for var_site in self._references_of(variable):
            if signal.is_cancelled():
                return cancellation_of(signal)
            if var_site.method is None:
                logger.debug("Skipping reference to %s outside any method", variable.name)
                continue
            outcome = self._check(var_site.method, target, visited, accepted, signal)
            if isinstance(outcome, Cancelled):
                return outcome
        return None

    def _check(
        self,
        method: SourceMethod,
        target: SourceEntity,
        visited: set[SourceMethod],
        accepted: list[SourceMethod],
        signal: CancellationSignal,
    ) -> Outcome | None:
        if method in visited:
            return None
        visited.add(method)
        outcome = self._validator.body_uses_entity(method, target, signal)
        if isinstance(outcome, Found):
            accepted.append(method)
        return outcome
