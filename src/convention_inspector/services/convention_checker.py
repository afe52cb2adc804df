"""Convention rules run over one parsed entity.

Each ``check_*`` method returns zero or more :class:`ProblemInfo` records.
Rules that need an identifier consult the engine for an existing identifier
to borrow and fall back to a synthesized template when there is none.
"""
from __future__ import annotations

import logging
import re

from src.convention_inspector.services.collaborators import CancellationSignal
from src.convention_inspector.services.engine import IdentifierEngine
from src.shared.constants import EXEMPT_SERVICE_METHODS, TEMPLATE_DESCRIPTION_PLACEHOLDER
from src.shared.errors import QueryCancelledError
from src.shared.models.inspection import (
    ProblemInfo,
    ProblemRule,
    ProblemSeverity,
    SuggestionResult,
)
from src.shared.models.source import SourceEntity, SourceMethod, SourceVariable

logger = logging.getLogger(__name__)

_RE_CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z0-9]*$")


class ConventionChecker:
    """Runs every convention rule against entities of one source index."""

    def __init__(self, engine: IdentifierEngine) -> None:
        self._engine = engine
        self._classifier = engine.classifier

    # -----------------------------------------------------------------------
    # Public interface
    # -----------------------------------------------------------------------

    def inspect_entity(
        self, entity: SourceEntity, signal: CancellationSignal | None = None
    ) -> list[ProblemInfo]:
        """Run all rules over ``entity``, its methods and its fields.

        Raises:
            QueryCancelledError: If a suggestion query was cancelled.
        """
        problems: list[ProblemInfo] = []
        problems.extend(self.check_service_class_doc(entity, signal))
        for method in entity.methods:
            problems.extend(self.check_api_method_doc(method, signal))
            problems.extend(self.check_service_method_doc(method))
            problems.extend(self.check_method_naming(method))
        for variable in entity.fields:
            problems.extend(self.check_injected_field_doc(variable))
        return problems

    def check_api_method_doc(
        self, method: SourceMethod, signal: CancellationSignal | None = None
    ) -> list[ProblemInfo]:
        if not self._classifier.is_api_method(method):
            return []
        if self._engine.has_valid_identifier(method.doc):
            return []

        result = self._engine.suggest_identifiers_used_by(method, signal)
        description = f"API method '{method.name}' has no message ID in its Javadoc"
        if result.suggestions:
            description += f"; possible sources: {', '.join(result.suggestions)}"
        return [
            self._problem(
                ProblemRule.API_METHOD_DOC,
                description,
                method.owner,
                method.name,
                method.line,
                result,
                self._engine.generate_identifier_template(method),
            )
        ]

    def check_service_method_doc(self, method: SourceMethod) -> list[ProblemInfo]:
        owner = method.owner
        if owner is None or not self._classifier.is_service_entity(owner):
            return []
        if method.is_constructor or method.name in EXEMPT_SERVICE_METHODS:
            return []
        if "static" in method.modifiers or "private" in method.modifiers:
            return []
        if self._engine.has_valid_identifier(method.doc):
            return []

        return [
            ProblemInfo(
                rule=ProblemRule.SERVICE_METHOD_DOC,
                description=f"Service method '{method.name}' has no message ID in its Javadoc",
                element_name=method.qualified_name,
                file_path=owner.file_path,
                line=method.line,
                template=_with_placeholder(self._engine.generate_identifier_template(method)),
            )
        ]

    def check_service_class_doc(
        self, entity: SourceEntity, signal: CancellationSignal | None = None
    ) -> list[ProblemInfo]:
        if not self._classifier.is_service_entity(entity):
            return []
        if self._engine.has_valid_identifier(entity.doc):
            return []

        result = self._engine.suggest_identifiers_for(entity, signal)
        return [
            self._problem(
                ProblemRule.SERVICE_CLASS_DOC,
                f"Service '{entity.name}' has no message ID in its Javadoc",
                entity,
                entity.name,
                entity.line,
                result,
                self._engine.generate_class_identifier_template(entity),
            )
        ]

    def check_injected_field_doc(self, variable: SourceVariable) -> list[ProblemInfo]:
        if not self._classifier.is_likely_injected_field(variable):
            return []
        if variable.doc and variable.doc.strip():
            return []
        owner = variable.owner
        return [
            ProblemInfo(
                rule=ProblemRule.INJECTED_FIELD_DOC,
                severity=ProblemSeverity.WEAK_WARNING,
                description=f"Injected field '{variable.name}' has no Javadoc",
                element_name=f"{owner.qualified_name}.{variable.name}" if owner else variable.name,
                file_path=owner.file_path if owner else None,
                line=variable.line,
            )
        ]

    def check_method_naming(self, method: SourceMethod) -> list[ProblemInfo]:
        if method.is_constructor or _RE_CAMEL_CASE.match(method.name):
            return []
        owner = method.owner
        return [
            ProblemInfo(
                rule=ProblemRule.METHOD_NAMING,
                description=f"Method name '{method.name}' is not lower camelCase",
                element_name=method.qualified_name,
                file_path=owner.file_path if owner else None,
                line=method.line,
            )
        ]

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _problem(
        rule: ProblemRule,
        description: str,
        owner: SourceEntity | None,
        element: str,
        line: int,
        result: SuggestionResult,
        template: str,
    ) -> ProblemInfo:
        if result.is_cancelled:
            raise QueryCancelledError(
                f"Suggestion query for {element} cancelled: {result.detail or 'cancelled'}"
            )
        if not result.is_ok:
            logger.warning("No suggestion for %s: %s", element, result.detail)

        element_name = element
        if owner is not None and element != owner.name:
            element_name = f"{owner.qualified_name}#{element}"
        elif owner is not None:
            element_name = owner.qualified_name

        suggestion = result.first()
        if suggestion is not None:
            return ProblemInfo(
                rule=rule,
                description=description,
                element_name=element_name,
                file_path=owner.file_path if owner else None,
                line=line,
                suggestion_source=suggestion.source_name,
                suggested_value=suggestion.identifier_text,
            )
        return ProblemInfo(
            rule=rule,
            description=description,
            element_name=element_name,
            file_path=owner.file_path if owner else None,
            line=line,
            template=_with_placeholder(template),
        )


def _with_placeholder(template: str) -> str:
    return f"{template} {TEMPLATE_DESCRIPTION_PLACEHOLDER}"
