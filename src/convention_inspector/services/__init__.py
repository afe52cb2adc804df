"""Identifier association, suggestion and convention-checking services."""

from src.convention_inspector.services.cancellation import CancellationToken
from src.convention_inspector.services.entity_classifier import EntityClassifier
from src.convention_inspector.services.identifier_synthesizer import IdentifierSynthesizer
from src.convention_inspector.services.usage_validator import UsageValidator
from src.convention_inspector.services.reference_walker import ReferenceGraphWalker
from src.convention_inspector.services.suggestion_resolver import SuggestionResolver
from src.convention_inspector.services.engine import IdentifierEngine
from src.convention_inspector.services.convention_checker import ConventionChecker

__all__ = [
    "CancellationToken",
    "EntityClassifier",
    "IdentifierSynthesizer",
    "UsageValidator",
    "ReferenceGraphWalker",
    "SuggestionResolver",
    "IdentifierEngine",
    "ConventionChecker",
]
