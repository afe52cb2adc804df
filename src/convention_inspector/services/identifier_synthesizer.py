"""Canonical identifier templates for entities that have none yet.

``OrderController.submitOrder`` -> ``API-ORDER_SUBMITORDER``
``PaymentService.charge``      -> ``API-PAYMENT_CHARGE_Svc``
``PaymentServiceImpl.charge``  -> ``API-PAYMENT_CHARGE_SvcImpl``
"""
from __future__ import annotations

from src.convention_inspector.services.entity_classifier import EntityClassifier
from src.shared.constants import (
    IDENTIFIER_PREFIX,
    SERVICE_IMPL_SUFFIX,
    SERVICE_INTERFACE_SUFFIX,
    UNKNOWN_ABBREVIATION,
)
from src.shared.models.source import SourceEntity, SourceMethod
from src.shared.utils import remove_words


class IdentifierSynthesizer:
    """Builds identifier templates from an entity's name and role."""

    def __init__(self, classifier: EntityClassifier) -> None:
        self._classifier = classifier

    def generate_identifier_template(self, method: SourceMethod) -> str:
        abbreviation, suffix = self._abbreviate(method.owner)
        template = f"{IDENTIFIER_PREFIX}{abbreviation}_{method.name.upper()}"
        if suffix:
            template += f"_{suffix}"
        return template

    def generate_class_identifier_template(self, entity: SourceEntity) -> str:
        abbreviation, suffix = self._abbreviate(entity)
        template = f"{IDENTIFIER_PREFIX}{abbreviation}"
        if suffix:
            template += f"_{suffix}"
        return template

    def _abbreviate(self, owner: SourceEntity | None) -> tuple[str, str]:
        """Return ``(ABBREVIATION, suffix)`` for an owning entity."""
        if owner is None:
            return UNKNOWN_ABBREVIATION, ""

        if self._classifier.is_service_interface(owner):
            abbreviation = remove_words(owner.name, "service").upper()
            suffix = SERVICE_INTERFACE_SUFFIX
        elif self._classifier.has_service_marker(owner):
            abbreviation = remove_words(owner.name, "service", "impl").upper()
            suffix = SERVICE_IMPL_SUFFIX
        elif self._classifier.is_web_handler(owner):
            abbreviation = remove_words(owner.name, "controller", "handler").upper()
            suffix = ""
        else:
            abbreviation = owner.name.upper()
            suffix = ""

        return abbreviation or UNKNOWN_ABBREVIATION, suffix
