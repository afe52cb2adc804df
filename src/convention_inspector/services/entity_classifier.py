"""Architectural role classification of source entities.

Each predicate applies its rules in priority order and the first rule
that matches decides; later rules are never consulted.
"""
from __future__ import annotations

from src.shared.config import InspectorConfig
from src.shared.models.inspection import RoleClassification
from src.shared.models.source import (
    EntityKind,
    SourceEntity,
    SourceMethod,
    SourceVariable,
    VariableKind,
    simple_name,
)

_HANDLER_NAME_SUFFIXES = ("controller", "handler")
_HANDLER_PACKAGE_SEGMENTS = {"controller"}
_SERVICE_NAME_SUFFIXES = ("service", "svc")
_SERVICE_PACKAGE_SEGMENTS = {"service", "svc"}
_IMPL_NAME_SUFFIX = "impl"


class EntityClassifier:
    """Decides whether an entity is a web handler, a service interface or a
    service implementation.

    Marker sets come from :class:`~src.shared.config.InspectorConfig`; the
    defaults are the Spring stereotypes.
    """

    def __init__(self, config: InspectorConfig | None = None) -> None:
        config = config if config is not None else InspectorConfig()
        self._handler_markers = list(config.handler_markers)
        self._service_markers = list(config.service_markers)
        self._injection_markers = list(config.injection_markers)
        self._component_markers = list(config.component_markers)
        self._api_marker_suffix = config.api_marker_suffix

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def is_web_handler(self, entity: SourceEntity | None) -> bool:
        if entity is None or not entity.is_concrete_type:
            return False
        if self._has_any_marker(entity, self._handler_markers):
            return True
        if entity.name.lower().endswith(_HANDLER_NAME_SUFFIXES):
            return True
        return self._in_package(entity, _HANDLER_PACKAGE_SEGMENTS)

    def is_service_interface(self, entity: SourceEntity | None) -> bool:
        if entity is None or not entity.is_interface:
            return False
        if entity.name.lower().endswith(_SERVICE_NAME_SUFFIXES):
            return True
        return self._in_package(entity, _SERVICE_PACKAGE_SEGMENTS)

    def is_service_implementation(self, entity: SourceEntity | None) -> bool:
        if entity is None or not entity.is_concrete_type:
            return False
        if self.has_service_marker(entity):
            return True
        if entity.name.lower().endswith(_IMPL_NAME_SUFFIX):
            return any(self.is_service_interface(iface) for iface in entity.interfaces)
        return False

    def is_service_entity(self, entity: SourceEntity | None) -> bool:
        return self.is_service_interface(entity) or self.is_service_implementation(entity)

    def classify(self, entity: SourceEntity) -> RoleClassification:
        return RoleClassification(
            is_web_handler=self.is_web_handler(entity),
            is_service_interface=self.is_service_interface(entity),
            is_service_implementation=self.is_service_implementation(entity),
        )

    def has_service_marker(self, entity: SourceEntity) -> bool:
        return self._has_any_marker(entity, self._service_markers)

    # ------------------------------------------------------------------
    # Methods and fields
    # ------------------------------------------------------------------

    def is_api_method(self, method: SourceMethod | None) -> bool:
        """True when the method carries a request-mapping marker
        (``@GetMapping``, ``@RequestMapping``, ...)."""
        if method is None:
            return False
        return any(
            simple_name(marker).endswith(self._api_marker_suffix)
            for marker in method.markers
        )

    def is_likely_injected_field(self, variable: SourceVariable) -> bool:
        """True for fields that a DI container probably populates: explicitly
        injected ones, or ``final`` fields of a component class (constructor
        injection)."""
        if variable.kind != VariableKind.FIELD:
            return False
        owner = variable.owner
        if owner is None or owner.is_interface or owner.kind == EntityKind.ANNOTATION:
            return False
        if any(variable.has_marker(marker) for marker in self._injection_markers):
            return True
        if "final" in variable.modifiers and "static" not in variable.modifiers:
            return self._has_any_marker(owner, self._component_markers)
        return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _has_any_marker(entity: SourceEntity, markers: list[str]) -> bool:
        return any(entity.has_marker(marker) for marker in markers)

    @staticmethod
    def _in_package(entity: SourceEntity, segments: set[str]) -> bool:
        return any(seg.lower() in segments for seg in entity.package_segments)
