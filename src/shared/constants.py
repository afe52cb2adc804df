"""Shared constants used across the inspector."""
from __future__ import annotations

# Application version
VERSION: str = "1.0.0"

# Service name used for structured logging
INSPECTOR_SERVICE_NAME: str = "convention-inspector"

# Identifier templates
IDENTIFIER_PREFIX: str = "API-"
UNKNOWN_ABBREVIATION: str = "UNKNOWN"
SERVICE_INTERFACE_SUFFIX: str = "Svc"
SERVICE_IMPL_SUFFIX: str = "SvcImpl"
TEMPLATE_DESCRIPTION_PLACEHOLDER: str = "TODO description"

# Default declarative markers (qualified names; simple names match too)
DEFAULT_HANDLER_MARKERS: list[str] = [
    "org.springframework.stereotype.Controller",
    "org.springframework.web.bind.annotation.RestController",
]
DEFAULT_SERVICE_MARKERS: list[str] = [
    "org.springframework.stereotype.Service",
]
DEFAULT_INJECTION_MARKERS: list[str] = [
    "org.springframework.beans.factory.annotation.Autowired",
    "org.springframework.beans.factory.annotation.Qualifier",
    "javax.inject.Inject",
    "jakarta.inject.Inject",
    "javax.annotation.Resource",
    "jakarta.annotation.Resource",
]
DEFAULT_COMPONENT_MARKERS: list[str] = [
    "org.springframework.stereotype.Service",
    "org.springframework.stereotype.Component",
    "org.springframework.stereotype.Repository",
    "org.springframework.stereotype.Controller",
    "org.springframework.web.bind.annotation.RestController",
    "org.springframework.context.annotation.Configuration",
    "lombok.RequiredArgsConstructor",
]
DEFAULT_API_MARKER_SUFFIX: str = "Mapping"

# Object methods never required to carry a message ID
EXEMPT_SERVICE_METHODS: frozenset[str] = frozenset(
    {"toString", "equals", "hashCode", "clone"}
)
