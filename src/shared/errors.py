"""Custom exception classes for the convention inspector."""
from __future__ import annotations


class InspectorError(Exception):
    """Base application error."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class ParsingError(InspectorError):
    """A source file could not be read or parsed."""

    def __init__(self, detail: str = "Parsing error") -> None:
        super().__init__(detail=detail)


class ConfigurationError(InspectorError):
    """Invalid or unreadable configuration."""

    def __init__(self, detail: str = "Configuration error") -> None:
        super().__init__(detail=detail)


class SearchBackendError(InspectorError):
    """An external search collaborator (index, implementor search) failed."""

    def __init__(self, detail: str = "Search backend failure", operation: str = "") -> None:
        self.operation = operation
        super().__init__(detail=detail)


class QueryCancelledError(InspectorError):
    """A query was aborted because its cancellation signal tripped."""

    def __init__(self, detail: str = "Query cancelled") -> None:
        super().__init__(detail=detail)
