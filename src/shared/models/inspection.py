"""Convention inspector Pydantic v2 result models."""
from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from src.shared.utils import now_iso

# segment(-segment)+ whitespace description; segments are alphanumeric.
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9]+(?:-[A-Za-z0-9]+)+\s+.+")

SuggestionMap = dict[str, str]


class QueryStatus(str, Enum):
    """Terminal outcome of a suggestion query."""
    OK = "ok"
    CANCELLED = "cancelled"
    BACKEND_FAILURE = "backend_failure"


class ProblemSeverity(str, Enum):
    """How loudly a problem should be reported."""
    WARNING = "warning"
    WEAK_WARNING = "weak_warning"


class ProblemRule(str, Enum):
    """Convention rules the checker enforces."""
    API_METHOD_DOC = "api_method_doc"
    SERVICE_METHOD_DOC = "service_method_doc"
    SERVICE_CLASS_DOC = "service_class_doc"
    INJECTED_FIELD_DOC = "injected_field_doc"
    METHOD_NAMING = "method_naming"


class RoleClassification(BaseModel):
    """Architectural roles of one entity, computed per query."""
    is_web_handler: bool = False
    is_service_interface: bool = False
    is_service_implementation: bool = False

    model_config = {"frozen": True}

    @property
    def is_service_entity(self) -> bool:
        return self.is_service_interface or self.is_service_implementation


class Identifier(BaseModel):
    """A message identifier: a hyphenated tag followed by a description."""
    tag: str = Field(..., pattern=r"^[A-Za-z0-9]+(?:-[A-Za-z0-9]+)+$")
    description: str = Field(..., min_length=1)

    model_config = {"frozen": True}

    @property
    def text(self) -> str:
        return f"{self.tag} {self.description}"


class Suggestion(BaseModel):
    """An existing identifier borrowed from a named entity or method."""
    source_name: str
    identifier_text: str

    model_config = {"frozen": True}

    @field_validator("identifier_text")
    @classmethod
    def must_be_identifier(cls, value: str) -> str:
        if not IDENTIFIER_PATTERN.search(value):
            raise ValueError(f"not a valid identifier: {value!r}")
        return value


class SuggestionResult(BaseModel):
    """Outcome of one suggestion query.

    ``suggestions`` is only ever populated when ``status`` is OK, so a
    cancelled or failed query can never be mistaken for "nothing found".
    """
    status: QueryStatus = QueryStatus.OK
    suggestions: SuggestionMap = Field(default_factory=dict)
    detail: str | None = None

    @model_validator(mode="after")
    def check_consistency(self) -> "SuggestionResult":
        if self.status != QueryStatus.OK and self.suggestions:
            raise ValueError("only successful queries may carry suggestions")
        for source, text in self.suggestions.items():
            Suggestion(source_name=source, identifier_text=text)
        return self

    @classmethod
    def found(cls, suggestions: SuggestionMap) -> "SuggestionResult":
        return cls(status=QueryStatus.OK, suggestions=dict(suggestions))

    @classmethod
    def cancelled(cls, detail: str = "") -> "SuggestionResult":
        return cls(status=QueryStatus.CANCELLED, detail=detail or None)

    @classmethod
    def backend_failure(cls, detail: str) -> "SuggestionResult":
        return cls(status=QueryStatus.BACKEND_FAILURE, detail=detail)

    @property
    def is_ok(self) -> bool:
        return self.status == QueryStatus.OK

    @property
    def is_cancelled(self) -> bool:
        return self.status == QueryStatus.CANCELLED

    def as_suggestions(self) -> list[Suggestion]:
        return [
            Suggestion(source_name=source, identifier_text=text)
            for source, text in self.suggestions.items()
        ]

    def first(self) -> Suggestion | None:
        for suggestion in self.as_suggestions():
            return suggestion
        return None


class ProblemInfo(BaseModel):
    """One convention violation found by the checker."""
    rule: ProblemRule
    severity: ProblemSeverity = ProblemSeverity.WARNING
    description: str
    element_name: str
    file_path: str | None = None
    line: int = Field(default=1, ge=1)
    suggestion_source: str | None = None
    suggested_value: str | None = None
    template: str | None = None

    model_config = {"from_attributes": True}

    @property
    def has_suggestion(self) -> bool:
        return self.suggestion_source is not None and self.suggested_value is not None


class ScanReport(BaseModel):
    """Result of a batch scan over a source tree."""
    root: str
    files_scanned: int = 0
    files_skipped: list[str] = Field(default_factory=list)
    entities_checked: int = 0
    problems: list[ProblemInfo] = Field(default_factory=list)
    status: QueryStatus = QueryStatus.OK
    generated_at: str = Field(default_factory=now_iso)

    @property
    def has_problems(self) -> bool:
        return bool(self.problems)
