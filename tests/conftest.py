"""Shared test fixtures for the convention inspector test suite."""
from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Iterable

import pytest

from src.convention_inspector.services.collaborators import ReferenceSite, SearchScope
from src.shared.config import InspectorConfig
from src.shared.models.source import (
    CodeNode,
    EntityKind,
    NodeKind,
    SourceEntity,
    SourceMethod,
    SourceVariable,
    VariableKind,
)


# ---------------------------------------------------------------------------
# Source model builders
# ---------------------------------------------------------------------------


def make_entity(
    name: str,
    kind: EntityKind = EntityKind.CLASS,
    package: str = "com.acme.app",
    markers: Iterable[str] = (),
    doc: str | None = None,
    interfaces: Iterable[SourceEntity] = (),
    superclass: SourceEntity | None = None,
) -> SourceEntity:
    return SourceEntity(
        name=name,
        qualified_name=f"{package}.{name}" if package else name,
        kind=kind,
        markers=frozenset(markers),
        package=package,
        doc=doc,
        interfaces=list(interfaces),
        superclass=superclass,
        file_path=f"{name}.java",
    )


def make_method(
    owner: SourceEntity | None,
    name: str,
    doc: str | None = None,
    markers: Iterable[str] = (),
    modifiers: Iterable[str] = ("public",),
    body: CodeNode | None = None,
    is_constructor: bool = False,
) -> SourceMethod:
    method = SourceMethod(
        name=name,
        doc=doc,
        markers=frozenset(markers),
        modifiers=frozenset(modifiers),
        body=body,
        is_constructor=is_constructor,
    )
    if owner is not None:
        owner.add_method(method)
    return method


def make_field(
    owner: SourceEntity,
    name: str,
    type_name: str,
    markers: Iterable[str] = (),
    modifiers: Iterable[str] = ("private",),
    doc: str | None = None,
) -> SourceVariable:
    return owner.add_field(
        SourceVariable(
            name=name,
            type_name=type_name,
            kind=VariableKind.FIELD,
            markers=frozenset(markers),
            modifiers=frozenset(modifiers),
            doc=doc,
        )
    )


def name_node(name: str, variable: SourceVariable | None = None) -> CodeNode:
    return CodeNode(NodeKind.NAME, name=name, variable=variable)


def call(method_name: str, receiver: CodeNode | None = None, *args: CodeNode) -> CodeNode:
    children = ([receiver] if receiver is not None else []) + list(args)
    return CodeNode(NodeKind.CALL, children, name=method_name, receiver=receiver)


def block(*children: CodeNode) -> CodeNode:
    return CodeNode(NodeKind.BLOCK, list(children))


def local(variable: SourceVariable, value: CodeNode | None = None) -> CodeNode:
    return CodeNode(
        NodeKind.LOCAL_DECLARATION,
        [value] if value is not None else [],
        name=variable.name,
        variable=variable,
        type_name=variable.type_name,
    )


# ---------------------------------------------------------------------------
# Collaborator fake
# ---------------------------------------------------------------------------


class FakeIndex:
    """Hand-wired reference index, implementor search and type resolver."""

    def __init__(self) -> None:
        self.references: dict[object, list[ReferenceSite]] = defaultdict(list)
        self.implementors: dict[SourceEntity, list[SourceEntity]] = {}
        self.static_types: dict[CodeNode, SourceEntity] = {}
        self.variable_types: dict[SourceVariable, SourceEntity] = {}

    # wiring helpers

    def add_method_site(self, target: object, method: SourceMethod) -> None:
        self.references[target].append(ReferenceSite(method=method, entity=method.owner))

    def add_variable_site(self, target: object, variable: SourceVariable) -> None:
        self.references[target].append(ReferenceSite(variable=variable, entity=variable.owner))

    # ReferenceIndex

    def use_scope(self, element: object) -> SearchScope:
        return SearchScope.project()

    def find_references(self, element: object, scope: SearchScope) -> list[ReferenceSite]:
        return list(self.references.get(element, []))

    # ImplementorSearch

    def find_implementors(self, entity: SourceEntity, transitive: bool = True) -> list[SourceEntity]:
        return list(self.implementors.get(entity, []))

    # TypeResolver

    def resolve_static_type(self, node: CodeNode) -> SourceEntity | None:
        return self.static_types.get(node)

    def resolve_variable_type(self, variable: SourceVariable) -> SourceEntity | None:
        return self.variable_types.get(variable)


@pytest.fixture
def fake_index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def inspector_config(monkeypatch: pytest.MonkeyPatch) -> InspectorConfig:
    """Default configuration, isolated from INSPECTOR_* environment variables."""
    for var in (
        "INSPECTOR_HANDLER_MARKERS",
        "INSPECTOR_SERVICE_MARKERS",
        "INSPECTOR_INJECTION_MARKERS",
        "INSPECTOR_COMPONENT_MARKERS",
        "INSPECTOR_API_MARKER_SUFFIX",
        "INSPECTOR_QUERY_TIMEOUT",
        "INSPECTOR_SOURCE_GLOB",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    return InspectorConfig()


# ---------------------------------------------------------------------------
# Sample Java project on disk
# ---------------------------------------------------------------------------

PAYMENT_SERVICE_JAVA = """\
package com.acme.pay.service;

public interface PaymentService {
    void charge(long amount);
}
"""

PAYMENT_SERVICE_IMPL_JAVA = """\
package com.acme.pay.service.impl;

import com.acme.pay.service.PaymentService;
import org.springframework.stereotype.Service;

@Service
public class PaymentServiceImpl implements PaymentService {
    public void charge(long amount) {
    }
}
"""

PAYMENT_CONTROLLER_JAVA = """\
package com.acme.pay.controller;

import com.acme.pay.service.PaymentService;
import org.springframework.beans.factory.annotation.Autowired;
import org.springframework.web.bind.annotation.PostMapping;
import org.springframework.web.bind.annotation.RestController;

@RestController
public class PaymentController {

    /** Payment service. */
    @Autowired
    private PaymentService paymentService;

    /**
     * PAY-A-001 process payment
     */
    @PostMapping("/pay")
    public void pay(long amount) {
        paymentService.charge(amount);
    }

    @PostMapping("/refund")
    public void refund(long amount) {
        this.paymentService.charge(-amount);
    }
}
"""


@pytest.fixture
def java_project(tmp_path: Path) -> Path:
    """A three-file Spring-style project under ``tmp_path / "src"``."""
    root = tmp_path / "src"
    files = {
        "com/acme/pay/service/PaymentService.java": PAYMENT_SERVICE_JAVA,
        "com/acme/pay/service/impl/PaymentServiceImpl.java": PAYMENT_SERVICE_IMPL_JAVA,
        "com/acme/pay/controller/PaymentController.java": PAYMENT_CONTROLLER_JAVA,
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root
