"""Tests for src.convention_inspector.services.identifier_synthesizer.

Covers the abbreviation rules for method and class templates: handlers,
service interfaces, service-marked classes, plain classes and detached
methods.
"""
from __future__ import annotations

import pytest

from src.convention_inspector.services.entity_classifier import EntityClassifier
from src.convention_inspector.services.identifier_synthesizer import IdentifierSynthesizer
from src.shared.models.source import EntityKind, SourceMethod
from tests.conftest import make_entity, make_method


@pytest.fixture
def synthesizer(inspector_config) -> IdentifierSynthesizer:
    return IdentifierSynthesizer(EntityClassifier(inspector_config))


class TestGenerateIdentifierTemplate:
    def test_controller_method(self, synthesizer):
        owner = make_entity("OrderController", markers=["RestController"])
        method = make_method(owner, "submitOrder")
        assert synthesizer.generate_identifier_template(method) == "API-ORDER_SUBMITORDER"

    def test_handler_name_without_marker(self, synthesizer):
        method = make_method(make_entity("LoginHandler"), "login")
        assert synthesizer.generate_identifier_template(method) == "API-LOGIN_LOGIN"

    def test_service_interface_method(self, synthesizer):
        owner = make_entity("PaymentService", kind=EntityKind.INTERFACE)
        method = make_method(owner, "charge")
        assert synthesizer.generate_identifier_template(method) == "API-PAYMENT_CHARGE_Svc"

    def test_service_marked_impl_method(self, synthesizer):
        owner = make_entity("PaymentServiceImpl", markers=["Service"])
        method = make_method(owner, "charge")
        assert synthesizer.generate_identifier_template(method) == "API-PAYMENT_CHARGE_SvcImpl"

    def test_plain_class_method(self, synthesizer):
        method = make_method(make_entity("Money", package="com.acme.domain"), "add")
        assert synthesizer.generate_identifier_template(method) == "API-MONEY_ADD"

    def test_detached_method(self, synthesizer):
        method = SourceMethod(name="orphan")
        assert synthesizer.generate_identifier_template(method) == "API-UNKNOWN_ORPHAN"

    def test_empty_abbreviation_falls_back(self, synthesizer):
        owner = make_entity("Service", kind=EntityKind.INTERFACE)
        method = make_method(owner, "run")
        assert synthesizer.generate_identifier_template(method) == "API-UNKNOWN_RUN_Svc"

    def test_removal_is_case_insensitive(self, synthesizer):
        owner = make_entity("IMPLServiceAccountSERVICEImpl", markers=["Service"])
        method = make_method(owner, "open")
        assert synthesizer.generate_identifier_template(method) == "API-ACCOUNT_OPEN_SvcImpl"


class TestGenerateClassIdentifierTemplate:
    def test_service_interface(self, synthesizer):
        entity = make_entity("PaymentService", kind=EntityKind.INTERFACE)
        assert synthesizer.generate_class_identifier_template(entity) == "API-PAYMENT_Svc"

    def test_service_impl(self, synthesizer):
        entity = make_entity("PaymentServiceImpl", markers=["Service"])
        assert synthesizer.generate_class_identifier_template(entity) == "API-PAYMENT_SvcImpl"

    def test_controller(self, synthesizer):
        entity = make_entity("OrderController")
        assert synthesizer.generate_class_identifier_template(entity) == "API-ORDER"
