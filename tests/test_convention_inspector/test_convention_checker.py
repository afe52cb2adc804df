"""Tests for src.convention_inspector.services.convention_checker.

Covers:
    - api_method_doc: documented methods pass, suggestion vs template
    - service_method_doc: visibility, static, constructors, Object methods,
      package-private and protected members
    - service_class_doc: suggestion from the fallback chain, template
    - injected_field_doc: weak warning for undocumented injected fields
    - method_naming: lower camelCase
    - cancellation raises QueryCancelledError
    - inspect_entity aggregation
"""
from __future__ import annotations

import pytest

from src.convention_inspector.parsers.java_parser import JavaParser
from src.convention_inspector.services.cancellation import CancellationToken
from src.convention_inspector.services.convention_checker import ConventionChecker
from src.convention_inspector.services.engine import IdentifierEngine
from src.convention_inspector.storage.source_index import SourceIndex
from src.shared.errors import QueryCancelledError
from src.shared.models.inspection import ProblemRule, ProblemSeverity
from src.shared.models.source import EntityKind
from tests.conftest import block, call, make_entity, make_field, make_method, name_node


@pytest.fixture
def checker(fake_index, inspector_config) -> ConventionChecker:
    return ConventionChecker(IdentifierEngine.for_index(fake_index, inspector_config))


def _service_interface(doc=None):
    return make_entity("PaymentService", kind=EntityKind.INTERFACE, package="com.acme.pay", doc=doc)


# ---------------------------------------------------------------------------
# api_method_doc
# ---------------------------------------------------------------------------


class TestApiMethodDoc:
    def test_documented_api_method_passes(self, checker):
        controller = make_entity("PaymentController")
        method = make_method(controller, "pay", doc="PAY-A-001 pay", markers=["PostMapping"])
        assert checker.check_api_method_doc(method) == []

    def test_non_api_method_ignored(self, checker):
        method = make_method(make_entity("PaymentController"), "helper")
        assert checker.check_api_method_doc(method) == []

    def test_suggestion_from_called_service(self, checker, fake_index):
        service = _service_interface(doc="PAY-S-001 payment service")
        receiver = name_node("paymentService")
        fake_index.static_types[receiver] = service
        controller = make_entity("PaymentController")
        method = make_method(
            controller, "refund", markers=["PostMapping"], body=block(call("charge", receiver))
        )

        [problem] = checker.check_api_method_doc(method)

        assert problem.rule == ProblemRule.API_METHOD_DOC
        assert problem.element_name == "com.acme.app.PaymentController#refund"
        assert problem.suggestion_source == "PaymentService"
        assert problem.suggested_value == "PAY-S-001 payment service"
        assert problem.template is None
        assert problem.description.endswith("possible sources: PaymentService")

    def test_description_lists_every_source(self, checker, fake_index):
        payments = _service_interface(doc="PAY-S-001 payment service")
        orders = make_entity("OrderService", kind=EntityKind.INTERFACE, doc="ORD-S-001 order service")
        pay_receiver, order_receiver = name_node("payments"), name_node("orders")
        fake_index.static_types[pay_receiver] = payments
        fake_index.static_types[order_receiver] = orders
        method = make_method(
            make_entity("CheckoutController"), "checkout", markers=["PostMapping"],
            body=block(call("charge", pay_receiver), call("place", order_receiver)),
        )

        [problem] = checker.check_api_method_doc(method)

        assert "possible sources: PaymentService, OrderService" in problem.description
        assert problem.suggestion_source == "PaymentService"

    def test_template_when_nothing_to_borrow(self, checker):
        controller = make_entity("OrderController")
        method = make_method(controller, "submitOrder", markers=["GetMapping"], body=block())

        [problem] = checker.check_api_method_doc(method)

        assert problem.has_suggestion is False
        assert problem.template == "API-ORDER_SUBMITORDER TODO description"
        assert "possible sources" not in problem.description

    def test_cancelled_query_raises(self, checker, fake_index):
        service = _service_interface(doc="PAY-S-001 payment service")
        receiver = name_node("paymentService")
        fake_index.static_types[receiver] = service
        method = make_method(
            make_entity("PaymentController"), "refund",
            markers=["PostMapping"], body=block(call("charge", receiver)),
        )
        token = CancellationToken()
        token.cancel("deadline exceeded")

        with pytest.raises(QueryCancelledError) as exc_info:
            checker.check_api_method_doc(method, token)
        assert "deadline exceeded" in exc_info.value.detail


# ---------------------------------------------------------------------------
# service_method_doc
# ---------------------------------------------------------------------------


class TestServiceMethodDoc:
    def test_interface_method_is_implicitly_public(self, checker):
        method = make_method(_service_interface(), "charge", modifiers=())
        [problem] = checker.check_service_method_doc(method)
        assert problem.rule == ProblemRule.SERVICE_METHOD_DOC
        assert problem.template == "API-PAYMENT_CHARGE_Svc TODO description"

    def test_private_method_ignored(self, checker):
        owner = make_entity("PaymentServiceImpl", markers=["Service"])
        assert checker.check_service_method_doc(make_method(owner, "audit", modifiers=["private"])) == []

    @pytest.mark.parametrize("modifiers", [(), ["protected"], ["public"], ["protected", "final"]])
    def test_non_private_methods_checked(self, checker, modifiers):
        owner = make_entity("OrderServiceImpl", markers=["Service"])
        [problem] = checker.check_service_method_doc(make_method(owner, "submit", modifiers=modifiers))
        assert problem.element_name == "com.acme.app.OrderServiceImpl#submit"

    @pytest.mark.parametrize("name", ["toString", "equals", "hashCode", "clone"])
    def test_object_methods_exempt(self, checker, name):
        owner = make_entity("PaymentServiceImpl", markers=["Service"])
        assert checker.check_service_method_doc(make_method(owner, name)) == []

    def test_static_and_constructor_ignored(self, checker):
        owner = make_entity("PaymentServiceImpl", markers=["Service"])
        assert checker.check_service_method_doc(make_method(owner, "of", modifiers=["public", "static"])) == []
        assert checker.check_service_method_doc(make_method(owner, "PaymentServiceImpl", is_constructor=True)) == []

    def test_non_service_owner_ignored(self, checker):
        assert checker.check_service_method_doc(make_method(make_entity("Money"), "add")) == []

    def test_documented_method_passes(self, checker):
        owner = make_entity("PaymentServiceImpl", markers=["Service"])
        assert checker.check_service_method_doc(make_method(owner, "charge", doc="PAY-S-002 charge")) == []

    def test_parsed_service_visibility(self, inspector_config):
        source = (
            "package a;\n"
            "import org.springframework.stereotype.Service;\n"
            "@Service\n"
            "public class OrderServiceImpl {\n"
            "    void submit() {}\n"
            "    protected void cancel() {}\n"
            "    public void ship() {}\n"
            "    private void audit() {}\n"
            "    static void of() {}\n"
            "}\n"
        )
        index = SourceIndex.build([JavaParser().parse_source(source, "OrderServiceImpl.java")])
        checker = ConventionChecker(IdentifierEngine.for_index(index, inspector_config))

        problems = checker.inspect_entity(index.find_entity("OrderServiceImpl"))

        flagged = [p.element_name for p in problems if p.rule == ProblemRule.SERVICE_METHOD_DOC]
        assert flagged == ["a.OrderServiceImpl#submit", "a.OrderServiceImpl#cancel", "a.OrderServiceImpl#ship"]


# ---------------------------------------------------------------------------
# service_class_doc
# ---------------------------------------------------------------------------


class TestServiceClassDoc:
    def test_suggestion_from_interface(self, checker):
        iface = _service_interface(doc="PAY-S-001 payment service")
        impl = make_entity("PaymentServiceImpl", markers=["Service"], interfaces=[iface])

        [problem] = checker.check_service_class_doc(impl)

        assert problem.rule == ProblemRule.SERVICE_CLASS_DOC
        assert problem.element_name == "com.acme.app.PaymentServiceImpl"
        assert problem.suggested_value == "PAY-S-001 payment service"

    def test_template_without_suggestion(self, checker):
        [problem] = checker.check_service_class_doc(_service_interface())
        assert problem.template == "API-PAYMENT_Svc TODO description"

    def test_documented_service_passes(self, checker):
        assert checker.check_service_class_doc(_service_interface(doc="PAY-S-001 payments")) == []


# ---------------------------------------------------------------------------
# injected_field_doc and method_naming
# ---------------------------------------------------------------------------


class TestInjectedFieldDoc:
    def test_undocumented_injected_field(self, checker):
        owner = make_entity("PaymentController")
        variable = make_field(owner, "paymentService", "PaymentService", markers=["Autowired"])

        [problem] = checker.check_injected_field_doc(variable)

        assert problem.severity == ProblemSeverity.WEAK_WARNING
        assert problem.element_name == "com.acme.app.PaymentController.paymentService"

    def test_documented_injected_field(self, checker):
        owner = make_entity("PaymentController")
        variable = make_field(owner, "svc", "PaymentService", markers=["Autowired"], doc="Payments.")
        assert checker.check_injected_field_doc(variable) == []

    def test_plain_field_ignored(self, checker):
        variable = make_field(make_entity("Money"), "amount", "long")
        assert checker.check_injected_field_doc(variable) == []


class TestMethodNaming:
    @pytest.mark.parametrize("name", ["pay", "submitOrder", "v2Status"])
    def test_camel_case_passes(self, checker, name):
        assert checker.check_method_naming(make_method(make_entity("A"), name)) == []

    @pytest.mark.parametrize("name", ["Pay", "submit_order", "_x"])
    def test_bad_names(self, checker, name):
        [problem] = checker.check_method_naming(make_method(make_entity("A"), name))
        assert problem.rule == ProblemRule.METHOD_NAMING

    def test_constructor_exempt(self, checker):
        method = make_method(make_entity("Account"), "Account", is_constructor=True)
        assert checker.check_method_naming(method) == []


# ---------------------------------------------------------------------------
# inspect_entity
# ---------------------------------------------------------------------------


class TestInspectEntity:
    def test_collects_all_rules(self, checker):
        iface = _service_interface()
        make_method(iface, "Charge", modifiers=())
        make_field(iface, "LIMIT", "int", modifiers=["public", "static", "final"])

        rules = sorted(p.rule.value for p in checker.inspect_entity(iface))
        assert rules == ["method_naming", "service_class_doc", "service_method_doc"]

    def test_clean_entity(self, checker):
        entity = make_entity("Money", package="com.acme.domain")
        make_method(entity, "add")
        assert checker.inspect_entity(entity) == []
