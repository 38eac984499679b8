"""Integration tests for payment intent creation and payment confirmation."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from storefront.application.confirm_payment import ConfirmPaymentHandler
from storefront.application.create_payment_intent import CreatePaymentIntentHandler
from storefront.application.dto import OrderItemSpec
from storefront.application.place_order import PlaceOrderHandler
from storefront.domain.exceptions import (
    AuthError,
    InvalidInput,
    InvalidTransition,
    OrderNotFound,
    PaymentGatewayError,
)
from storefront.domain.gateway.payment_gateway import IntentRequest
from storefront.domain.model.order import PaymentStatus
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money, ShippingAddress
from tests.fakes import (
    ALICE,
    BOB,
    OPERATOR,
    FakeOrderRepository,
    FakePaymentGateway,
    FakeProductRepository,
    InterleavingOrderRepository,
)


def _setup(order_repo=None, gateway=None):
    products = [
        Product(id="P", name="Poster", price=Money.of("10.00"), stock=10),
        Product(id="M", name="Mug", price=Money.of("4.25"), stock=10),
    ]
    order_repo = order_repo or FakeOrderRepository()
    product_repo = FakeProductRepository(products)
    order = PlaceOrderHandler(order_repo, product_repo).handle(
        ALICE,
        [OrderItemSpec("P", 3), OrderItemSpec("M", 2)],
        ShippingAddress(city="Springfield"),
        "card",
    )
    return order.id, order_repo, product_repo, gateway or FakePaymentGateway()


def _intent(gateway, order_repo, order_id, status="succeeded"):
    return gateway.intent_for(order_repo.get_by_id(order_id), status)


class TestConfirmPayment:

    def test_paid_sets_reference_and_timestamp(self):
        order_id, order_repo, _, gateway = _setup()
        pi = _intent(gateway, order_repo, order_id)

        dto = ConfirmPaymentHandler(order_repo, gateway).handle(order_id, pi, "paid")

        assert dto.payment_status == "paid"
        saved = order_repo.get_by_id(order_id)
        assert saved.payment_status == PaymentStatus.PAID
        assert saved.payment_reference == pi
        assert saved.paid_at is not None

    def test_duplicate_confirmation_is_noop(self):
        order_id, order_repo, product_repo, gateway = _setup()
        pi = _intent(gateway, order_repo, order_id)
        handler = ConfirmPaymentHandler(order_repo, gateway)

        handler.handle(order_id, pi, "paid")
        first = order_repo.get_by_id(order_id)
        stock_before = product_repo.stock_of("P")

        handler.handle(order_id, pi, "paid")
        second = order_repo.get_by_id(order_id)

        assert second.payment_status == PaymentStatus.PAID
        assert second.paid_at == first.paid_at
        assert second.payment_reference == pi
        assert second.total_amount == first.total_amount
        assert product_repo.stock_of("P") == stock_before
        assert order_repo.applied_updates == 1

    def test_failed_outcome(self):
        order_id, order_repo, _, gateway = _setup()
        pi = _intent(gateway, order_repo, order_id, status="canceled")

        dto = ConfirmPaymentHandler(order_repo, gateway).handle(order_id, pi, "failed")

        assert dto.payment_status == "failed"
        assert order_repo.get_by_id(order_id).paid_at is None

    def test_paid_after_failed_is_ignored(self, caplog):
        order_id, order_repo, _, gateway = _setup()
        failed_pi = _intent(gateway, order_repo, order_id, status="failed")
        later_pi = _intent(gateway, order_repo, order_id)
        handler = ConfirmPaymentHandler(order_repo, gateway)
        handler.handle(order_id, failed_pi, "failed")

        dto = handler.handle(order_id, later_pi, "paid")

        assert dto.payment_status == "failed"
        assert order_repo.get_by_id(order_id).payment_reference is None
        assert "conflicts with final status" in caplog.text

    def test_unknown_outcome_rejected(self):
        order_id, order_repo, _, gateway = _setup()
        with pytest.raises(InvalidInput, match="Unknown payment outcome"):
            ConfirmPaymentHandler(order_repo, gateway).handle(order_id, "pi_1", "refunded")

    def test_unknown_order(self):
        order_id, order_repo, _, gateway = _setup()
        pi = _intent(gateway, order_repo, order_id)
        with pytest.raises(OrderNotFound):
            ConfirmPaymentHandler(order_repo, gateway).handle(999, pi, "paid")

    def test_payment_id_required(self):
        order_id, order_repo, _, gateway = _setup()
        with pytest.raises(InvalidInput, match="gateway payment id"):
            ConfirmPaymentHandler(order_repo, gateway).handle(order_id, "", "paid")


class TestConfirmPaymentVerification:

    def test_unknown_payment_id_rejected(self):
        order_id, order_repo, _, gateway = _setup()

        with pytest.raises(InvalidInput, match="Unknown payment"):
            ConfirmPaymentHandler(order_repo, gateway).handle(order_id, "pi_never_created", "paid")

        assert order_repo.get_by_id(order_id).payment_status == PaymentStatus.PENDING

    def test_intent_of_another_order_cannot_pay_this_one(self):
        order_repo = FakeOrderRepository()
        products = FakeProductRepository(
            [
                Product(id="C", name="Sticker", price=Money.of("1.00"), stock=5),
                Product(id="X", name="Couch", price=Money.of("999.00"), stock=5),
            ]
        )
        place = PlaceOrderHandler(order_repo, products)
        cheap = place.handle(ALICE, [OrderItemSpec("C", 1)], ShippingAddress(), "card")
        pricey = place.handle(ALICE, [OrderItemSpec("X", 1)], ShippingAddress(), "card")
        gateway = FakePaymentGateway(status="succeeded")
        CreatePaymentIntentHandler(order_repo, gateway).handle(
            ALICE, "1.00", "usd", cheap.id, "pm_card"
        )

        with pytest.raises(InvalidInput, match="created for order"):
            ConfirmPaymentHandler(order_repo, gateway).handle(pricey.id, "pi_1", "paid")

        assert order_repo.get_by_id(pricey.id).payment_status == PaymentStatus.PENDING
        assert order_repo.get_by_id(cheap.id).payment_status == PaymentStatus.PAID

    def test_amount_mismatch_rejected(self):
        order_id, order_repo, _, gateway = _setup()
        intent = gateway.create_intent(
            IntentRequest(
                amount_minor=100,
                currency="usd",
                payment_method_id="pm_card",
                metadata={"order_id": str(order_id)},
            )
        )
        gateway.settle(intent.intent_id, "succeeded")

        with pytest.raises(InvalidInput, match="does not match order total"):
            ConfirmPaymentHandler(order_repo, gateway).handle(order_id, intent.intent_id, "paid")

        assert order_repo.get_by_id(order_id).payment_status == PaymentStatus.PENDING

    def test_paid_needs_a_succeeded_intent(self):
        order_id, order_repo, _, gateway = _setup()
        pi = _intent(gateway, order_repo, order_id, status="requires_action")

        with pytest.raises(InvalidInput, match="not succeeded"):
            ConfirmPaymentHandler(order_repo, gateway).handle(order_id, pi, "paid")

    def test_failed_report_for_succeeded_intent_rejected(self):
        order_id, order_repo, _, gateway = _setup()
        pi = _intent(gateway, order_repo, order_id)

        with pytest.raises(InvalidInput, match="succeeded"):
            ConfirmPaymentHandler(order_repo, gateway).handle(order_id, pi, "failed")

        assert order_repo.get_by_id(order_id).payment_status == PaymentStatus.PENDING


class TestConcurrentConfirmations:

    def test_paid_losing_to_failed_applies_only_failed(self, caplog):
        order_id, order_repo, _, gateway = _setup(order_repo=InterleavingOrderRepository())
        pi = _intent(gateway, order_repo, order_id)
        order_repo.interleave(lambda order: order.mark_payment_failed())

        dto = ConfirmPaymentHandler(order_repo, gateway).handle(order_id, pi, "paid")

        assert dto.payment_status == "failed"
        saved = order_repo.get_by_id(order_id)
        assert saved.payment_status == PaymentStatus.FAILED
        assert saved.paid_at is None
        assert saved.payment_reference is None
        assert order_repo.applied_updates == 1
        assert "conflicts with final status" in caplog.text

    def test_duplicate_paid_race_sets_paid_at_once(self, caplog):
        caplog.set_level(logging.INFO, logger="storefront")
        order_id, order_repo, _, gateway = _setup(order_repo=InterleavingOrderRepository())
        pi = _intent(gateway, order_repo, order_id)
        first_paid_at = datetime(2024, 6, 1, tzinfo=timezone.utc)
        order_repo.interleave(lambda order: order.mark_paid(pi, paid_at=first_paid_at))

        dto = ConfirmPaymentHandler(order_repo, gateway).handle(order_id, pi, "paid")

        assert dto.payment_status == "paid"
        assert order_repo.get_by_id(order_id).paid_at == first_paid_at
        assert order_repo.applied_updates == 1
        assert "duplicate payment confirmation ignored" in caplog.text

    def test_threaded_duplicate_callbacks_apply_once(self):
        order_id, order_repo, _, gateway = _setup()
        pi = _intent(gateway, order_repo, order_id)
        handler = ConfirmPaymentHandler(order_repo, gateway)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: handler.handle(order_id, pi, "paid"), range(8)))

        assert {r.payment_status for r in results} == {"paid"}
        assert len({r.paid_at for r in results}) == 1
        assert order_repo.applied_updates == 1


class TestCreatePaymentIntent:

    def test_amount_taken_from_order_in_minor_units(self):
        order_id, order_repo, _, gateway = _setup()
        handler = CreatePaymentIntentHandler(order_repo, gateway)

        dto = handler.handle(ALICE, "38.50", "usd", order_id, "pm_card")

        assert dto.client_secret == "pi_1_secret"
        assert dto.payment_status == "pending"
        request = gateway.requests[0]
        assert request.amount_minor == 3850
        assert request.currency == "usd"
        assert request.payment_method_id == "pm_card"
        assert request.metadata["order_id"] == str(order_id)

    def test_amount_mismatch_rejected_before_gateway(self):
        order_id, order_repo, _, gateway = _setup()
        handler = CreatePaymentIntentHandler(order_repo, gateway)

        with pytest.raises(InvalidInput, match="does not match order total"):
            handler.handle(ALICE, Decimal("1.00"), "usd", order_id, "pm_card")
        assert gateway.requests == []

    def test_currency_mismatch_rejected(self):
        order_id, order_repo, _, gateway = _setup()
        handler = CreatePaymentIntentHandler(order_repo, gateway)
        with pytest.raises(InvalidInput, match="Currency"):
            handler.handle(ALICE, "38.50", "EUR", order_id, "pm_card")

    def test_currency_defaults_to_order_currency(self):
        order_id, order_repo, _, gateway = _setup()
        CreatePaymentIntentHandler(order_repo, gateway).handle(
            ALICE, "38.5", None, order_id, None
        )
        assert gateway.requests[0].currency == "usd"

    def test_other_buyers_order_rejected(self):
        order_id, order_repo, _, gateway = _setup()
        handler = CreatePaymentIntentHandler(order_repo, gateway)
        with pytest.raises(AuthError):
            handler.handle(BOB, "38.50", "usd", order_id, "pm_card")

    def test_operator_may_create_intent(self):
        order_id, order_repo, _, gateway = _setup()
        dto = CreatePaymentIntentHandler(order_repo, gateway).handle(
            OPERATOR, "38.50", "usd", order_id, "pm_card"
        )
        assert dto.intent_id == "pi_1"

    def test_already_paid_order_rejected(self):
        order_id, order_repo, _, gateway = _setup()
        pi = _intent(gateway, order_repo, order_id)
        ConfirmPaymentHandler(order_repo, gateway).handle(order_id, pi, "paid")
        handler = CreatePaymentIntentHandler(order_repo, gateway)
        with pytest.raises(InvalidTransition):
            handler.handle(ALICE, "38.50", "usd", order_id, "pm_card")

    def test_unknown_order(self):
        _, order_repo, _, gateway = _setup()
        handler = CreatePaymentIntentHandler(order_repo, gateway)
        with pytest.raises(OrderNotFound):
            handler.handle(ALICE, "38.50", "usd", 42, "pm_card")

    def test_gateway_failure_surfaces(self):
        order_id, order_repo, _, gateway = _setup(gateway=FakePaymentGateway(fail=True))
        handler = CreatePaymentIntentHandler(order_repo, gateway)
        with pytest.raises(PaymentGatewayError):
            handler.handle(ALICE, "38.50", "usd", order_id, "pm_card")
        assert order_repo.get_by_id(order_id).payment_status == PaymentStatus.PENDING

    def test_synchronously_succeeded_intent_marks_order_paid(self):
        order_id, order_repo, _, gateway = _setup(gateway=FakePaymentGateway(status="succeeded"))
        handler = CreatePaymentIntentHandler(order_repo, gateway)

        dto = handler.handle(ALICE, "38.50", "usd", order_id, "pm_card")

        assert dto.payment_status == "paid"
        saved = order_repo.get_by_id(order_id)
        assert saved.payment_reference == "pi_1"
        assert saved.paid_at is not None

    def test_synchronously_failed_intent_marks_order_failed(self):
        order_id, order_repo, _, gateway = _setup(gateway=FakePaymentGateway(status="canceled"))
        dto = CreatePaymentIntentHandler(order_repo, gateway).handle(
            ALICE, "38.50", "usd", order_id, "pm_card"
        )
        assert dto.payment_status == "failed"

    def test_gateway_retry_after_sync_success_is_noop(self):
        order_id, order_repo, _, gateway = _setup(gateway=FakePaymentGateway(status="succeeded"))
        CreatePaymentIntentHandler(order_repo, gateway).handle(
            ALICE, "38.50", "usd", order_id, "pm_card"
        )
        paid_at = order_repo.get_by_id(order_id).paid_at

        ConfirmPaymentHandler(order_repo, gateway).handle(order_id, "pi_1", "paid")

        assert order_repo.get_by_id(order_id).paid_at == paid_at
