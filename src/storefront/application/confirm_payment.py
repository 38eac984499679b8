"""Application service: Confirm Payment use case.

Applies a payment outcome reported by the gateway.  The reported payment
id is read back from the gateway first, and the outcome is only applied
when that intent was created for this order, for its total, and its
status agrees with the outcome.

The gateway may deliver the same callback more than once, so applying an
outcome to an order whose payment status is already final changes
nothing.
"""

from __future__ import annotations

import logging
from enum import Enum

from storefront.application.dto import OrderDTO, order_to_dto
from storefront.domain.exceptions import InvalidInput, OrderNotFound
from storefront.domain.gateway.payment_gateway import (
    IntentStatus,
    PaymentGateway,
    PaymentIntent,
)
from storefront.domain.model.order import Order, PaymentStatus
from storefront.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class PaymentOutcome(Enum):
    PAID = "paid"
    FAILED = "failed"

    @staticmethod
    def parse(raw: str | PaymentOutcome) -> PaymentOutcome:
        if isinstance(raw, PaymentOutcome):
            return raw
        try:
            return PaymentOutcome(str(raw).strip().lower())
        except ValueError as exc:
            raise InvalidInput(
                f"Unknown payment outcome {raw!r}; expected 'paid' or 'failed'"
            ) from exc


class ConfirmPaymentHandler:

    def __init__(self, order_repo: OrderRepository, payment_gateway: PaymentGateway) -> None:
        self._order_repo = order_repo
        self._payment_gateway = payment_gateway

    def handle(
        self,
        order_id: int,
        gateway_payment_id: str,
        outcome: str | PaymentOutcome,
    ) -> OrderDTO:
        result = PaymentOutcome.parse(outcome)
        if not gateway_payment_id or not gateway_payment_id.strip():
            raise InvalidInput("A payment confirmation needs the gateway payment id")

        intent = self._payment_gateway.retrieve_intent(gateway_payment_id.strip())
        if intent is None:
            raise InvalidInput(f"Unknown payment {gateway_payment_id!r}")
        return self.apply(order_id, intent, result)

    def apply(self, order_id: int, intent: PaymentIntent, outcome: PaymentOutcome) -> OrderDTO:
        """Apply *outcome* for an intent already obtained from the gateway."""
        # Each lost race means the stored statuses moved forward; both state
        # machines are acyclic, so this loop ends.
        while True:
            order = self._load(order_id)
            self._verify(order, intent, outcome)
            expected_payment = order.payment_status
            expected_fulfillment = order.fulfillment_status

            if outcome is PaymentOutcome.PAID:
                changed = order.mark_paid(intent.intent_id)
            else:
                changed = order.mark_payment_failed()

            if not changed:
                self._log_ignored(order, outcome, intent.intent_id)
                return order_to_dto(order)

            if self._order_repo.update_status(order, expected_payment, expected_fulfillment):
                logger.info(
                    "payment status updated",
                    extra={
                        "order_id": order.id,
                        "payment_status": order.payment_status.value,
                        "payment_reference": order.payment_reference,
                    },
                )
                return order_to_dto(order)

    # --- Internal helpers -----------------------------------------------------

    def _load(self, order_id: int) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    @staticmethod
    def _verify(order: Order, intent: PaymentIntent, outcome: PaymentOutcome) -> None:
        problem = None
        if intent.order_id != str(order.id):
            problem = f"was created for order {intent.order_id!r}"
        elif intent.amount_minor != order.total_amount.to_minor_units():
            problem = (
                f"amount {intent.amount_minor} does not match order total "
                f"{order.total_amount.to_minor_units()}"
            )
        elif (intent.currency or "").lower() != order.currency:
            problem = f"currency {intent.currency!r} does not match {order.currency}"
        elif outcome is PaymentOutcome.PAID and intent.status != IntentStatus.SUCCEEDED:
            problem = f"is {intent.status}, not succeeded"
        elif outcome is PaymentOutcome.FAILED and intent.status == IntentStatus.SUCCEEDED:
            problem = "succeeded"

        if problem is not None:
            logger.warning(
                "payment confirmation rejected",
                extra={"order_id": order.id, "intent_id": intent.intent_id, "reason": problem},
            )
            raise InvalidInput(
                f"Payment {intent.intent_id} {problem}; "
                f"cannot mark order #{order.id} {outcome.value}"
            )

    @staticmethod
    def _log_ignored(order: Order, result: PaymentOutcome, gateway_payment_id: str) -> None:
        duplicate = order.payment_status.value == result.value and (
            order.payment_status != PaymentStatus.PAID
            or order.payment_reference == gateway_payment_id
        )
        if duplicate:
            logger.info(
                "duplicate payment confirmation ignored",
                extra={"order_id": order.id, "payment_reference": gateway_payment_id},
            )
        else:
            logger.warning(
                "payment confirmation conflicts with final status; ignored",
                extra={
                    "order_id": order.id,
                    "payment_status": order.payment_status.value,
                    "reported_outcome": result.value,
                    "payment_reference": gateway_payment_id,
                },
            )
