"""Application service: Create Payment Intent use case.

The charge amount always comes from the stored order.  The caller's
amount is only compared against it, so a client cannot pay a different
amount than the order specifies.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from storefront.application.confirm_payment import ConfirmPaymentHandler, PaymentOutcome
from storefront.application.dto import PaymentIntentDTO
from storefront.domain.exceptions import (
    AuthError,
    InvalidInput,
    InvalidTransition,
    OrderNotFound,
    PartialFailure,
    PaymentGatewayError,
)
from storefront.domain.gateway.auth_gateway import Principal, require_authenticated
from storefront.domain.gateway.payment_gateway import (
    IntentRequest,
    IntentStatus,
    PaymentGateway,
    PaymentIntent,
)
from storefront.domain.model.order import Order, PaymentStatus
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class CreatePaymentIntentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        payment_gateway: PaymentGateway,
    ) -> None:
        self._order_repo = order_repo
        self._payment_gateway = payment_gateway
        self._confirm = ConfirmPaymentHandler(order_repo, payment_gateway)

    def handle(
        self,
        principal: Principal | None,
        amount: str | Decimal,
        currency: str | None,
        order_id: int,
        payment_method_id: str | None,
    ) -> PaymentIntentDTO:
        caller = require_authenticated(principal)

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        if order.buyer_id != caller.identity and not caller.is_operator:
            raise AuthError(f"Order #{order_id} does not belong to the caller")
        if order.payment_status != PaymentStatus.PENDING:
            raise InvalidTransition(
                f"Order #{order_id} payment is already {order.payment_status.value}"
            )

        self._check_amount(order, amount, currency)

        request = IntentRequest(
            amount_minor=order.total_amount.to_minor_units(),
            currency=order.currency,
            payment_method_id=payment_method_id,
            metadata={"order_id": str(order.id), "buyer_id": order.buyer_id},
            description=f"Order ID: {order.id}",
        )
        try:
            intent = self._payment_gateway.create_intent(request)
        except PaymentGatewayError:
            logger.error(
                "payment intent creation failed",
                extra={"order_id": order.id, "amount_minor": request.amount_minor},
            )
            raise

        logger.info(
            "payment intent created",
            extra={"order_id": order.id, "intent_id": intent.intent_id, "status": intent.status},
        )

        payment_status = self._apply_immediate_outcome(order, intent)
        return PaymentIntentDTO(
            order_id=order.id,  # type: ignore[arg-type]
            intent_id=intent.intent_id,
            client_secret=intent.client_secret,
            intent_status=intent.status,
            payment_status=payment_status,
        )

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _check_amount(order: Order, amount: str | Decimal, currency: str | None) -> None:
        requested = Money.of(amount, currency or order.currency)
        if requested.currency != order.currency:
            raise InvalidInput(
                f"Currency {requested.currency} does not match order currency {order.currency}"
            )
        if requested.amount != order.total_amount.amount:
            raise InvalidInput(
                f"Amount {requested} does not match order total {order.total_amount}"
            )

    def _apply_immediate_outcome(self, order: Order, intent: PaymentIntent) -> str:
        """Apply the result when the gateway confirmed the intent synchronously."""
        if intent.status == IntentStatus.SUCCEEDED:
            outcome = PaymentOutcome.PAID
        elif intent.status in (IntentStatus.FAILED, IntentStatus.CANCELED):
            outcome = PaymentOutcome.FAILED
        else:
            return order.payment_status.value

        try:
            dto = self._confirm.apply(order.id, intent, outcome)  # type: ignore[arg-type]
        except Exception as exc:
            logger.error(
                "gateway reported a final payment outcome but the order was not updated",
                extra={
                    "order_id": order.id,
                    "intent_id": intent.intent_id,
                    "intent_status": intent.status,
                },
            )
            raise PartialFailure(
                f"Payment {intent.intent_id} is {intent.status} but order #{order.id} "
                "was not updated",
                details=[f"order:{order.id}", f"intent:{intent.intent_id}"],
            ) from exc
        return dto.payment_status
