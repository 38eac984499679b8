"""Application service: Place Order use case.

Orchestrates the flow between the stock reservation service and the
order ledger.  This is the only place that links "stock taken" to
"order recorded": if the order cannot be stored, the reservation is
released again.
"""

from __future__ import annotations

import logging

from storefront.application.dto import OrderDTO, OrderItemSpec, order_to_dto
from storefront.domain.exceptions import DomainException, InvalidInput, PartialFailure
from storefront.domain.gateway.auth_gateway import Principal, require_authenticated
from storefront.domain.model.order import Order, OrderLineItem
from storefront.domain.model.value_objects import ShippingAddress
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.service.stock_reservation_service import (
    ReservationRequest,
    ReservedLine,
    StockReservationService,
)

logger = logging.getLogger(__name__)


class PlaceOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
    ) -> None:
        self._order_repo = order_repo
        self._reservations = StockReservationService(product_repo)

    def handle(
        self,
        principal: Principal | None,
        item_specs: list[OrderItemSpec],
        shipping_address: ShippingAddress,
        payment_method: str,
    ) -> OrderDTO:
        """Create a new order for the calling buyer.

        Steps:
        1. Check the caller and the request shape (no mutation yet).
        2. Reserve stock for every line; prices are snapshotted here.
        3. Build the Order (pending / processing) and record it.
        4. If recording fails, put the stock back and report a
           PartialFailure.
        """
        buyer = require_authenticated(principal)
        if not payment_method or not payment_method.strip():
            raise InvalidInput("Payment method is required")

        reserved = self._reservations.reserve(
            [ReservationRequest(spec.product_id, spec.quantity) for spec in item_specs]
        )

        line_items = [
            OrderLineItem(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
            for line in reserved
        ]

        try:
            order = Order.create(
                buyer_id=buyer.identity,
                items=line_items,
                shipping_address=shipping_address,
                payment_method=payment_method,
            )
        except DomainException:
            self._reservations.release(reserved)
            raise

        try:
            self._order_repo.add(order)
        except Exception as exc:
            self._release_after_failure(buyer, reserved, exc)
            raise PartialFailure(
                f"Order could not be recorded ({exc}); reserved stock was released",
            ) from exc

        logger.info(
            "order placed",
            extra={
                "order_id": order.id,
                "buyer_id": order.buyer_id,
                "total": str(order.total_amount.amount),
                "lines": len(order.items),
            },
        )
        return order_to_dto(order)

    def _release_after_failure(
        self, buyer: Principal, reserved: list[ReservedLine], cause: Exception
    ) -> None:
        try:
            self._reservations.release(reserved)
        except PartialFailure as exc:
            logger.error(
                "order not recorded and stock not restored",
                extra={"buyer_id": buyer.identity, "unrestored": exc.details},
            )
            raise PartialFailure(
                f"Order could not be recorded ({cause}) and stock was not restored",
                details=exc.details,
            ) from cause
        logger.warning(
            "order not recorded; reserved stock released",
            extra={"buyer_id": buyer.identity, "error": str(cause)},
        )
