"""Application service: Update Fulfillment Status use case (operator only)."""

from __future__ import annotations

import logging

from storefront.application.dto import OrderDTO, order_to_dto
from storefront.domain.exceptions import InvalidInput, OrderNotFound
from storefront.domain.gateway.auth_gateway import Principal, require_operator
from storefront.domain.model.order import FulfillmentStatus
from storefront.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


def parse_fulfillment_status(raw: str | FulfillmentStatus) -> FulfillmentStatus:
    if isinstance(raw, FulfillmentStatus):
        return raw
    try:
        return FulfillmentStatus(str(raw).strip().lower())
    except ValueError as exc:
        valid = ", ".join(s.value for s in FulfillmentStatus)
        raise InvalidInput(f"Unknown status {raw!r}; expected one of: {valid}") from exc


class UpdateFulfillmentStatusHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        principal: Principal | None,
        order_id: int,
        new_status: str | FulfillmentStatus,
    ) -> OrderDTO:
        """Move an order along processing -> shipped -> delivered, or cancel it.

        Only the fulfillment status is written; items, total and payment
        status are left alone.
        """
        operator = require_operator(principal)
        target = parse_fulfillment_status(new_status)

        while True:
            order = self._order_repo.get_by_id(order_id)
            if order is None:
                raise OrderNotFound(order_id)
            expected_payment = order.payment_status
            expected_fulfillment = order.fulfillment_status

            order.move_to(target)

            if self._order_repo.update_status(order, expected_payment, expected_fulfillment):
                logger.info(
                    "fulfillment status updated",
                    extra={
                        "order_id": order.id,
                        "from": expected_fulfillment.value,
                        "to": target.value,
                        "operator": operator.identity,
                    },
                )
                return order_to_dto(order)
