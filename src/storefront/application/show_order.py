"""Application service: Show Order use case (query)."""

from __future__ import annotations

from storefront.application.dto import OrderDTO, order_to_dto
from storefront.domain.exceptions import OrderNotFound
from storefront.domain.gateway.auth_gateway import Principal, require_authenticated
from storefront.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, principal: Principal | None, order_id: int) -> OrderDTO:
        caller = require_authenticated(principal)
        order = self._order_repo.get_by_id(order_id)
        # Someone else's order is reported the same way as a missing one.
        if order is None or (order.buyer_id != caller.identity and not caller.is_operator):
            raise OrderNotFound(order_id)
        return order_to_dto(order)
