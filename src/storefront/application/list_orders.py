"""Application services: order listing queries."""

from __future__ import annotations

from storefront.application.dto import OrderDTO, order_to_dto
from storefront.domain.gateway.auth_gateway import (
    Principal,
    require_authenticated,
    require_operator,
)
from storefront.domain.repository.order_repository import OrderRepository


class ListBuyerOrdersHandler:
    """The caller's own orders, newest first."""

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, principal: Principal | None) -> list[OrderDTO]:
        buyer = require_authenticated(principal)
        return [order_to_dto(o) for o in self._order_repo.list_for_buyer(buyer.identity)]


class ListAllOrdersHandler:
    """Every order in the ledger, newest first.  Operators only."""

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, principal: Principal | None) -> list[OrderDTO]:
        require_operator(principal)
        return [order_to_dto(o) for o in self._order_repo.list_all()]
