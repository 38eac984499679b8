"""Application service: Restock Product use case."""

from __future__ import annotations

from storefront.domain.exceptions import InvalidInput, ProductNotFound
from storefront.domain.gateway.auth_gateway import Principal, require_operator
from storefront.domain.repository.product_repository import ProductRepository


class RestockProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, principal: Principal | None, product_id: str, quantity: int) -> int:
        """Add *quantity* units to a product's stock; return the new level."""
        require_operator(principal)
        if quantity <= 0:
            raise InvalidInput("Restock quantity must be positive")
        if self._product_repo.get_by_id(product_id) is None:
            raise ProductNotFound(product_id)

        self._product_repo.restock(product_id, quantity)
        return self._product_repo.get_by_id(product_id).stock  # type: ignore[union-attr]
