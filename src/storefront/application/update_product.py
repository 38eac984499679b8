"""Application service: Update Product use case."""

from __future__ import annotations

from storefront.domain.exceptions import ProductNotFound
from storefront.domain.gateway.auth_gateway import Principal, require_operator
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.product_repository import ProductRepository


class UpdateProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, principal: Principal | None, product_id: str, new_price: str) -> None:
        """Update a product's price.

        Existing orders keep the price they captured at creation time.
        """
        require_operator(principal)
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        product.update_price(Money.of(new_price, product.price.currency))
        self._product_repo.save(product)
