"""Application service: Add Product use case."""

from __future__ import annotations

from storefront.application.dto import ProductDTO, product_to_dto
from storefront.domain.exceptions import InvalidInput, ValidationError
from storefront.domain.gateway.auth_gateway import Principal, require_operator
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.product_repository import ProductRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository, currency: str = "usd") -> None:
        self._product_repo = product_repo
        self._currency = currency

    def handle(
        self, principal: Principal | None, name: str, price: str, stock: int = 0
    ) -> ProductDTO:
        """Add a new product to the catalog (operator only)."""
        require_operator(principal)
        if not name or not name.strip():
            raise InvalidInput("Product name is required")

        existing = self._product_repo.get_by_name(name.strip())
        if existing is not None:
            raise ValidationError(f"Product '{name}' already exists")

        # Auto-assign ID based on existing products
        numeric_ids = [int(p.id) for p in self._product_repo.list_all() if p.id.isdigit()]
        next_id = str(max(numeric_ids) + 1) if numeric_ids else "1"

        product = Product(
            id=next_id,
            name=name.strip(),
            price=Money.of(price, self._currency),
            stock=stock,
        )
        self._product_repo.save(product)
        return product_to_dto(product)
