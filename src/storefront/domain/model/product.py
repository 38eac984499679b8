"""Product aggregate.

Products live independently of orders. They have their own lifecycle:
prices change, stock is decremented by reservations and topped up by
restocking.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.exceptions import InsufficientStock, InvalidInput
from storefront.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog.

    Invariant: ``stock`` is never negative.  Stock changes for orders go
    through the catalog store's ``conditional_decrement`` so that the
    check and the decrement happen as one step; ``take`` is the in-memory
    version of that rule.
    """

    id: str
    name: str
    price: Money
    stock: int = 0

    def __post_init__(self) -> None:
        if self.stock < 0:
            raise InvalidInput(f"Stock for '{self.name}' cannot be negative")

    def update_price(self, new_price: Money) -> None:
        """Change the product price.

        This does NOT affect any existing orders because orders
        capture a price snapshot at creation time.
        """
        self.price = new_price

    def take(self, quantity: int) -> None:
        if quantity <= 0:
            raise InvalidInput("Quantity must be positive")
        if quantity > self.stock:
            raise InsufficientStock(
                self.id,
                f"Insufficient stock for {self.name} "
                f"(need {quantity}, have {self.stock} available)",
            )
        self.stock -= quantity

    def restock(self, quantity: int) -> None:
        if quantity <= 0:
            raise InvalidInput("Restock quantity must be positive")
        self.stock += quantity
