"""Abstract repository for Product aggregate (the catalog store).

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (SQL, in-memory) live in the
infrastructure layer and the test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return a product by its exact name, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Insert a new product, or update name and price of an existing one.

        Stock of an existing product is left alone; it only changes through
        ``conditional_decrement`` and ``restock``.
        """

    @abstractmethod
    def conditional_decrement(self, product_id: str, quantity: int) -> bool:
        """Decrement stock by *quantity* only if at least that much is left.

        The check and the decrement must be a single atomic step with
        respect to every other caller, including other processes.
        Returns False, changing nothing, when stock is insufficient or the
        product is gone.
        """

    @abstractmethod
    def restock(self, product_id: str, quantity: int) -> None:
        """Atomically add *quantity* back to a product's stock."""
