"""Abstract repository for Order aggregate (the order ledger)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import FulfillmentStatus, Order, PaymentStatus


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def list_for_buyer(self, buyer_id: str) -> list[Order]:
        """Return a buyer's orders, newest first."""

    @abstractmethod
    def list_all(self) -> list[Order]:
        """Return every order, newest first."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a new order and assign its ``id``."""

    @abstractmethod
    def update_status(
        self,
        order: Order,
        expected_payment: PaymentStatus,
        expected_fulfillment: FulfillmentStatus,
    ) -> bool:
        """Write the order's status fields if the stored ones still match.

        Only ``payment_status``, ``payment_reference``, ``paid_at`` and
        ``fulfillment_status`` are written.  Returns False, writing
        nothing, when another writer changed the statuses first.
        """
