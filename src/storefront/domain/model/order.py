"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items.  Items, address,
buyer and total are fixed at creation; only the payment and fulfillment
statuses move, and only along the transitions defined here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import InvalidInput, InvalidTransition
from storefront.domain.model.value_objects import (
    DEFAULT_CURRENCY,
    Money,
    Quantity,
    ShippingAddress,
)


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class FulfillmentStatus(Enum):
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Operator-driven moves.  Anything not listed is rejected.
FULFILLMENT_TRANSITIONS: dict[FulfillmentStatus, frozenset[FulfillmentStatus]] = {
    FulfillmentStatus.PROCESSING: frozenset(
        {FulfillmentStatus.SHIPPED, FulfillmentStatus.CANCELLED}
    ),
    FulfillmentStatus.SHIPPED: frozenset(
        {FulfillmentStatus.DELIVERED, FulfillmentStatus.CANCELLED}
    ),
    FulfillmentStatus.DELIVERED: frozenset(),
    FulfillmentStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class OrderLineItem:
    """Captures the price snapshot of a product at order-creation time."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass
class Order:
    """Aggregate root for purchase orders.

    Use the ``Order.create()`` factory for new orders; it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    buyer_id: str
    items: tuple[OrderLineItem, ...]
    shipping_address: ShippingAddress
    payment_method: str
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_reference: str | None = None
    paid_at: datetime | None = None
    fulfillment_status: FulfillmentStatus = FulfillmentStatus.PROCESSING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        buyer_id: str,
        items: list[OrderLineItem],
        shipping_address: ShippingAddress,
        payment_method: str,
    ) -> Order:
        """Create a new order, enforcing all invariants."""
        if not buyer_id:
            raise InvalidInput("Buyer is required")
        if not items:
            raise InvalidInput("Order must contain at least one item")
        if not payment_method or not payment_method.strip():
            raise InvalidInput("Payment method is required")

        currencies = {item.unit_price.currency for item in items}
        if len(currencies) > 1:
            raise InvalidInput(
                f"Order items must share one currency, got {sorted(currencies)}"
            )

        return Order(
            id=None,
            buyer_id=buyer_id,
            items=tuple(items),
            shipping_address=shipping_address,
            payment_method=payment_method.strip(),
        )

    # --- Payment transitions --------------------------------------------------

    def mark_paid(self, payment_reference: str, paid_at: datetime | None = None) -> bool:
        """Transition pending -> paid.

        Returns False without touching anything when the payment status is
        already terminal, so a retried gateway callback is harmless.
        """
        if not payment_reference:
            raise InvalidInput("Payment reference is required")
        if self.payment_status != PaymentStatus.PENDING:
            return False
        self.payment_status = PaymentStatus.PAID
        self.payment_reference = payment_reference
        self.paid_at = paid_at or datetime.now(timezone.utc)
        return True

    def mark_payment_failed(self) -> bool:
        """Transition pending -> failed.  No-op on terminal states."""
        if self.payment_status != PaymentStatus.PENDING:
            return False
        self.payment_status = PaymentStatus.FAILED
        return True

    # --- Fulfillment transitions ----------------------------------------------

    def move_to(self, new_status: FulfillmentStatus) -> None:
        """Apply an operator fulfillment change, validated against the table."""
        allowed = FULFILLMENT_TRANSITIONS[self.fulfillment_status]
        if new_status not in allowed:
            raise InvalidTransition(
                f"Cannot move order #{self.id} from "
                f"{self.fulfillment_status.value} to {new_status.value}"
            )
        self.fulfillment_status = new_status

    # --- Computed properties --------------------------------------------------

    @property
    def currency(self) -> str:
        if not self.items:
            return DEFAULT_CURRENCY
        return self.items[0].unit_price.currency

    @property
    def total_amount(self) -> Money:
        result = Money.zero(self.currency)
        for item in self.items:
            result = result + item.line_total
        return result
