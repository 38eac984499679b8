"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from storefront.domain.model.order import Order
from storefront.domain.model.product import Product


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the buyer asked for (product id + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    product_id: str
    product_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "15.00 USD"
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    buyer_id: str
    fulfillment_status: str
    payment_status: str
    payment_method: str
    payment_reference: str | None
    paid_at: str | None
    items: list[OrderLineItemDTO]
    total: str
    total_amount: Decimal
    currency: str
    shipping_address: dict[str, str | None]
    created_at: str


@dataclass(frozen=True)
class PaymentIntentDTO:
    """Output: what the client needs to finish paying."""

    order_id: int
    intent_id: str
    client_secret: str | None
    intent_status: str
    payment_status: str


@dataclass(frozen=True)
class ProductDTO:
    id: str
    name: str
    price: str
    stock: int


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        buyer_id=order.buyer_id,
        fulfillment_status=order.fulfillment_status.value,
        payment_status=order.payment_status.value,
        payment_method=order.payment_method,
        payment_reference=order.payment_reference,
        paid_at=order.paid_at.isoformat() if order.paid_at else None,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        total=str(order.total_amount),
        total_amount=order.total_amount.amount,
        currency=order.currency,
        shipping_address=order.shipping_address.to_dict(),
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )


def product_to_dto(product: Product) -> ProductDTO:
    return ProductDTO(
        id=product.id,
        name=product.name,
        price=str(product.price),
        stock=product.stock,
    )
