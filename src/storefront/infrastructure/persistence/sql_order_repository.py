"""SQLAlchemy-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Engine, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.order import (
    FulfillmentStatus,
    Order,
    OrderLineItem,
    PaymentStatus,
)
from storefront.domain.model.value_objects import Money, Quantity, ShippingAddress
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.database import OrderItemRow, OrderRow


class SqlOrderRepository(OrderRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        with Session(self._engine) as s:
            row = s.get(OrderRow, order_id, options=[selectinload(OrderRow.items)])
            return self._to_domain(row) if row else None

    def list_for_buyer(self, buyer_id: str) -> list[Order]:
        return self._list(select(OrderRow).where(OrderRow.buyer_id == buyer_id))

    def list_all(self) -> list[Order]:
        return self._list(select(OrderRow))

    def add(self, order: Order) -> None:
        if order.id is not None:
            raise ValueError(f"Order #{order.id} is already recorded")
        row = self._to_row(order)
        with Session(self._engine) as s, s.begin():
            s.add(row)
            s.flush()
            order_id = row.id
        order.id = order_id

    def update_status(
        self,
        order: Order,
        expected_payment: PaymentStatus,
        expected_fulfillment: FulfillmentStatus,
    ) -> bool:
        stmt = (
            update(OrderRow)
            .where(
                OrderRow.id == order.id,
                OrderRow.payment_status == expected_payment.value,
                OrderRow.fulfillment_status == expected_fulfillment.value,
            )
            .values(
                payment_status=order.payment_status.value,
                payment_reference=order.payment_reference,
                paid_at=order.paid_at,
                fulfillment_status=order.fulfillment_status.value,
            )
            .execution_options(synchronize_session=False)
        )
        with Session(self._engine) as s, s.begin():
            return s.execute(stmt).rowcount == 1

    # --- Queries --------------------------------------------------------------

    def _list(self, stmt) -> list[Order]:
        stmt = stmt.options(selectinload(OrderRow.items)).order_by(
            OrderRow.created_at.desc(), OrderRow.id.desc()
        )
        with Session(self._engine) as s:
            return [self._to_domain(r) for r in s.scalars(stmt).all()]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_row(order: Order) -> OrderRow:
        return OrderRow(
            buyer_id=order.buyer_id,
            shipping_address=order.shipping_address.to_dict(),
            payment_method=order.payment_method,
            total_amount=str(order.total_amount.amount),
            currency=order.currency,
            payment_status=order.payment_status.value,
            payment_reference=order.payment_reference,
            paid_at=order.paid_at,
            fulfillment_status=order.fulfillment_status.value,
            created_at=order.created_at,
            items=[
                OrderItemRow(
                    position=pos,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity.value,
                    unit_price=str(item.unit_price.amount),
                )
                for pos, item in enumerate(order.items)
            ],
        )

    @staticmethod
    def _to_domain(row: OrderRow) -> Order:
        items = tuple(
            OrderLineItem(
                product_id=i.product_id,
                product_name=i.product_name,
                quantity=Quantity(i.quantity),
                unit_price=Money(Decimal(i.unit_price), row.currency),
            )
            for i in row.items
        )
        order = Order(
            id=row.id,
            buyer_id=row.buyer_id,
            items=items,
            shipping_address=ShippingAddress.from_dict(row.shipping_address),
            payment_method=row.payment_method,
            payment_status=PaymentStatus(row.payment_status),
            payment_reference=row.payment_reference,
            paid_at=_as_utc(row.paid_at),
            fulfillment_status=FulfillmentStatus(row.fulfillment_status),
            created_at=_as_utc(row.created_at),  # type: ignore[arg-type]
        )
        if order.total_amount.amount != Decimal(row.total_amount):
            raise ValidationError(
                f"Order #{row.id} stored total {row.total_amount} does not match "
                f"its items ({order.total_amount.amount})"
            )
        return order


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is written in UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
