"""SQLAlchemy-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Engine, func, select, update
from sqlalchemy.orm import Session

from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.product_repository import ProductRepository
from storefront.infrastructure.persistence.database import ProductRow


class SqlProductRepository(ProductRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        with Session(self._engine) as s:
            row = s.get(ProductRow, product_id)
            return self._to_domain(row) if row else None

    def get_by_name(self, name: str) -> Product | None:
        with Session(self._engine) as s:
            row = s.scalars(
                select(ProductRow).where(func.lower(ProductRow.name) == name.lower())
            ).first()
            return self._to_domain(row) if row else None

    def list_all(self) -> list[Product]:
        with Session(self._engine) as s:
            rows = s.scalars(
                select(ProductRow).order_by(func.length(ProductRow.id), ProductRow.id)
            ).all()
            return [self._to_domain(r) for r in rows]

    def save(self, product: Product) -> None:
        with Session(self._engine) as s, s.begin():
            row = s.get(ProductRow, product.id)
            if row is None:
                s.add(self._to_row(product))
                return
            # Stock on an existing row only moves through the atomic updates below.
            row.name = product.name
            row.price = str(product.price.amount)
            row.currency = product.price.currency

    def conditional_decrement(self, product_id: str, quantity: int) -> bool:
        # Single statement: the row lock taken by UPDATE serializes
        # concurrent reservations of the same product.
        stmt = (
            update(ProductRow)
            .where(ProductRow.id == product_id, ProductRow.stock >= quantity)
            .values(stock=ProductRow.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        with Session(self._engine) as s, s.begin():
            result = s.execute(stmt)
            return result.rowcount == 1

    def restock(self, product_id: str, quantity: int) -> None:
        stmt = (
            update(ProductRow)
            .where(ProductRow.id == product_id)
            .values(stock=ProductRow.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        with Session(self._engine) as s, s.begin():
            result = s.execute(stmt)
            if result.rowcount != 1:
                raise LookupError(f"Cannot restock missing product '{product_id}'")

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_row(product: Product) -> ProductRow:
        return ProductRow(
            id=product.id,
            name=product.name,
            price=str(product.price.amount),
            currency=product.price.currency,
            stock=product.stock,
        )

    @staticmethod
    def _to_domain(row: ProductRow) -> Product:
        return Product(
            id=row.id,
            name=row.name,
            price=Money(Decimal(row.price), row.currency),
            stock=row.stock,
        )
