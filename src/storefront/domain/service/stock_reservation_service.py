"""Domain service: Stock Reservation.

This service coordinates the cross-aggregate operation of taking stock
from the catalog for an order.  It lives in the domain layer because the
rules (validate first, all-or-nothing, restore on failure) are core
business rules, not just orchestration.

Each line is reserved with the store's atomic conditional decrement, so
two concurrent requests can never both take the last unit.  If a later
line fails, the lines already taken by this request are put back before
the error is raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from storefront.domain.exceptions import (
    InsufficientStock,
    InvalidInput,
    PartialFailure,
    ProductNotFound,
)
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationRequest:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class ReservedLine:
    """One line of a confirmed reservation, with its price snapshot."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money


class StockReservationService:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def reserve(self, requests: list[ReservationRequest]) -> list[ReservedLine]:
        """Take stock for every requested line, in order.

        Phase 1: validate the request shape without touching the store.
        Phase 2: look up and conditionally decrement line by line; on the
                 first failure, restore what this call already took.

        Duplicate product ids are separate lines and accumulate against
        the same stock counter.
        """
        self._validate(requests)

        reserved: list[ReservedLine] = []
        try:
            for req in requests:
                reserved.append(self._reserve_line(req))
        except Exception as exc:
            if reserved:
                self._compensate(reserved, cause=exc)
            raise

        return reserved

    def release(self, reserved: list[ReservedLine]) -> None:
        """Put a whole reservation back (used when the order is not recorded)."""
        failed = self._restore(reserved)
        if failed:
            raise PartialFailure(
                "Stock could not be fully restored; manual reconciliation needed",
                details=failed,
            )

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _validate(requests: list[ReservationRequest]) -> None:
        if not requests:
            raise InvalidInput("Order must contain at least one item")
        for req in requests:
            if not req.product_id:
                raise InvalidInput("Every item needs a product id")
            if isinstance(req.quantity, bool) or not isinstance(req.quantity, int):
                raise InvalidInput(
                    f"Quantity for '{req.product_id}' must be an integer"
                )
            if req.quantity <= 0:
                raise InvalidInput(
                    f"Quantity for '{req.product_id}' must be positive"
                )

    def _reserve_line(self, req: ReservationRequest) -> ReservedLine:
        product = self._product_repo.get_by_id(req.product_id)
        if product is None:
            raise ProductNotFound(req.product_id)

        if not self._product_repo.conditional_decrement(req.product_id, req.quantity):
            raise InsufficientStock(
                req.product_id,
                f"Not enough stock for {product.name} (requested {req.quantity})",
            )

        return ReservedLine(
            product_id=product.id,
            product_name=product.name,
            quantity=Quantity(req.quantity),
            unit_price=product.price,  # <-- price snapshot
        )

    def _compensate(self, reserved: list[ReservedLine], cause: Exception) -> None:
        failed = self._restore(reserved)
        if failed:
            raise PartialFailure(
                f"{cause}; stock taken for earlier lines could not be restored",
                details=failed,
            ) from cause

    def _restore(self, reserved: list[ReservedLine]) -> list[str]:
        """Restock every line; return a description of the ones that failed."""
        failed: list[str] = []
        for line in reversed(reserved):
            try:
                self._product_repo.restock(line.product_id, line.quantity.value)
            except Exception:
                logger.exception(
                    "stock restore failed; reconcile manually",
                    extra={"product_id": line.product_id, "quantity": line.quantity.value},
                )
                failed.append(f"{line.product_id}:{line.quantity.value}")
        return failed
