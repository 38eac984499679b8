"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Each concrete error carries a stable ``kind`` so callers can tell failures
apart without matching on message text.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    kind = "DomainError"


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    kind = "ValidationError"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    kind = "NotFound"


class InvalidInput(ValidationError):
    """The request is malformed or empty. Fix and resubmit."""

    kind = "InvalidInput"


class InsufficientStock(ValidationError):
    """Requested quantity exceeds available stock."""

    kind = "InsufficientStock"

    def __init__(self, product_id: str, message: str | None = None) -> None:
        self.product_id = product_id
        super().__init__(message or f"Insufficient stock for product '{product_id}'")


class InvalidTransition(ValidationError):
    """A status change is not allowed from the current state."""

    kind = "InvalidTransition"


class ProductNotFound(EntityNotFoundError):

    kind = "ProductNotFound"

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__(f"Product not found: '{product_id}'")


class OrderNotFound(EntityNotFoundError):

    kind = "OrderNotFound"

    def __init__(self, order_id: int) -> None:
        self.order_id = order_id
        super().__init__(f"Order #{order_id} not found")


class AuthError(DomainException):
    """Missing or invalid credential, or insufficient role."""

    kind = "AuthError"


class PaymentGatewayError(DomainException):
    """The external payment processor failed. Not retried here."""

    kind = "PaymentGatewayError"


class PartialFailure(DomainException):
    """A failure happened after some state was already mutated.

    ``details`` lists what still needs manual reconciliation (empty when
    the compensation succeeded and only the original step failed).
    """

    kind = "PartialFailure"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        self.details = list(details or [])
        super().__init__(message)
