"""Port for the external payment processor.

The core asks for an intent and, when an outcome is reported, reads the
intent back to check which order and amount it was created for.  Card
handling, retries and processor-side idempotency live behind this
interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class IntentStatus:
    """Intent states the core reacts to.  Anything else means "not final yet"."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass(frozen=True)
class PaymentIntent:
    intent_id: str
    client_secret: str | None
    status: str
    amount_minor: int | None = None
    currency: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def order_id(self) -> str | None:
        return self.metadata.get("order_id")


@dataclass(frozen=True)
class IntentRequest:
    amount_minor: int
    currency: str
    payment_method_id: str | None
    metadata: dict[str, str] = field(default_factory=dict)
    description: str | None = None


class PaymentGateway(ABC):

    @abstractmethod
    def create_intent(self, request: IntentRequest) -> PaymentIntent:
        """Create a payment intent.  Raises PaymentGatewayError on failure."""

    @abstractmethod
    def retrieve_intent(self, intent_id: str) -> PaymentIntent | None:
        """Return the intent as the processor knows it, or None if it does not exist.

        Raises PaymentGatewayError when the processor cannot be reached.
        """
