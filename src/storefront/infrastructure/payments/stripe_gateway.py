"""Stripe implementation of PaymentGateway.

Intents are created with ``confirm=True`` when a payment method is given,
so Stripe usually answers with a final status straight away.  Every Stripe
failure is reported as PaymentGatewayError; nothing is retried here.

Each gateway owns its ``StripeClient``; the SDK's module-level key and
HTTP client are never touched.
"""

from __future__ import annotations

import logging

import stripe

from storefront.domain.exceptions import PaymentGatewayError
from storefront.domain.gateway.payment_gateway import (
    IntentRequest,
    PaymentGateway,
    PaymentIntent,
)

logger = logging.getLogger(__name__)

_METADATA_KEYS = ("order_id", "buyer_id")


class StripePaymentGateway(PaymentGateway):

    def __init__(self, api_key: str | None, timeout: float = 30.0) -> None:
        self._client = (
            stripe.StripeClient(api_key, http_client=stripe.RequestsClient(timeout=timeout))
            if api_key
            else None
        )

    def create_intent(self, request: IntentRequest) -> PaymentIntent:
        client = self._require_client()

        params: dict = {
            "amount": request.amount_minor,
            "currency": request.currency,
            "metadata": dict(request.metadata),
        }
        if request.description:
            params["description"] = request.description
        if request.payment_method_id:
            params["payment_method"] = request.payment_method_id
            params["confirm"] = True

        try:
            intent = client.v1.payment_intents.create(params=params)
        except stripe.StripeError as exc:
            logger.warning(
                "stripe rejected payment intent",
                extra={"error_type": type(exc).__name__, "metadata": request.metadata},
            )
            raise PaymentGatewayError(f"Payment processing failed: {exc}") from exc

        return self._to_domain(intent)

    def retrieve_intent(self, intent_id: str) -> PaymentIntent | None:
        client = self._require_client()
        try:
            intent = client.v1.payment_intents.retrieve(intent_id)
        except stripe.InvalidRequestError as exc:
            if exc.code == "resource_missing":
                return None
            raise PaymentGatewayError(f"Payment lookup failed: {exc}") from exc
        except stripe.StripeError as exc:
            raise PaymentGatewayError(f"Payment lookup failed: {exc}") from exc

        return self._to_domain(intent)

    # --- Internal helpers -----------------------------------------------------

    def _require_client(self) -> stripe.StripeClient:
        if self._client is None:
            raise PaymentGatewayError("Payment gateway is not configured (STRIPE_SECRET_KEY)")
        return self._client

    @staticmethod
    def _to_domain(intent: stripe.PaymentIntent) -> PaymentIntent:
        # PaymentIntent is a StripeObject, not a dict: read fields as attributes.
        try:
            metadata = getattr(intent, "metadata", None)
            return PaymentIntent(
                intent_id=intent.id,
                client_secret=getattr(intent, "client_secret", None),
                status=intent.status,
                amount_minor=getattr(intent, "amount", None),
                currency=getattr(intent, "currency", None),
                metadata={
                    key: str(getattr(metadata, key))
                    for key in _METADATA_KEYS
                    if metadata is not None and getattr(metadata, key, None) is not None
                },
            )
        except AttributeError as exc:
            logger.error(
                "unexpected payment intent response",
                extra={"intent_id": getattr(intent, "id", None)},
            )
            raise PaymentGatewayError(f"Unexpected payment intent response: {exc}") from exc
