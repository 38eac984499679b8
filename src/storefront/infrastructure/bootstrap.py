"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import Engine

from storefront.infrastructure.auth.token_file_gateway import TokenFileAuthGateway
from storefront.infrastructure.config import Settings
from storefront.infrastructure.payments.stripe_gateway import StripePaymentGateway
from storefront.infrastructure.persistence.database import make_engine
from storefront.infrastructure.persistence.sql_order_repository import (
    SqlOrderRepository,
)
from storefront.infrastructure.persistence.sql_product_repository import (
    SqlProductRepository,
)


@lru_cache(maxsize=1)
def settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def engine() -> Engine:
    return make_engine(settings().database_url)


def product_repository() -> SqlProductRepository:
    return SqlProductRepository(engine())


def order_repository() -> SqlOrderRepository:
    return SqlOrderRepository(engine())


def auth_gateway() -> TokenFileAuthGateway:
    return TokenFileAuthGateway(settings().tokens_file)


def payment_gateway() -> StripePaymentGateway:
    cfg = settings()
    return StripePaymentGateway(cfg.stripe_secret_key, timeout=cfg.payment_timeout)


def reset() -> None:
    """Forget cached settings and engine (the environment changed)."""
    if engine.cache_info().currsize:
        engine().dispose()
    engine.cache_clear()
    settings.cache_clear()
