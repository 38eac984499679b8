"""Options and helpers shared by the order and product commands."""

from __future__ import annotations

import click

from storefront.domain.exceptions import DomainException
from storefront.domain.gateway.auth_gateway import Principal
from storefront.infrastructure.bootstrap import auth_gateway

token_option = click.option(
    "--token",
    envvar="STOREFRONT_TOKEN",
    default=None,
    help="Bearer token (or set STOREFRONT_TOKEN).",
)


def authenticate(token: str | None) -> Principal:
    return auth_gateway().verify(token)


def fail(exc: DomainException) -> click.ClickException:
    return click.ClickException(f"{exc.kind}: {exc}")
