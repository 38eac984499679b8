"""CLI commands for the product catalog."""

from __future__ import annotations

import click

from storefront.application.add_product import AddProductHandler
from storefront.application.list_products import ListProductsHandler
from storefront.application.restock_product import RestockProductHandler
from storefront.application.update_product import UpdateProductHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import product_repository, settings
from storefront.infrastructure.cli.common import authenticate, fail, token_option


@click.command("add")
@token_option
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--stock", default=0, type=click.IntRange(min=0), help="Initial stock.")
def product_add(token: str | None, name: str, price: str, stock: int) -> None:
    """Add a new product to the catalog (admin only)."""
    handler = AddProductHandler(product_repo=product_repository(), currency=settings().currency)

    try:
        dto = handler.handle(authenticate(token), name=name, price=price, stock=stock)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Product #{dto.id} '{dto.name}' added at {dto.price} (stock {dto.stock})")


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    products = ListProductsHandler(product_repo=product_repository()).handle()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Price':>14} {'Stock':>7}")
    click.echo("-" * 50)
    for p in products:
        click.echo(f"{p.id:<6} {p.name:<20} {p.price:>14} {p.stock:>7}")


@click.command("update")
@token_option
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--price", required=True, help="New price (e.g. 29.99).")
def product_update(token: str | None, product_id: str, price: str) -> None:
    """Update a product's price (admin only; existing orders keep their price)."""
    handler = UpdateProductHandler(product_repo=product_repository())

    try:
        handler.handle(authenticate(token), product_id=product_id, new_price=price)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Product #{product_id} price updated to {price}")


@click.command("restock")
@token_option
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units to add.")
def product_restock(token: str | None, product_id: str, quantity: int) -> None:
    """Add stock to a product (admin only)."""
    handler = RestockProductHandler(product_repo=product_repository())

    try:
        level = handler.handle(authenticate(token), product_id=product_id, quantity=quantity)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Product #{product_id} stock is now {level}")
