"""CLI commands for orders."""

from __future__ import annotations

import click

from storefront.application.confirm_payment import ConfirmPaymentHandler
from storefront.application.create_payment_intent import CreatePaymentIntentHandler
from storefront.application.dto import OrderDTO, OrderItemSpec
from storefront.application.list_orders import ListAllOrdersHandler, ListBuyerOrdersHandler
from storefront.application.place_order import PlaceOrderHandler
from storefront.application.show_order import ShowOrderHandler
from storefront.application.update_fulfillment_status import UpdateFulfillmentStatusHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.order import FulfillmentStatus
from storefront.domain.model.value_objects import ShippingAddress
from storefront.infrastructure.bootstrap import (
    order_repository,
    payment_gateway,
    product_repository,
)
from storefront.infrastructure.cli.common import authenticate, fail, token_option


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse '1:3,2:5' (product id : quantity) into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(OrderItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.fulfillment_status}, payment={dto.payment_status})")
    click.echo(f"Buyer:    {dto.buyer_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.paid_at:
        click.echo(f"Paid:     {dto.paid_at}  ({dto.payment_reference})")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>14} {'Total':>14}")
    click.echo(f"  {'-'*55}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.unit_price:>14} {item.line_total:>14}"
        )
    click.echo(f"  {'-'*55}")
    click.echo(f"  {'Order Total':<27} {dto.total:>28}")


@click.command("place")
@token_option
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@click.option("--payment-method", required=True, help="Payment method, e.g. 'card'.")
@click.option("--street", default=None)
@click.option("--city", default=None)
@click.option("--state", default=None)
@click.option("--zip", "zip_code", default=None)
@click.option("--country", default=None)
def order_place(
    token: str | None,
    items: str,
    payment_method: str,
    street: str | None,
    city: str | None,
    state: str | None,
    zip_code: str | None,
    country: str | None,
) -> None:
    """Place a new order (reserves stock)."""
    specs = _parse_items(items)
    address = ShippingAddress(
        street=street, city=city, state=state, zip_code=zip_code, country=country
    )

    handler = PlaceOrderHandler(
        order_repo=order_repository(),
        product_repo=product_repository(),
    )

    try:
        dto = handler.handle(authenticate(token), specs, address, payment_method)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Order #{dto.id} placed")
    _display_order(dto)


@click.command("pay")
@token_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID to pay for.")
@click.option("--amount", required=True, help="Amount being paid (must equal the order total).")
@click.option("--currency", default=None, help="Currency code (defaults to the order's).")
@click.option("--payment-method-id", default=None, help="Gateway payment method id.")
def order_pay(
    token: str | None,
    order_id: int,
    amount: str,
    currency: str | None,
    payment_method_id: str | None,
) -> None:
    """Create a payment intent for an order."""
    handler = CreatePaymentIntentHandler(
        order_repo=order_repository(),
        payment_gateway=payment_gateway(),
    )

    try:
        dto = handler.handle(authenticate(token), amount, currency, order_id, payment_method_id)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Payment intent {dto.intent_id} ({dto.intent_status})")
    click.echo(f"Client secret: {dto.client_secret}")
    click.echo(f"Order #{dto.order_id} payment is {dto.payment_status}")


@click.command("confirm-payment")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--payment-id", required=True, help="Gateway payment id.")
@click.option(
    "--outcome",
    required=True,
    type=click.Choice(["paid", "failed"], case_sensitive=False),
    help="Reported payment outcome.",
)
def order_confirm_payment(order_id: int, payment_id: str, outcome: str) -> None:
    """Apply a payment outcome after checking it with the gateway (idempotent)."""
    handler = ConfirmPaymentHandler(
        order_repo=order_repository(),
        payment_gateway=payment_gateway(),
    )

    try:
        dto = handler.handle(order_id, payment_id, outcome)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Order #{dto.id} payment is {dto.payment_status}")


@click.command("list")
@token_option
@click.option("--all", "all_orders", is_flag=True, default=False, help="Every order (admin only).")
def order_list(token: str | None, all_orders: bool) -> None:
    """List orders, newest first."""
    repo = order_repository()

    try:
        principal = authenticate(token)
        if all_orders:
            orders = ListAllOrdersHandler(repo).handle(principal)
        else:
            orders = ListBuyerOrdersHandler(repo).handle(principal)
    except DomainException as exc:
        raise fail(exc)

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'Buyer':<14} {'Status':<11} {'Payment':<8} {'Total':>14}  Created")
    click.echo("-" * 78)
    for o in orders:
        click.echo(
            f"{o.id:<6} {o.buyer_id:<14} {o.fulfillment_status:<11} "
            f"{o.payment_status:<8} {o.total:>14}  {o.created_at}"
        )


@click.command("show")
@token_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(token: str | None, order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(authenticate(token), order_id)
    except DomainException as exc:
        raise fail(exc)

    _display_order(dto)


@click.command("status")
@token_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--to",
    "new_status",
    required=True,
    type=click.Choice([s.value for s in FulfillmentStatus], case_sensitive=False),
    help="New fulfillment status.",
)
def order_status(token: str | None, order_id: int, new_status: str) -> None:
    """Change an order's fulfillment status (admin only)."""
    handler = UpdateFulfillmentStatusHandler(order_repo=order_repository())

    try:
        dto = handler.handle(authenticate(token), order_id, new_status)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Order #{dto.id} is now {dto.fulfillment_status}")
