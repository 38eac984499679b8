import logging

import click
from sqlalchemy.exc import SQLAlchemyError

from storefront.infrastructure import bootstrap
from storefront.infrastructure.cli.order_commands import (
    order_confirm_payment,
    order_list,
    order_pay,
    order_place,
    order_show,
    order_status,
)
from storefront.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_restock,
    product_update,
)
from storefront.infrastructure.logging_config import configure_logging

logger = logging.getLogger(__name__)


class StorefrontGroup(click.Group):
    """Root group that reports database failures as a clean CLI error."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except SQLAlchemyError as exc:
            logger.error("store operation failed", exc_info=True)
            raise click.ClickException(f"StoreError: {getattr(exc, 'orig', None) or exc}") from exc


@click.group(cls=StorefrontGroup)
@click.option("--log-level", default=None, help="Logging level (default from STOREFRONT_LOG_LEVEL).")
@click.option("--json-logs", is_flag=True, default=False, help="Emit logs as JSON lines.")
def cli(log_level: str | None, json_logs: bool) -> None:
    """Storefront: order placement, payment and fulfillment."""
    cfg = bootstrap.settings()
    configure_logging(log_level or cfg.log_level, json_logs or cfg.log_json)


@cli.group()
def order() -> None:
    """Place, pay for and track orders."""


@cli.group()
def product() -> None:
    """Maintain the product catalog."""


# Register subcommands
order.add_command(order_confirm_payment)
order.add_command(order_list)
order.add_command(order_pay)
order.add_command(order_place)
order.add_command(order_show)
order.add_command(order_status)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_restock)
product.add_command(product_update)
