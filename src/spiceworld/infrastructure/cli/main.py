import click

from spiceworld.infrastructure.bootstrap import settings
from spiceworld.infrastructure.cli.category_commands import (
    attribute_group,
    category_create,
    category_delete,
    category_list,
    category_show,
    category_update,
)
from spiceworld.infrastructure.cli.order_commands import (
    order_checkout,
    order_list,
    order_pay,
    order_show,
    order_status,
)
from spiceworld.infrastructure.cli.product_commands import (
    product_bulk_update,
    product_count,
    product_create,
    product_delete,
    product_list,
    product_set_stock,
    product_show,
    product_update,
)
from spiceworld.infrastructure.logging_config import setup_logging


@click.group()
@click.option("--log-level", default=None, help="Override SPICEWORLD_LOG_LEVEL.")
def cli(log_level: str | None) -> None:
    """Spice World catalog and ordering"""
    try:
        setup_logging(log_level or settings().log_level)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--log-level")


@cli.group()
def category() -> None:
    """Manage categories and their attributes."""


@cli.group()
def product() -> None:
    """Manage the product catalog."""


@cli.group()
def order() -> None:
    """Check out and manage orders."""


# Register subcommands
category.add_command(attribute_group)
category.add_command(category_create)
category.add_command(category_delete)
category.add_command(category_list)
category.add_command(category_show)
category.add_command(category_update)
product.add_command(product_bulk_update)
product.add_command(product_count)
product.add_command(product_create)
product.add_command(product_delete)
product.add_command(product_list)
product.add_command(product_set_stock)
product.add_command(product_show)
product.add_command(product_update)
order.add_command(order_checkout)
order.add_command(order_list)
order.add_command(order_pay)
order.add_command(order_show)
order.add_command(order_status)
