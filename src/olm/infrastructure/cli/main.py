import click

from olm.infrastructure.bootstrap import configure_logging
from olm.infrastructure.cli.order_commands import (
    order_available,
    order_code,
    order_history,
    order_list,
    order_place,
    order_rate,
    order_show,
    order_stats,
    order_transition,
)


@click.group()
def cli() -> None:
    """OLM: grocery order lifecycle manager"""
    configure_logging()


@cli.group()
def order() -> None:
    """Manage orders."""


# Register subcommands
order.add_command(order_available)
order.add_command(order_code)
order.add_command(order_history)
order.add_command(order_list)
order.add_command(order_place)
order.add_command(order_rate)
order.add_command(order_show)
order.add_command(order_stats)
order.add_command(order_transition)
