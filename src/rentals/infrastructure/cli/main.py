import click

from rentals.domain.exceptions import ConfigurationError
from rentals.infrastructure import bootstrap
from rentals.infrastructure.cli.order_commands import (
    order_create,
    order_edit,
    order_retry_missing,
    order_return,
    order_show,
    order_start,
    order_status,
    order_timeline,
)
from rentals.infrastructure.cli.profile_commands import profile_set, profile_show
from rentals.infrastructure.logging_config import configure_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Rentals — rental orders, returns and tax settings"""
    if ctx.obj is None:
        try:
            ctx.obj = bootstrap.settings()
        except ConfigurationError as exc:
            raise click.ClickException(str(exc))
    configure_logging(ctx.obj)


@cli.group()
def order() -> None:
    """Manage rental orders."""


@cli.group()
def profile() -> None:
    """Manage tax profiles."""


# Register subcommands
order.add_command(order_create)
order.add_command(order_edit)
order.add_command(order_return)
order.add_command(order_retry_missing)
order.add_command(order_show)
order.add_command(order_start)
order.add_command(order_status)
order.add_command(order_timeline)
profile.add_command(profile_set)
profile.add_command(profile_show)
