"""Exchange rate commands."""

import click

from subtrack.cli.actions import Action, dispatch
from subtrack.cli.error_handling import handle_domain_error
from subtrack.domain.errors import DomainError


@click.group()
def rates_group():
    """Manage exchange rates."""
    pass


@rates_group.command("update")
@click.option("--base", help="Base currency (defaults to the default currency)")
@click.option("--rates-url", help="Override the exchange rate endpoint for this call")
@click.option("--if-stale", is_flag=True, help="Only fetch when the stored rates are 24 hours old or more")
@click.pass_context
def update_rates(ctx, base: str | None, rates_url: str | None, if_stale: bool):
    """Fetch the latest exchange rates and store them in settings."""
    services = ctx.obj["services"]
    if rates_url:
        services.currency.rates_url = rates_url
    if if_stale and not services.currency.needs_update():
        click.echo("Exchange rates are up to date.")
        return

    try:
        click.echo(dispatch(Action.UPDATE_RATES, services, base))
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register rates commands with main CLI."""
    cli.add_command(rates_group, name="rates")
