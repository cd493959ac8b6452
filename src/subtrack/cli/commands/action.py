"""Generic action command."""

import click

from subtrack.cli.actions import Action, dispatch
from subtrack.cli.error_handling import handle_domain_error
from subtrack.domain.errors import DomainError


@click.command("action")
@click.argument("name", type=click.Choice([a.value for a in Action]))
@click.argument("param", required=False)
@click.pass_context
def run_action(ctx, name: str, param: str | None):
    """Run a named action.

    PARAM is a subscription (name, ID or ID prefix), a budget ID, a file
    path or a base currency, depending on the action.

    Examples:
        subtrack action record-payment Netflix
        subtrack action export-csv subscriptions.csv
        subtrack action update-rates EUR
    """
    try:
        click.echo(dispatch(name, ctx.obj["services"], param))
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register action command with main CLI."""
    cli.add_command(run_action)
