"""Export and import commands."""

import click

from subtrack.cli.actions import Action, dispatch
from subtrack.cli.error_handling import handle_domain_error
from subtrack.domain.errors import DomainError


@click.command("export")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "csv"]),
    default="json",
    show_default=True,
    help="json writes a full backup; csv writes subscriptions only",
)
@click.pass_context
def export_data(ctx, path: str, fmt: str):
    """Export data to PATH.

    Examples:
        subtrack export backup.json
        subtrack export subscriptions.csv --format csv
    """
    action = Action.EXPORT_CSV if fmt == "csv" else Action.EXPORT_JSON
    try:
        click.echo(dispatch(action, ctx.obj["services"], path))
    except DomainError as e:
        handle_domain_error(ctx, e)


@click.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_data(ctx, path: str):
    """Import a JSON backup from PATH.

    Collections in the file replace the stored ones; nothing is written if
    any record is invalid.
    """
    try:
        click.echo(dispatch(Action.IMPORT_JSON, ctx.obj["services"], path))
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register export and import commands with main CLI."""
    cli.add_command(export_data)
    cli.add_command(import_data)
