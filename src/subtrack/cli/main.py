"""Main CLI entry point."""

import logging

import click

from subtrack.database.factories import create_sqlite_database
from subtrack.domain.services import create_services

# Import and register all commands at module level
from subtrack.cli.commands import (
    action,
    analytics,
    budget,
    category,
    dashboard,
    rates,
    settings,
    subscription,
    transfer,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SUBTRACK_DB_PATH environment variable)",
    envvar="SUBTRACK_DB_PATH",
)
@click.option(
    "--rates-url",
    help="Exchange rate endpoint (overrides SUBTRACK_RATES_URL environment variable)",
    envvar="SUBTRACK_RATES_URL",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, rates_url: str | None, verbose: bool):
    """Subtrack - Subscription tracking application.

    Track recurring subscriptions, their renewal dates and what they cost
    per month, and keep spending inside monthly, yearly or per-category
    budgets.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None and "services" not in ctx.obj:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        services = create_services(db, rates_url=rates_url, http_client=ctx.obj.get("http_client"))
        ctx.obj["db"] = db
        ctx.obj["services"] = services
        ctx.call_on_close(services.close)


# Register all commands
dashboard.register_commands(cli)
subscription.register_commands(cli)
budget.register_commands(cli)
category.register_commands(cli)
analytics.register_commands(cli)
settings.register_commands(cli)
rates.register_commands(cli)
transfer.register_commands(cli)
action.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
