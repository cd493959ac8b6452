"""Analytics commands."""

import click

from subtrack.domain.analytics import PERIODS
from subtrack.utils.date_parser import parse_date_as_timestamp
from subtrack.utils.formatters import format_amount, format_percentage


@click.group()
def analytics_group():
    """Spending statistics and trends."""
    pass


def _currency(ctx) -> str:
    return ctx.obj["services"].settings.get().default_currency


@analytics_group.command("stats")
@click.pass_context
def show_statistics(ctx):
    """Min, max, average and median monthly cost of active subscriptions."""
    stats = ctx.obj["services"].analytics.get_statistics()
    currency = _currency(ctx)
    for key in ("min", "max", "average", "median", "total"):
        click.echo(f"{key.capitalize():8s} {format_amount(stats[key], currency):>16s}")


@analytics_group.command("trends")
@click.option("--period", type=click.Choice(PERIODS), default="month", show_default=True)
@click.option("--count", type=int, default=12, show_default=True, help="Number of periods")
@click.pass_context
def show_trends(ctx, period: str, count: int):
    """Spending per month or year, oldest first."""
    currency = _currency(ctx)
    for point in ctx.obj["services"].analytics.get_spending_trends(period, count):
        click.echo(f"{point['label']:10s} {format_amount(point['amount'], currency):>16s}")


@analytics_group.command("categories")
@click.option("--limit", type=int, help="Only the top N categories")
@click.pass_context
def show_categories(ctx, limit: int | None):
    """Monthly spending per category, largest first."""
    analytics = ctx.obj["services"].analytics
    breakdown = analytics.get_top_categories(limit) if limit else analytics.get_category_breakdown()
    if not breakdown:
        click.echo("No active subscriptions.")
        return

    currency = _currency(ctx)
    for item in breakdown:
        click.echo(
            f"{item['category']:20s} {format_amount(item['amount'], currency):>16s} "
            f"{format_percentage(item['percentage'], 1):>7s}"
        )


@analytics_group.command("cycles")
@click.pass_context
def show_cycles(ctx):
    """Active subscriptions grouped by billing cycle."""
    distribution = ctx.obj["services"].analytics.get_cost_by_billing_cycle()
    if not distribution:
        click.echo("No active subscriptions.")
        return

    currency = _currency(ctx)
    for cycle, entry in sorted(distribution.items()):
        click.echo(
            f"{cycle.capitalize():10s} {entry['count']:3d} subscriptions | "
            f"{format_amount(entry['total_cost'], currency):>14s} billed | "
            f"{format_amount(entry['monthly_cost'], currency):>14s}/month"
        )


@analytics_group.command("compare")
@click.option("--first", nargs=2, metavar="START END", help="First date range")
@click.option("--second", nargs=2, metavar="START END", help="Second date range")
@click.pass_context
def compare(ctx, first: tuple[str, str] | None, second: tuple[str, str] | None):
    """Compare recorded payments of two date ranges.

    Without options, compares last year with this year.

    Examples:
        subtrack analytics compare
        subtrack analytics compare --first 2024-01-01 2024-01-31 --second 2024-02-01 2024-02-29
    """
    analytics = ctx.obj["services"].analytics
    if first and second:
        try:
            bounds = [parse_date_as_timestamp(value) for value in (*first, *second)]
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)
        result = analytics.compare_periods(*bounds)
    elif first or second:
        click.echo("Error: --first and --second must be given together.", err=True)
        ctx.exit(1)
    else:
        result = analytics.get_year_over_year_comparison()

    currency = _currency(ctx)
    direction = "up" if result["increased"] else "down or flat"
    click.echo(f"First:      {format_amount(result['period1'], currency)}")
    click.echo(f"Second:     {format_amount(result['period2'], currency)}")
    click.echo(
        f"Difference: {format_amount(result['difference'], currency)} "
        f"({format_percentage(result['percentage_change'], 1)}, {direction})"
    )


@analytics_group.command("projection")
@click.option("--months", type=int, default=12, show_default=True)
@click.pass_context
def projection(ctx, months: int):
    """Projected spending over the next months at the current rate."""
    projected = ctx.obj["services"].analytics.get_projected_spending(months)
    click.echo(f"Projected spending over {months} months: {format_amount(projected, _currency(ctx))}")


def register_commands(cli):
    """Register analytics commands with main CLI."""
    cli.add_command(analytics_group, name="analytics")
