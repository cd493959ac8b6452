"""Dashboard and reminder commands."""

import click

from subtrack.utils.formatters import (
    format_amount,
    format_date,
    format_percentage,
    format_reminder,
)


@click.command("dashboard")
@click.pass_context
def dashboard(ctx):
    """Overview of costs, upcoming renewals and budget alerts."""
    services = ctx.obj["services"]
    currency = services.settings.get().default_currency
    stats = services.subscriptions.get_stats()

    click.echo(f"\nSubscriptions: {stats['active']} active, {stats['inactive']} inactive")
    click.echo(f"Monthly cost:  {format_amount(services.subscriptions.get_total_monthly_cost(currency), currency)}")
    click.echo(f"Yearly cost:   {format_amount(services.subscriptions.get_total_yearly_cost(currency), currency)}")
    if stats["overdue"]:
        click.echo(f"Overdue:       {stats['overdue']}")

    click.echo("\nUpcoming renewals (7 days):")
    upcoming = services.subscriptions.get_upcoming_renewals(7)
    if not upcoming:
        click.echo("  (none)")
    for sub in upcoming:
        click.echo(f"  {format_date(sub.next_billing_date)}  {sub.name:20s} {format_amount(sub.cost, sub.currency):>14s}")

    click.echo("\nTop categories:")
    top = services.analytics.get_top_categories(5)
    if not top:
        click.echo("  (none)")
    for item in top:
        click.echo(f"  {item['category']:20s} {format_percentage(item['percentage'], 1):>7s}")

    alerts = services.budgets.get_budgets_needing_alerts()
    if alerts:
        click.echo("\nBudget alerts:")
        for status in alerts:
            budget_type = status.budget.type
            scope = status.budget.category or str(getattr(budget_type, "value", budget_type))
            click.echo(
                f"  {scope:20s} {format_percentage(status.percentage_used)} used "
                f"({status.alert_level.value})"
            )


@click.command("reminders")
@click.pass_context
def reminders(ctx):
    """Show renewal reminders due today."""
    services = ctx.obj["services"]
    if not services.settings.get().notifications.enabled:
        click.echo("Notifications are disabled.")
        return

    due = services.subscriptions.get_due_reminders()
    if not due:
        click.echo("No reminders due.")
        return
    for sub, days in due:
        click.echo(format_reminder(sub.name, days, sub.cost, sub.currency))


def register_commands(cli):
    """Register dashboard commands with main CLI."""
    cli.add_command(dashboard)
    cli.add_command(reminders)
