"""Budget commands."""

import click

from subtrack.cli.actions import Action, dispatch
from subtrack.cli.error_handling import handle_domain_error
from subtrack.domain.entities import BudgetStatus, BudgetType
from subtrack.domain.errors import DomainError
from subtrack.utils.date_parser import parse_date_as_timestamp
from subtrack.utils.formatters import format_amount, format_date, format_percentage, format_status
from subtrack.utils.record_resolver import resolve_budget


def _budget_label(status: BudgetStatus) -> str:
    budget = status.budget
    scope = budget.category or "All"
    return f"{budget.type.value if hasattr(budget.type, 'value') else budget.type} / {scope}"


def _echo_status(status: BudgetStatus) -> None:
    budget = status.budget
    click.echo(
        f"{budget.id[:8]} | {_budget_label(status):24s} | "
        f"{format_amount(status.spent, budget.currency):>14s} of "
        f"{format_amount(budget.amount, budget.currency):>14s} | "
        f"{format_percentage(status.percentage_used):>5s} | {status.alert_level.value}"
        f"{' | OVER BUDGET' if status.over_budget else ''}"
    )


@click.group()
def budget_group():
    """Manage budgets."""
    pass


@budget_group.command("create")
@click.argument("amount")
@click.option(
    "--type",
    "budget_type",
    type=click.Choice([t.value for t in BudgetType]),
    default="monthly",
    show_default=True,
    help="Budget period type",
)
@click.option("--currency", default=None, help="ISO currency code (defaults to the default currency)")
@click.option("--category", help="Limit the budget to one category")
@click.option("--threshold", default="80", show_default=True, help="Alert threshold in percent")
@click.option("--start", help="Period start date (defaults to today)")
@click.pass_context
def create_budget(
    ctx,
    amount: str,
    budget_type: str,
    currency: str | None,
    category: str | None,
    threshold: str,
    start: str | None,
):
    """Create a budget.

    Examples:
        subtrack budget create 100
        subtrack budget create 1200 --type yearly --currency EUR
        subtrack budget create 30 --type category --category Streaming --threshold 90
    """
    services = ctx.obj["services"]
    period_start = None
    if start:
        try:
            period_start = parse_date_as_timestamp(start)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        budget = services.budgets.create(
            amount=amount,
            budget_type=budget_type,
            currency=currency or services.settings.get().default_currency,
            category=category,
            alert_threshold=threshold,
            start=period_start,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Created {budget.type.value} budget of {format_amount(budget.amount, budget.currency)} "
        f"from {format_date(budget.period.start)} to {format_date(budget.period.end)} (ID: {budget.id})"
    )


@budget_group.command("list")
@click.pass_context
def list_budgets(ctx):
    """List all budgets."""
    budgets = ctx.obj["services"].budgets.get_all()
    if not budgets:
        click.echo("No budgets found.")
        return

    click.echo("-" * 90)
    for budget in budgets:
        budget_type = budget.type.value if hasattr(budget.type, "value") else budget.type
        click.echo(
            f"{budget.id[:8]} | {budget_type:8s} | {budget.category or 'All':16s} | "
            f"{format_amount(budget.amount, budget.currency):>14s} | "
            f"{format_date(budget.period.start)} - {format_date(budget.period.end)} | "
            f"{format_status(budget.is_active)}"
        )


@budget_group.command("status")
@click.argument("budget", metavar="BUDGET", required=False)
@click.option("--alerts", is_flag=True, help="Only budgets at or above their alert threshold")
@click.pass_context
def budget_status(ctx, budget: str | None, alerts: bool):
    """Show spending against budgets.

    With BUDGET (an ID or ID prefix), shows that budget only.
    """
    service = ctx.obj["services"].budgets
    if budget:
        try:
            statuses = [service.get_budget_status(resolve_budget(service, budget))]
        except DomainError as e:
            handle_domain_error(ctx, e)
    elif alerts:
        statuses = service.get_budgets_needing_alerts()
    else:
        statuses = service.get_all_budget_statuses()

    if not statuses:
        click.echo("No budgets to show.")
        return
    for status in statuses:
        _echo_status(status)


@budget_group.command("summary")
@click.pass_context
def budget_summary(ctx):
    """Show the current monthly, yearly and category budgets."""
    summary = ctx.obj["services"].budgets.get_budget_summary()

    for label, key in (("Monthly", "monthly"), ("Yearly", "yearly")):
        status = summary[key]
        click.echo(f"\n{label} budget:")
        if status is None:
            click.echo("  (none)")
        else:
            _echo_status(status)

    click.echo("\nCategory budgets:")
    if not summary["categories"]:
        click.echo("  (none)")
    for status in summary["categories"]:
        _echo_status(status)


@budget_group.command("delete")
@click.argument("budget", metavar="BUDGET")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_budget(ctx, budget: str, yes: bool):
    """Delete a budget by ID or ID prefix."""
    services = ctx.obj["services"]
    try:
        budget_id = resolve_budget(services.budgets, budget)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete budget {budget_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        click.echo(dispatch(Action.DELETE_BUDGET, services, budget_id))
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register budget commands with main CLI."""
    cli.add_command(budget_group, name="budget")
