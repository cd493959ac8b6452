"""Subscription management commands."""

import click

from subtrack.cli.actions import Action, dispatch
from subtrack.cli.error_handling import handle_domain_error
from subtrack.domain import billing
from subtrack.domain.entities import BillingCycle, BillingCycleType, Subscription
from subtrack.domain.errors import DomainError
from subtrack.utils.date_parser import parse_date_as_timestamp, utc_now
from subtrack.utils.formatters import (
    format_amount,
    format_billing_cycle,
    format_date,
    format_days_until,
    format_status,
)
from subtrack.utils.record_resolver import resolve_subscription

CYCLE_CHOICES = [t.value for t in BillingCycleType]


def _echo_subscription_row(sub: Subscription) -> None:
    click.echo(
        f"{sub.id[:8]} | {sub.name:20s} | {format_amount(sub.cost, sub.currency):>14s} | "
        f"{format_billing_cycle(sub.billing_cycle):14s} | {format_date(sub.next_billing_date)} | "
        f"{format_status(sub.is_active)}"
    )


def _echo_subscriptions(subscriptions: list[Subscription], empty_message: str) -> None:
    if not subscriptions:
        click.echo(empty_message)
        return
    click.echo("-" * 90)
    for sub in subscriptions:
        _echo_subscription_row(sub)


def _parse_when(ctx, value: str):
    try:
        return parse_date_as_timestamp(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


@click.group()
def subscription_group():
    """Manage subscriptions."""
    pass


@subscription_group.command("add")
@click.argument("name")
@click.argument("cost")
@click.option("--next", "next_billing", required=True, help="Next billing date (YYYY-MM-DD or relative like 'in 3 days')")
@click.option("--currency", default="USD", show_default=True, help="ISO currency code")
@click.option("--cycle", type=click.Choice(CYCLE_CHOICES), default="monthly", show_default=True, help="Billing cycle")
@click.option("--custom-days", type=int, help="Days between charges for a custom cycle")
@click.option("--category", default="Other", show_default=True, help="Category name")
@click.option("--notes", default="", help="Notes")
@click.option("--payment-method", default="", help="Payment method")
@click.option("--reminder", "reminders", type=int, multiple=True, help="Reminder offset in days (repeatable)")
@click.option("--inactive", is_flag=True, help="Create the subscription as inactive")
@click.pass_context
def add_subscription(
    ctx,
    name: str,
    cost: str,
    next_billing: str,
    currency: str,
    cycle: str,
    custom_days: int | None,
    category: str,
    notes: str,
    payment_method: str,
    reminders: tuple[int, ...],
    inactive: bool,
):
    """Add a subscription.

    Examples:
        subtrack subscription add Netflix 15.99 --next 2024-02-01
        subtrack subscription add "Gym" 40 --next "in 3 days" --category Fitness
        subtrack subscription add Backup 12 --next today --cycle custom --custom-days 10
    """
    services = ctx.obj["services"]
    next_billing_date = _parse_when(ctx, next_billing)

    try:
        sub = services.subscriptions.create(
            name=name,
            cost=cost,
            next_billing_date=next_billing_date,
            currency=currency,
            billing_cycle=BillingCycle(type=BillingCycleType(cycle), custom_days=custom_days),
            category=category,
            notes=notes,
            payment_method=payment_method,
            is_active=not inactive,
            reminder_days=reminders or services.settings.get().notifications.default_reminder_days,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created subscription '{sub.name}' (ID: {sub.id})")


@subscription_group.command("list")
@click.option("--active", "status", flag_value="active", help="Only active subscriptions")
@click.option("--inactive", "status", flag_value="inactive", help="Only inactive subscriptions")
@click.option("--category", help="Only subscriptions in this category")
@click.pass_context
def list_subscriptions(ctx, status: str | None, category: str | None):
    """List subscriptions."""
    service = ctx.obj["services"].subscriptions

    if status == "active":
        subscriptions = service.get_active()
    elif status == "inactive":
        subscriptions = service.get_inactive()
    else:
        subscriptions = service.get_all()
    if category:
        subscriptions = [s for s in subscriptions if s.category == category]

    _echo_subscriptions(subscriptions, "No subscriptions found.")


@subscription_group.command("show")
@click.argument("subscription", metavar="SUBSCRIPTION")
@click.pass_context
def show_subscription(ctx, subscription: str):
    """Show one subscription with its payment history.

    SUBSCRIPTION can be a name, an ID or an ID prefix.
    """
    service = ctx.obj["services"].subscriptions
    try:
        sub = service.require(resolve_subscription(service, subscription))
    except DomainError as e:
        handle_domain_error(ctx, e)

    days = billing.days_until_renewal(utc_now(), sub.next_billing_date)
    click.echo(f"\n{sub.name} ({format_status(sub.is_active)})")
    click.echo(f"ID:             {sub.id}")
    click.echo(f"Cost:           {format_amount(sub.cost, sub.currency)}")
    click.echo(f"Billing cycle:  {format_billing_cycle(sub.billing_cycle)}")
    click.echo(f"Monthly cost:   {format_amount(billing.monthly_equivalent(sub), sub.currency)}")
    click.echo(f"Yearly cost:    {format_amount(billing.yearly_equivalent(sub), sub.currency)}")
    click.echo(f"Next billing:   {format_date(sub.next_billing_date)} ({format_days_until(days)})")
    click.echo(f"Category:       {sub.category}")
    if sub.payment_method:
        click.echo(f"Payment method: {sub.payment_method}")
    click.echo(f"Reminders:      {', '.join(str(d) for d in sub.reminder_days) or 'none'} days before")
    if sub.notes:
        click.echo(f"Notes:          {sub.notes}")

    if sub.history:
        click.echo("\nPayment history:")
        for payment in sub.history:
            click.echo(f"  {format_date(payment.date)}  {format_amount(payment.amount, payment.currency)}")


@subscription_group.command("edit")
@click.argument("subscription", metavar="SUBSCRIPTION")
@click.option("--name", help="New name")
@click.option("--cost", help="New cost")
@click.option("--currency", help="New currency code")
@click.option("--cycle", type=click.Choice(CYCLE_CHOICES), help="New billing cycle")
@click.option("--custom-days", type=int, help="Days between charges for a custom cycle")
@click.option("--next", "next_billing", help="New next billing date")
@click.option("--category", help="New category")
@click.option("--notes", help="New notes")
@click.option("--payment-method", help="New payment method")
@click.option("--reminder", "reminders", type=int, multiple=True, help="Replace reminder offsets (repeatable)")
@click.pass_context
def edit_subscription(
    ctx,
    subscription: str,
    name: str | None,
    cost: str | None,
    currency: str | None,
    cycle: str | None,
    custom_days: int | None,
    next_billing: str | None,
    category: str | None,
    notes: str | None,
    payment_method: str | None,
    reminders: tuple[int, ...],
):
    """Update a subscription.

    Updates only the fields that are provided.

    Examples:
        subtrack subscription edit Netflix --cost 17.99
        subtrack subscription edit 3f2a --cycle yearly --next 2025-01-01
    """
    service = ctx.obj["services"].subscriptions
    try:
        sub_id = resolve_subscription(service, subscription)
    except DomainError as e:
        handle_domain_error(ctx, e)
    existing = service.require(sub_id)

    changes = {
        key: value
        for key, value in {
            "name": name,
            "cost": cost,
            "currency": currency,
            "category": category,
            "notes": notes,
            "payment_method": payment_method,
        }.items()
        if value is not None
    }
    if cycle is not None or custom_days is not None:
        changes["billing_cycle"] = BillingCycle(
            type=BillingCycleType(cycle) if cycle else existing.billing_cycle.type,
            custom_days=custom_days if custom_days is not None else existing.billing_cycle.custom_days,
        )
    if next_billing is not None:
        changes["next_billing_date"] = _parse_when(ctx, next_billing)
    if reminders:
        changes["reminder_days"] = reminders

    if not changes:
        click.echo("Nothing to update.")
        return

    try:
        updated = service.update(sub_id, **changes)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated subscription '{updated.name}'")


@subscription_group.command("delete")
@click.argument("subscription", metavar="SUBSCRIPTION")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_subscription(ctx, subscription: str, yes: bool):
    """Delete a subscription."""
    services = ctx.obj["services"]
    try:
        sub = services.subscriptions.require(resolve_subscription(services.subscriptions, subscription))
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete '{sub.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        click.echo(dispatch(Action.DELETE_SUBSCRIPTION, services, sub.id))
    except DomainError as e:
        handle_domain_error(ctx, e)


@subscription_group.command("toggle")
@click.argument("subscription", metavar="SUBSCRIPTION")
@click.pass_context
def toggle_subscription(ctx, subscription: str):
    """Switch a subscription between active and inactive."""
    try:
        click.echo(dispatch(Action.TOGGLE_ACTIVE, ctx.obj["services"], subscription))
    except DomainError as e:
        handle_domain_error(ctx, e)


@subscription_group.command("pay")
@click.argument("subscription", metavar="SUBSCRIPTION")
@click.pass_context
def pay_subscription(ctx, subscription: str):
    """Record a payment and move to the next billing date."""
    try:
        click.echo(dispatch(Action.RECORD_PAYMENT, ctx.obj["services"], subscription))
    except DomainError as e:
        handle_domain_error(ctx, e)


@subscription_group.command("search")
@click.argument("query")
@click.pass_context
def search_subscriptions(ctx, query: str):
    """Search subscriptions by name, category or notes."""
    results = ctx.obj["services"].subscriptions.search(query)
    _echo_subscriptions(results, f"No subscriptions match '{query}'.")


@subscription_group.command("upcoming")
@click.option("--days", type=int, default=7, show_default=True, help="Look-ahead window in days")
@click.pass_context
def upcoming_renewals(ctx, days: int):
    """List active subscriptions renewing soon."""
    upcoming = ctx.obj["services"].subscriptions.get_upcoming_renewals(days)
    _echo_subscriptions(upcoming, f"No renewals in the next {days} days.")


@subscription_group.command("overdue")
@click.pass_context
def overdue_subscriptions(ctx):
    """List active subscriptions whose billing date has passed."""
    overdue = ctx.obj["services"].subscriptions.get_overdue()
    _echo_subscriptions(overdue, "No overdue subscriptions.")


def register_commands(cli):
    """Register subscription commands with main CLI."""
    cli.add_command(subscription_group, name="subscription")
