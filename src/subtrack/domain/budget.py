"""Budget evaluation: spend within a period and alert levels."""

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from dateutil.relativedelta import relativedelta

from subtrack.domain.billing import is_within_range
from subtrack.domain.entities import (
    AlertLevel,
    Budget,
    BudgetStatus,
    BudgetType,
    Subscription,
)
from subtrack.utils.date_parser import ensure_utc

INFO_FRACTION = Decimal("0.75")
FULL = Decimal("100")


def period_end_for(budget_type: BudgetType | str, start: datetime) -> datetime:
    """Derive the end of a budget period from its type.

    Yearly budgets span one calendar year; every other type spans one
    calendar month.
    """
    if budget_type == BudgetType.YEARLY:
        return ensure_utc(start) + relativedelta(years=1)
    return ensure_utc(start) + relativedelta(months=1)


def spending_for_budget(budget: Budget, subscriptions: Iterable[Subscription]) -> Decimal:
    """Total spend counted against a budget.

    For every subscription matching the budget's category filter, this sums
    the history payments dated inside the period plus the subscription cost
    once when it is active and its next billing date falls inside the
    period. A payment and an upcoming renewal in the same period are both
    counted.
    """
    start, end = budget.period.start, budget.period.end
    spent = Decimal("0")

    for sub in subscriptions:
        if budget.category and sub.category != budget.category:
            continue

        for payment in sub.history:
            if is_within_range(payment.date, start, end):
                spent += payment.amount

        if sub.is_active and is_within_range(sub.next_billing_date, start, end):
            spent += sub.cost

    return spent


def percentage_used(spent: Decimal, amount: Decimal) -> Decimal:
    """Share of ``amount`` consumed by ``spent``, in percent (not clamped)."""
    if amount == 0:
        return Decimal("0")
    return Decimal(spent) / Decimal(amount) * FULL


def alert_level(spent: Decimal, budget: Budget) -> AlertLevel:
    """Classify budget consumption, checking the most severe level first."""
    used = percentage_used(spent, budget.amount)
    threshold = Decimal(budget.alert_threshold)

    if used >= FULL:
        return AlertLevel.DANGER
    if used >= threshold:
        return AlertLevel.WARNING
    if used >= threshold * INFO_FRACTION:
        return AlertLevel.INFO
    return AlertLevel.SUCCESS


def should_alert(spent: Decimal, budget: Budget) -> bool:
    """Whether consumption has reached the budget's alert threshold."""
    return percentage_used(spent, budget.amount) >= Decimal(budget.alert_threshold)


def budget_status(budget: Budget, subscriptions: Iterable[Subscription]) -> BudgetStatus:
    """Evaluate a budget against a set of subscriptions."""
    spent = spending_for_budget(budget, subscriptions)
    return BudgetStatus(
        budget=budget,
        spent=spent,
        remaining=budget.amount - spent,
        percentage_used=percentage_used(spent, budget.amount),
        alert_level=alert_level(spent, budget),
        should_alert=should_alert(spent, budget),
        over_budget=spent > budget.amount,
    )
