"""Billing cycle arithmetic.

Pure functions over subscription records: next renewal date, days until
renewal, payment recording and normalisation of any cycle's cost to a
30-day month.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from subtrack.domain.entities import BillingCycle, BillingCycleType, Payment, Subscription
from subtrack.utils.date_parser import ensure_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_CUSTOM_DAYS = 30
DAYS_PER_MONTH = Decimal("30")
WEEKS_PER_MONTH = Decimal("4")
MONTHS_PER_QUARTER = Decimal("3")
MONTHS_PER_YEAR = Decimal("12")


def _custom_days(cycle: BillingCycle) -> int:
    return cycle.custom_days or DEFAULT_CUSTOM_DAYS


def cycle_step(cycle: BillingCycle) -> timedelta | relativedelta:
    """Offset covered by one billing cycle.

    Unrecognized cycle types fall back to the monthly step.
    """
    if cycle.type == BillingCycleType.DAILY:
        return timedelta(days=1)
    if cycle.type == BillingCycleType.WEEKLY:
        return timedelta(days=7)
    if cycle.type == BillingCycleType.MONTHLY:
        return relativedelta(months=1)
    if cycle.type == BillingCycleType.QUARTERLY:
        return relativedelta(months=3)
    if cycle.type == BillingCycleType.YEARLY:
        return relativedelta(years=1)
    if cycle.type == BillingCycleType.CUSTOM:
        return timedelta(days=_custom_days(cycle))

    logger.warning("Unknown billing cycle type %r, using monthly rule", cycle.type)
    return relativedelta(months=1)


def next_billing_date(current: datetime, cycle: BillingCycle) -> datetime:
    """Advance ``current`` by one billing cycle.

    Calendar-month steps keep the day of month and clamp to the last valid
    day when the target month is shorter (2024-01-31 + 1 month is
    2024-02-29).

    Args:
        current: Billing date to advance from
        cycle: Billing cycle descriptor

    Returns:
        Next billing date in UTC
    """
    return ensure_utc(current) + cycle_step(cycle)


def days_until_renewal(current: datetime, next_billing: datetime) -> int:
    """Whole days from ``current`` until ``next_billing``, rounded up.

    Negative values mean the renewal is overdue.
    """
    delta = ensure_utc(next_billing) - ensure_utc(current)
    return math.ceil(delta / timedelta(days=1))


def record_payment(subscription: Subscription, now: Optional[datetime] = None) -> Subscription:
    """Record the pending payment and move to the next billing date.

    Appends exactly one history entry for the current billing date and
    advances ``next_billing_date`` by exactly one cycle.

    Args:
        subscription: Subscription being paid
        now: Modification timestamp (defaults to current UTC time)

    Returns:
        New Subscription with updated history and billing date
    """
    payment = Payment(
        date=subscription.next_billing_date,
        amount=subscription.cost,
        currency=subscription.currency,
    )
    return replace(
        subscription,
        history=subscription.history + (payment,),
        next_billing_date=next_billing_date(
            subscription.next_billing_date, subscription.billing_cycle
        ),
        updated_at=ensure_utc(now) if now else utc_now(),
    )


def monthly_equivalent(subscription: Subscription) -> Decimal:
    """Approximate cost per 30-day month.

    Uses fixed factors rather than real calendar lengths: a month is 30
    days or 4 weeks.
    """
    cost = subscription.cost
    cycle = subscription.billing_cycle

    if cycle.type == BillingCycleType.DAILY:
        return cost * DAYS_PER_MONTH
    if cycle.type == BillingCycleType.WEEKLY:
        return cost * WEEKS_PER_MONTH
    if cycle.type == BillingCycleType.QUARTERLY:
        return cost / MONTHS_PER_QUARTER
    if cycle.type == BillingCycleType.YEARLY:
        return cost / MONTHS_PER_YEAR
    if cycle.type == BillingCycleType.CUSTOM:
        return cost / Decimal(_custom_days(cycle)) * DAYS_PER_MONTH
    return cost


def yearly_equivalent(subscription: Subscription) -> Decimal:
    """Monthly equivalent scaled to twelve months."""
    return monthly_equivalent(subscription) * MONTHS_PER_YEAR


def is_within_range(moment: datetime, start: datetime, end: datetime) -> bool:
    """Inclusive range check on timestamps."""
    return ensure_utc(start) <= ensure_utc(moment) <= ensure_utc(end)
