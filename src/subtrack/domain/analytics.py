"""Spending analytics over subscriptions."""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from dateutil.relativedelta import relativedelta

from subtrack.domain import billing
from subtrack.domain.subscription import SubscriptionService
from subtrack.utils.date_parser import (
    end_of_month,
    end_of_year,
    ensure_utc,
    start_of_month,
    start_of_year,
    utc_now,
)

MONTH = "month"
YEAR = "year"
PERIODS = (MONTH, YEAR)

ZERO = Decimal("0")


def _period_bounds(moment: datetime, period: str) -> tuple[datetime, datetime]:
    if period == MONTH:
        return start_of_month(moment), end_of_month(moment)
    if period == YEAR:
        return start_of_year(moment), end_of_year(moment)
    raise ValueError(f"Unknown period '{period}', expected one of {', '.join(PERIODS)}")


class AnalyticsService:
    """Derived statistics and trends; read-only over the subscription service."""

    def __init__(self, subscription_service: SubscriptionService):
        self.subscription_service = subscription_service

    def get_spending_for_period(self, moment: datetime, period: str = MONTH) -> Decimal:
        """Spend in the calendar month or year containing ``moment``.

        Counts recorded payments in the period plus the cost of every active
        subscription whose next billing date falls in it.

        Raises:
            ValueError: If period is not "month" or "year"
        """
        start, end = _period_bounds(moment, period)
        total = ZERO
        for sub in self.subscription_service.get_all():
            for payment in sub.history:
                if billing.is_within_range(payment.date, start, end):
                    total += payment.amount
            if sub.is_active and billing.is_within_range(sub.next_billing_date, start, end):
                total += sub.cost
        return total

    def get_spending_trends(
        self,
        period: str = MONTH,
        count: int = 12,
        now: Optional[datetime] = None,
    ) -> list[dict[str, Any]]:
        """Spend for the last ``count`` months or years, oldest first.

        Returns:
            List of dicts with label ("Jan 2024" or "2024"), amount and date
        """
        now = ensure_utc(now) if now else utc_now()
        trends = []
        for offset in range(count - 1, -1, -1):
            if period == MONTH:
                moment = now - relativedelta(months=offset)
                label = moment.strftime("%b %Y")
            elif period == YEAR:
                moment = now - relativedelta(years=offset)
                label = str(moment.year)
            else:
                raise ValueError(f"Unknown period '{period}', expected one of {', '.join(PERIODS)}")
            trends.append({
                "label": label,
                "amount": self.get_spending_for_period(moment, period),
                "date": moment,
            })
        return trends

    def get_spending_for_range(self, start: datetime, end: datetime) -> Decimal:
        """Sum of recorded payments dated within [start, end]."""
        return sum(
            (
                payment.amount
                for sub in self.subscription_service.get_all()
                for payment in sub.history
                if billing.is_within_range(payment.date, start, end)
            ),
            ZERO,
        )

    def compare_periods(
        self,
        period1_start: datetime,
        period1_end: datetime,
        period2_start: datetime,
        period2_end: datetime,
    ) -> dict[str, Any]:
        """Compare recorded spend of two ranges.

        Returns:
            Dict with period1, period2, difference (period2 - period1),
            percentage_change (0 when period1 is 0) and increased
        """
        first = self.get_spending_for_range(period1_start, period1_end)
        second = self.get_spending_for_range(period2_start, period2_end)
        difference = second - first
        return {
            "period1": first,
            "period2": second,
            "difference": difference,
            "percentage_change": difference / first * 100 if first > 0 else ZERO,
            "increased": difference > 0,
        }

    def get_year_over_year_comparison(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Compare last calendar year with the current one."""
        now = ensure_utc(now) if now else utc_now()
        last_year = now - relativedelta(years=1)
        return self.compare_periods(
            start_of_year(last_year),
            end_of_year(last_year),
            start_of_year(now),
            end_of_year(now),
        )

    def get_category_breakdown(self) -> list[dict[str, Any]]:
        """Monthly spend per category with its share, largest first."""
        spending = self.subscription_service.get_spending_by_category()
        total = sum(spending.values(), ZERO)
        breakdown = [
            {
                "category": category,
                "amount": amount,
                "percentage": amount / total * 100 if total > 0 else ZERO,
            }
            for category, amount in spending.items()
        ]
        return sorted(breakdown, key=lambda item: item["amount"], reverse=True)

    def get_top_categories(self, limit: int = 5) -> list[dict[str, Any]]:
        return self.get_category_breakdown()[:limit]

    def get_projected_spending(self, months: int = 12) -> Decimal:
        """Current monthly total extrapolated over ``months``."""
        return self.subscription_service.get_total_monthly_cost() * months

    def get_statistics(self) -> dict[str, Decimal]:
        """Min, max, average, median and total of active monthly costs."""
        costs = sorted(
            billing.monthly_equivalent(sub)
            for sub in self.subscription_service.get_active()
        )
        if not costs:
            return {"min": ZERO, "max": ZERO, "average": ZERO, "median": ZERO, "total": ZERO}

        total = sum(costs, ZERO)
        mid = len(costs) // 2
        if len(costs) % 2 == 0:
            median = (costs[mid - 1] + costs[mid]) / 2
        else:
            median = costs[mid]
        return {
            "min": costs[0],
            "max": costs[-1],
            "average": total / len(costs),
            "median": median,
            "total": total,
        }

    def get_cost_by_billing_cycle(self) -> dict[str, dict[str, Any]]:
        """Count, raw cost and monthly cost of active subscriptions per cycle type."""
        distribution: dict[str, dict[str, Any]] = defaultdict(
            lambda: {"count": 0, "total_cost": ZERO, "monthly_cost": ZERO}
        )
        for sub in self.subscription_service.get_active():
            cycle_type = sub.billing_cycle.type
            key = cycle_type.value if hasattr(cycle_type, "value") else str(cycle_type)
            entry = distribution[key]
            entry["count"] += 1
            entry["total_cost"] += sub.cost
            entry["monthly_cost"] += billing.monthly_equivalent(sub)
        return dict(distribution)
