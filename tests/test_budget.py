"""Tests for budget evaluation."""

from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest

from subtrack.domain.budget import (
    alert_level,
    budget_status,
    percentage_used,
    period_end_for,
    should_alert,
    spending_for_budget,
)
from subtrack.domain.entities import (
    AlertLevel,
    BillingCycle,
    BillingCycleType,
    Budget,
    BudgetPeriod,
    BudgetType,
    Payment,
    Subscription,
)

START = datetime(2024, 1, 1, tzinfo=UTC)
END = datetime(2024, 2, 1, tzinfo=UTC)


def make_budget(amount="100", category=None, threshold="80", budget_type=BudgetType.MONTHLY):
    return Budget(
        id="budget-1",
        type=budget_type,
        amount=Decimal(amount),
        currency="USD",
        category=category,
        period=BudgetPeriod(start=START, end=END),
        alert_threshold=Decimal(threshold),
        created_at=START,
        updated_at=START,
    )


def make_subscription(cost, next_billing, category="Other", is_active=True, history=(), cycle=BillingCycleType.MONTHLY):
    return Subscription(
        id=f"sub-{cost}-{category}",
        name="Test",
        cost=Decimal(cost),
        currency="USD",
        billing_cycle=BillingCycle(type=cycle),
        next_billing_date=next_billing,
        category=category,
        is_active=is_active,
        history=tuple(history),
        created_at=START,
        updated_at=START,
    )


class TestPeriodEnd:
    """Tests for period_end_for."""

    def test_monthly(self):
        assert period_end_for(BudgetType.MONTHLY, datetime(2024, 1, 31, tzinfo=UTC)) == datetime(2024, 2, 29, tzinfo=UTC)

    def test_category_spans_a_month(self):
        assert period_end_for(BudgetType.CATEGORY, START) == END

    def test_yearly(self):
        assert period_end_for(BudgetType.YEARLY, START) == datetime(2025, 1, 1, tzinfo=UTC)


class TestPercentageUsed:
    """Tests for percentage_used."""

    def test_half(self):
        assert percentage_used(Decimal("50"), Decimal("100")) == Decimal("50")

    def test_zero_amount(self):
        assert percentage_used(Decimal("10"), Decimal("0")) == Decimal("0")

    def test_not_clamped(self):
        assert percentage_used(Decimal("150"), Decimal("100")) == Decimal("150")


class TestAlertLevel:
    """Tests for alert_level with the default threshold of 80."""

    @pytest.mark.parametrize(
        "spent,expected",
        [
            ("100", AlertLevel.DANGER),
            ("120", AlertLevel.DANGER),
            ("85", AlertLevel.WARNING),
            ("80", AlertLevel.WARNING),
            ("65", AlertLevel.INFO),
            ("60", AlertLevel.INFO),
            ("50", AlertLevel.SUCCESS),
            ("0", AlertLevel.SUCCESS),
        ],
    )
    def test_levels(self, spent, expected):
        assert alert_level(Decimal(spent), make_budget()) == expected

    def test_custom_threshold(self):
        budget = make_budget(threshold="50")
        assert alert_level(Decimal("50"), budget) == AlertLevel.WARNING
        assert alert_level(Decimal("40"), budget) == AlertLevel.INFO

    def test_should_alert(self):
        assert should_alert(Decimal("80"), make_budget())
        assert not should_alert(Decimal("79.99"), make_budget())


class TestSpendingForBudget:
    """Tests for spending_for_budget."""

    def test_counts_renewal_in_period(self):
        subs = [make_subscription("12", datetime(2024, 1, 10, tzinfo=UTC))]
        assert spending_for_budget(make_budget(), subs) == Decimal("12")

    def test_ignores_renewal_outside_period(self):
        subs = [make_subscription("12", datetime(2024, 3, 10, tzinfo=UTC))]
        assert spending_for_budget(make_budget(), subs) == Decimal("0")

    def test_inactive_renewal_not_counted_but_history_is(self):
        payment = Payment(date=datetime(2024, 1, 5, tzinfo=UTC), amount=Decimal("7"), currency="USD")
        subs = [make_subscription("12", datetime(2024, 1, 10, tzinfo=UTC), is_active=False, history=[payment])]
        assert spending_for_budget(make_budget(), subs) == Decimal("7")

    def test_payment_and_renewal_in_same_period_both_count(self):
        payment = Payment(date=datetime(2024, 1, 2, tzinfo=UTC), amount=Decimal("5"), currency="USD")
        subs = [make_subscription("5", datetime(2024, 1, 20, tzinfo=UTC), history=[payment])]
        assert spending_for_budget(make_budget(), subs) == Decimal("10")

    def test_period_bounds_are_inclusive(self):
        subs = [
            make_subscription("1", START),
            make_subscription("2", END),
            make_subscription("4", END + timedelta(seconds=1)),
        ]
        assert spending_for_budget(make_budget(), subs) == Decimal("3")

    def test_category_filter(self):
        subs = [
            make_subscription("10", datetime(2024, 1, 10, tzinfo=UTC), category="Streaming"),
            make_subscription("20", datetime(2024, 1, 10, tzinfo=UTC), category="Software"),
        ]
        budget = make_budget(category="Streaming", budget_type=BudgetType.CATEGORY)
        assert spending_for_budget(budget, subs) == Decimal("10")


class TestBudgetStatus:
    """Tests for budget_status."""

    def test_yearly_charge_in_small_monthly_budget(self):
        """A yearly 12 charge in a monthly budget of 5 is 240 % and danger."""
        subs = [make_subscription("12", datetime(2024, 1, 15, tzinfo=UTC), cycle=BillingCycleType.YEARLY)]
        status = budget_status(make_budget(amount="5"), subs)

        assert status.spent == Decimal("12")
        assert status.percentage_used == Decimal("240")
        assert status.alert_level == AlertLevel.DANGER
        assert status.over_budget
        assert status.should_alert
        assert status.remaining == Decimal("-7")

    def test_under_budget(self):
        subs = [make_subscription("30", datetime(2024, 1, 15, tzinfo=UTC))]
        status = budget_status(make_budget(), subs)

        assert status.remaining == Decimal("70")
        assert status.alert_level == AlertLevel.SUCCESS
        assert not status.over_budget
        assert not status.should_alert
