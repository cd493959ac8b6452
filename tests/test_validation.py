"""Tests for record validation rules."""

from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal

import pytest

from subtrack.domain.entities import (
    BillingCycle,
    BillingCycleType,
    Budget,
    BudgetPeriod,
    BudgetType,
    Category,
    Settings,
    Subscription,
)
from subtrack.domain.validation import (
    validate_budget,
    validate_category,
    validate_currency_code,
    validate_settings,
    validate_subscription,
)

MOMENT = datetime(2024, 1, 1, tzinfo=UTC)

SUBSCRIPTION = Subscription(
    id="s1",
    name="Netflix",
    cost=Decimal("15.99"),
    currency="USD",
    billing_cycle=BillingCycle(),
    next_billing_date=MOMENT,
    created_at=MOMENT,
    updated_at=MOMENT,
)

BUDGET = Budget(
    id="b1",
    type=BudgetType.MONTHLY,
    amount=Decimal("100"),
    currency="USD",
    period=BudgetPeriod(start=MOMENT, end=datetime(2024, 2, 1, tzinfo=UTC)),
    created_at=MOMENT,
    updated_at=MOMENT,
)


def test_valid_subscription():
    assert validate_subscription(SUBSCRIPTION) == []


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"name": "  "}, "Name is required"),
        ({"cost": Decimal("0")}, "Cost must be greater than 0"),
        ({"cost": Decimal("-5")}, "Cost must be greater than 0"),
        ({"cost": None}, "Cost must be greater than 0"),
        ({"currency": ""}, "Currency is required"),
        ({"currency": "usd"}, "Invalid currency code 'usd'"),
        ({"next_billing_date": None}, "Next billing date is required"),
        ({"billing_cycle": BillingCycle(type="fortnightly")}, "Invalid billing cycle type"),
        ({"billing_cycle": BillingCycle(type=BillingCycleType.CUSTOM)},
         "Custom billing cycle requires valid number of days"),
        ({"billing_cycle": BillingCycle(type=BillingCycleType.CUSTOM, custom_days=0)},
         "Custom billing cycle requires valid number of days"),
        ({"reminder_days": (3, -1)}, "Reminder days cannot be negative"),
    ],
)
def test_invalid_subscription(changes, message):
    assert validate_subscription(replace(SUBSCRIPTION, **changes)) == [message]


def test_subscription_errors_are_collected():
    errors = validate_subscription(replace(SUBSCRIPTION, name="", cost=Decimal("0")))
    assert errors == ["Name is required", "Cost must be greater than 0"]


def test_valid_budget():
    assert validate_budget(BUDGET) == []


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"amount": Decimal("0")}, "Budget amount must be greater than 0"),
        ({"type": "weekly"}, "Invalid budget type"),
        ({"alert_threshold": Decimal("101")}, "Alert threshold must be between 0 and 100"),
        ({"alert_threshold": Decimal("-1")}, "Alert threshold must be between 0 and 100"),
        ({"currency": "EURO"}, "Invalid currency code 'EURO'"),
        ({"period": BudgetPeriod(start=MOMENT, end=datetime(2023, 12, 1, tzinfo=UTC))},
         "Budget period must end after it starts"),
    ],
)
def test_invalid_budget(changes, message):
    assert validate_budget(replace(BUDGET, **changes)) == [message]


def test_threshold_bounds_are_inclusive():
    assert validate_budget(replace(BUDGET, alert_threshold=Decimal("0"))) == []
    assert validate_budget(replace(BUDGET, alert_threshold=Decimal("100"))) == []


@pytest.mark.parametrize("color", ["#FF5733", "#ff5733"])
def test_valid_category(color):
    category = Category(id="c", name="Gaming", color=color, icon="🎮", created_at=MOMENT)
    assert validate_category(category) == []


@pytest.mark.parametrize("color", ["", "FF5733", "#FFF", "#GG5733"])
def test_invalid_category_color(color):
    category = Category(id="c", name="Gaming", color=color, icon="🎮", created_at=MOMENT)
    assert validate_category(category) == ["Valid color hex code is required"]


def test_validate_settings():
    assert validate_settings(Settings()) == []
    assert validate_settings(Settings(theme="sepia")) == ["Invalid theme value"]


def test_validate_currency_code():
    assert validate_currency_code("GBP") == []
    assert validate_currency_code("GB") == ["Invalid currency code 'GB'"]
