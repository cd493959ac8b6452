"""Record validation rules.

Each validator returns the list of human-readable problems with a record;
an empty list means the record may be committed.
"""

import re
from datetime import datetime
from decimal import Decimal

from subtrack.domain.entities import (
    BillingCycleType,
    Budget,
    BudgetType,
    Category,
    Settings,
    Subscription,
    Theme,
)

HEX_COLOR = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)
CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")

BILLING_CYCLE_TYPES = tuple(t.value for t in BillingCycleType)
BUDGET_TYPES = tuple(t.value for t in BudgetType)
THEMES = tuple(t.value for t in Theme)


def _is_positive(value) -> bool:
    return isinstance(value, Decimal) and value.is_finite() and value > 0


def validate_currency_code(code: str) -> list[str]:
    """Check an ISO 4217 code."""
    if not code:
        return ["Currency is required"]
    if not CURRENCY_CODE.match(code):
        return [f"Invalid currency code '{code}'"]
    return []


def validate_subscription(subscription: Subscription) -> list[str]:
    """Validate a subscription record."""
    errors = []

    if not subscription.name or not subscription.name.strip():
        errors.append("Name is required")

    if not _is_positive(subscription.cost):
        errors.append("Cost must be greater than 0")

    errors.extend(validate_currency_code(subscription.currency))

    if not isinstance(subscription.next_billing_date, datetime):
        errors.append("Next billing date is required")

    cycle = subscription.billing_cycle
    if cycle.type not in BILLING_CYCLE_TYPES:
        errors.append("Invalid billing cycle type")
    elif cycle.type == BillingCycleType.CUSTOM and (
        not cycle.custom_days or cycle.custom_days <= 0
    ):
        errors.append("Custom billing cycle requires valid number of days")

    if any(day < 0 for day in subscription.reminder_days):
        errors.append("Reminder days cannot be negative")

    return errors


def validate_budget(budget: Budget) -> list[str]:
    """Validate a budget record."""
    errors = []

    if not _is_positive(budget.amount):
        errors.append("Budget amount must be greater than 0")

    if budget.type not in BUDGET_TYPES:
        errors.append("Invalid budget type")

    threshold = budget.alert_threshold
    if not isinstance(threshold, Decimal) or not (0 <= threshold <= 100):
        errors.append("Alert threshold must be between 0 and 100")

    errors.extend(validate_currency_code(budget.currency))

    if budget.period.end < budget.period.start:
        errors.append("Budget period must end after it starts")

    return errors


def validate_category(category: Category) -> list[str]:
    """Validate a category record."""
    errors = []

    if not category.name or not category.name.strip():
        errors.append("Category name is required")

    if not category.color or not HEX_COLOR.match(category.color):
        errors.append("Valid color hex code is required")

    return errors


def validate_settings(settings: Settings) -> list[str]:
    """Validate application settings."""
    errors = []

    if not settings.default_currency:
        errors.append("Default currency is required")

    if not settings.currencies:
        errors.append("At least one currency must be enabled")

    if settings.theme not in THEMES:
        errors.append("Invalid theme value")

    return errors
