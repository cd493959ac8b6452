"""Display formatting helpers shared by the CLI and exports."""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from subtrack.domain.entities import BillingCycle, BillingCycleType

ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW", "VND", "CLP"}


def format_billing_cycle(cycle: BillingCycle) -> str:
    """Human-readable billing cycle, e.g. ``Monthly`` or ``Every 10 days``."""
    if cycle.type == BillingCycleType.CUSTOM:
        days = cycle.custom_days
        return f"Every {days} day{'s' if days != 1 else ''}"
    value = cycle.type.value if isinstance(cycle.type, BillingCycleType) else str(cycle.type)
    return value.capitalize()


def format_amount(amount: Decimal, currency: str) -> str:
    """Format an amount with grouping and the currency code.

    Zero-decimal currencies (JPY, KRW, ...) are shown without cents.
    """
    places = Decimal("1") if currency in ZERO_DECIMAL_CURRENCIES else Decimal("0.01")
    rounded = amount.quantize(places, rounding=ROUND_HALF_UP)
    return f"{rounded:,} {currency}"


def format_percentage(value: Decimal, decimals: int = 0) -> str:
    """Format a percentage value, e.g. ``85%``."""
    return f"{value:.{decimals}f}%"


def format_date(value: datetime) -> str:
    """Calendar date portion of a timestamp, ``YYYY-MM-DD``."""
    return value.date().isoformat()


def format_status(is_active: bool) -> str:
    """Active/Inactive label."""
    return "Active" if is_active else "Inactive"


def format_days_until(days: int) -> str:
    """Relative renewal label, e.g. ``in 3 days``, ``today``, ``2 days overdue``."""
    if days == 0:
        return "today"
    if days < 0:
        overdue = -days
        return f"{overdue} day{'s' if overdue != 1 else ''} overdue"
    return f"in {days} day{'s' if days != 1 else ''}"


def format_reminder(name: str, days: int, cost: Decimal, currency: str) -> str:
    """Renewal reminder text, e.g. ``Netflix renews in 3 days - 15.99 USD``."""
    return f"{name} renews {format_days_until(days)} - {cost} {currency}"


def format_timestamp_or_never(value: datetime | None) -> str:
    """``YYYY-MM-DD HH:MM UTC`` or ``never``."""
    if value is None:
        return "never"
    return value.strftime("%Y-%m-%d %H:%M UTC")
