"""Domain model entities for subtrack.

These are pure data classes representing business concepts, independent of
how they are persisted. The storage layer converts them to and from
JSON-compatible records through the mappers in ``subtrack.database.mappers``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class BillingCycleType(str, Enum):
    """Recurrence rule for a subscription charge."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class BudgetType(str, Enum):
    """Budget scope."""

    MONTHLY = "monthly"
    YEARLY = "yearly"
    CATEGORY = "category"


class AlertLevel(str, Enum):
    """Severity of a budget's consumption, lowest first."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


class Theme(str, Enum):
    """UI theme preference."""

    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


@dataclass(frozen=True)
class BillingCycle:
    """Billing cycle descriptor.

    ``custom_days`` is only meaningful when ``type`` is ``CUSTOM``.
    """

    type: BillingCycleType = BillingCycleType.MONTHLY
    custom_days: Optional[int] = None


@dataclass(frozen=True)
class Payment:
    """A recorded subscription payment."""

    date: datetime
    amount: Decimal
    currency: str


@dataclass(frozen=True)
class Subscription:
    """Recurring subscription domain entity."""

    id: str
    name: str
    cost: Decimal
    currency: str
    billing_cycle: BillingCycle
    next_billing_date: datetime
    created_at: datetime
    updated_at: datetime
    category: str = "Other"
    notes: str = ""
    payment_method: str = ""
    is_active: bool = True
    reminder_days: tuple[int, ...] = (3,)
    history: tuple[Payment, ...] = ()


@dataclass(frozen=True)
class BudgetPeriod:
    """Inclusive date window a budget applies to."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class Budget:
    """Spending cap over a fixed period."""

    id: str
    type: BudgetType
    amount: Decimal
    currency: str
    period: BudgetPeriod
    created_at: datetime
    updated_at: datetime
    category: Optional[str] = None
    alert_threshold: Decimal = Decimal("80")
    is_active: bool = True


@dataclass(frozen=True)
class Category:
    """Subscription category domain entity."""

    id: str
    name: str
    color: str
    icon: str
    created_at: datetime


@dataclass(frozen=True)
class NotificationPreferences:
    """Renewal reminder preferences."""

    enabled: bool = True
    default_reminder_days: tuple[int, ...] = (3,)
    sound: bool = True
    show_in_tray: bool = True


@dataclass(frozen=True)
class Settings:
    """Application settings.

    ``exchange_rates`` maps a base currency to ``{target: rate}`` where one
    unit of base buys ``rate`` units of target.
    """

    default_currency: str = "USD"
    currencies: tuple[str, ...] = ("USD", "EUR", "GBP", "CAD", "AUD")
    exchange_rates: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    last_rates_update: Optional[datetime] = None
    notifications: NotificationPreferences = field(
        default_factory=NotificationPreferences
    )
    theme: Theme = Theme.AUTO
    start_on_login: bool = False
    minimize_to_tray: bool = False


@dataclass(frozen=True)
class BudgetStatus:
    """Derived spending state of a budget."""

    budget: Budget
    spent: Decimal
    remaining: Decimal
    percentage_used: Decimal
    alert_level: AlertLevel
    should_alert: bool
    over_budget: bool
