"""Mapper functions to convert between domain entities and stored records.

Records are JSON-compatible dicts using the camelCase keys of the desktop
app's data files, so exported backups stay interchangeable. Decimals are
written as strings to keep them exact; plain numbers are accepted on read.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from subtrack.domain import entities as domain
from subtrack.utils.amount_parser import parse_amount
from subtrack.utils.date_parser import format_timestamp, parse_timestamp, utc_now

logger = logging.getLogger(__name__)


class RecordError(ValueError):
    """A stored record cannot be converted to a domain entity."""


def _require(record: dict[str, Any], key: str) -> Any:
    if not isinstance(record, dict):
        raise RecordError(f"Expected an object, got {type(record).__name__}")
    if record.get(key) is None:
        raise RecordError(f"Missing field '{key}'")
    return record[key]


def _timestamp(record: dict[str, Any], key: str, default=None):
    value = record.get(key)
    if value is None:
        if default is not None:
            return default
        raise RecordError(f"Missing field '{key}'")
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise RecordError(f"Field '{key}': {e}")


def _decimal(value: Any, key: str) -> Decimal:
    try:
        return parse_amount(value)
    except (ValueError, AttributeError) as e:
        raise RecordError(f"Field '{key}': {e}")


def _decimal_str(value: Decimal) -> str:
    return str(value)


def coerce_cycle_type(value: Any) -> domain.BillingCycleType | str:
    """Map a stored cycle type to the enum, keeping unknown values as-is.

    Unknown types survive loading so existing data still renders; billing
    arithmetic treats them as monthly and validation rejects them on write.
    """
    try:
        return domain.BillingCycleType(value)
    except ValueError:
        logger.warning("Stored billing cycle type %r is not recognized", value)
        return str(value)


def billing_cycle_to_record(cycle: domain.BillingCycle) -> dict[str, Any]:
    """Convert a BillingCycle to its record form."""
    cycle_type = cycle.type.value if isinstance(cycle.type, domain.BillingCycleType) else cycle.type
    return {"type": cycle_type, "customDays": cycle.custom_days}


def billing_cycle_from_record(record: Optional[dict[str, Any]]) -> domain.BillingCycle:
    """Convert a record to a BillingCycle (monthly when absent)."""
    if not record:
        return domain.BillingCycle()
    custom_days = record.get("customDays")
    return domain.BillingCycle(
        type=coerce_cycle_type(record.get("type", "monthly")),
        custom_days=int(custom_days) if custom_days is not None else None,
    )


def payment_to_record(payment: domain.Payment) -> dict[str, Any]:
    """Convert a Payment to its record form."""
    return {
        "date": format_timestamp(payment.date),
        "amount": _decimal_str(payment.amount),
        "currency": payment.currency,
    }


def payment_from_record(record: dict[str, Any]) -> domain.Payment:
    """Convert a record to a Payment."""
    return domain.Payment(
        date=_timestamp(record, "date"),
        amount=_decimal(_require(record, "amount"), "amount"),
        currency=record.get("currency") or "USD",
    )


def subscription_to_record(sub: domain.Subscription) -> dict[str, Any]:
    """Convert a Subscription entity to a stored record."""
    return {
        "id": sub.id,
        "name": sub.name,
        "cost": _decimal_str(sub.cost),
        "currency": sub.currency,
        "billingCycle": billing_cycle_to_record(sub.billing_cycle),
        "nextBillingDate": format_timestamp(sub.next_billing_date),
        "category": sub.category,
        "notes": sub.notes,
        "paymentMethod": sub.payment_method,
        "isActive": sub.is_active,
        "reminderDays": list(sub.reminder_days),
        "createdAt": format_timestamp(sub.created_at),
        "updatedAt": format_timestamp(sub.updated_at),
        "history": [payment_to_record(p) for p in sub.history],
    }


def subscription_from_record(record: dict[str, Any]) -> domain.Subscription:
    """Convert a stored record to a Subscription entity.

    Raises:
        RecordError: If a required field is missing or malformed
    """
    now = utc_now()
    try:
        return domain.Subscription(
            id=str(_require(record, "id")),
            name=record.get("name") or "",
            cost=_decimal(_require(record, "cost"), "cost"),
            currency=record.get("currency") or "USD",
            billing_cycle=billing_cycle_from_record(record.get("billingCycle")),
            next_billing_date=_timestamp(record, "nextBillingDate"),
            category=record.get("category") or "Other",
            notes=record.get("notes") or "",
            payment_method=record.get("paymentMethod") or "",
            is_active=bool(record.get("isActive", True)),
            reminder_days=tuple(int(d) for d in record.get("reminderDays") or [3]),
            created_at=_timestamp(record, "createdAt", default=now),
            updated_at=_timestamp(record, "updatedAt", default=now),
            history=tuple(payment_from_record(p) for p in record.get("history") or []),
        )
    except (TypeError, AttributeError) as e:
        raise RecordError(f"Malformed subscription record: {e}")


def budget_to_record(budget: domain.Budget) -> dict[str, Any]:
    """Convert a Budget entity to a stored record."""
    budget_type = budget.type.value if isinstance(budget.type, domain.BudgetType) else budget.type
    return {
        "id": budget.id,
        "type": budget_type,
        "amount": _decimal_str(budget.amount),
        "currency": budget.currency,
        "category": budget.category,
        "period": {
            "start": format_timestamp(budget.period.start),
            "end": format_timestamp(budget.period.end),
        },
        "alertThreshold": _decimal_str(budget.alert_threshold),
        "isActive": budget.is_active,
        "createdAt": format_timestamp(budget.created_at),
        "updatedAt": format_timestamp(budget.updated_at),
    }


def budget_from_record(record: dict[str, Any]) -> domain.Budget:
    """Convert a stored record to a Budget entity.

    Raises:
        RecordError: If a required field is missing or malformed
    """
    now = utc_now()
    period = _require(record, "period")
    raw_type = record.get("type") or "monthly"
    try:
        budget_type = domain.BudgetType(raw_type)
    except ValueError:
        budget_type = raw_type
    try:
        return domain.Budget(
            id=str(_require(record, "id")),
            type=budget_type,
            amount=_decimal(_require(record, "amount"), "amount"),
            currency=record.get("currency") or "USD",
            category=record.get("category") or None,
            period=domain.BudgetPeriod(
                start=_timestamp(period, "start"),
                end=_timestamp(period, "end"),
            ),
            alert_threshold=_decimal(record.get("alertThreshold", 80), "alertThreshold"),
            is_active=bool(record.get("isActive", True)),
            created_at=_timestamp(record, "createdAt", default=now),
            updated_at=_timestamp(record, "updatedAt", default=now),
        )
    except (TypeError, AttributeError) as e:
        raise RecordError(f"Malformed budget record: {e}")


def category_to_record(category: domain.Category) -> dict[str, Any]:
    """Convert a Category entity to a stored record."""
    return {
        "id": category.id,
        "name": category.name,
        "color": category.color,
        "icon": category.icon,
        "createdAt": format_timestamp(category.created_at),
    }


def category_from_record(record: dict[str, Any]) -> domain.Category:
    """Convert a stored record to a Category entity."""
    return domain.Category(
        id=str(_require(record, "id")),
        name=record.get("name") or "",
        color=record.get("color") or "",
        icon=record.get("icon") or "📁",
        created_at=_timestamp(record, "createdAt", default=utc_now()),
    )


def settings_to_record(settings: domain.Settings) -> dict[str, Any]:
    """Convert Settings to a stored record."""
    theme = settings.theme.value if isinstance(settings.theme, domain.Theme) else settings.theme
    notifications = settings.notifications
    return {
        "defaultCurrency": settings.default_currency,
        "currencies": list(settings.currencies),
        "exchangeRates": {
            base: {target: _decimal_str(rate) for target, rate in targets.items()}
            for base, targets in settings.exchange_rates.items()
        },
        "lastRatesUpdate": format_timestamp(settings.last_rates_update),
        "notifications": {
            "enabled": notifications.enabled,
            "defaultReminderDays": list(notifications.default_reminder_days),
            "sound": notifications.sound,
            "showInTray": notifications.show_in_tray,
        },
        "theme": theme,
        "startOnLogin": settings.start_on_login,
        "minimizeToTray": settings.minimize_to_tray,
    }


def settings_from_record(record: dict[str, Any]) -> domain.Settings:
    """Convert a stored record to Settings, filling defaults for absent keys."""
    if not isinstance(record, dict):
        raise RecordError(f"Expected an object, got {type(record).__name__}")
    defaults = domain.Settings()
    notifications = record.get("notifications") or {}
    raw_theme = record.get("theme") or defaults.theme.value
    try:
        theme = domain.Theme(raw_theme)
    except ValueError:
        theme = raw_theme
    last_update = record.get("lastRatesUpdate")
    try:
        return domain.Settings(
            default_currency=record.get("defaultCurrency", defaults.default_currency),
            currencies=tuple(record.get("currencies", defaults.currencies)),
            exchange_rates={
                base: {target: _decimal(rate, f"exchangeRates.{base}.{target}")
                       for target, rate in targets.items()}
                for base, targets in (record.get("exchangeRates") or {}).items()
            },
            last_rates_update=parse_timestamp(last_update) if last_update else None,
            notifications=domain.NotificationPreferences(
                enabled=bool(notifications.get("enabled", True)),
                default_reminder_days=tuple(
                    int(d) for d in notifications.get("defaultReminderDays", [3])
                ),
                sound=bool(notifications.get("sound", True)),
                show_in_tray=bool(notifications.get("showInTray", True)),
            ),
            theme=theme,
            start_on_login=bool(record.get("startOnLogin", False)),
            minimize_to_tray=bool(record.get("minimizeToTray", False)),
        )
    except (TypeError, AttributeError, ValueError) as e:
        raise RecordError(f"Malformed settings record: {e}")
