"""Settings domain service."""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from subtrack.database.base import Database
from subtrack.domain.currency import lookup_rate
from subtrack.domain.entities import NotificationPreferences, Settings, Theme
from subtrack.domain.errors import ConflictError, ValidationError, default_currency_removal
from subtrack.domain.validation import validate_currency_code, validate_settings
from subtrack.utils.amount_parser import parse_amount
from subtrack.utils.date_parser import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class SettingsService:
    """Service for reading and changing application settings."""

    def __init__(self, db: Database):
        """Initialize settings service.

        Args:
            db: Database instance
        """
        self.db = db
        self.settings = Settings()
        self.load()

    def load(self) -> Settings:
        """Reload settings, falling back to defaults when none are stored."""
        self.settings = self.db.load_settings() or Settings()
        return self.settings

    def save(self) -> bool:
        """Persist settings.

        Returns:
            True if the write succeeded
        """
        try:
            self.db.save_settings(self.settings)
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to save settings: %s", e)
            return False

    def get(self) -> Settings:
        """Current settings."""
        return self.settings

    def update(self, **changes: Any) -> Settings:
        """Change settings fields.

        Args:
            **changes: Settings field names and new values

        Returns:
            The updated Settings

        Raises:
            ValidationError: If a field is unknown or the result is invalid
        """
        unknown = set(changes) - set(Settings.__dataclass_fields__)
        if unknown:
            raise ValidationError([f"Unknown setting '{f}'" for f in sorted(unknown)])

        if changes.get("default_currency"):
            changes["default_currency"] = changes["default_currency"].upper()
        if "currencies" in changes:
            changes["currencies"] = tuple(c.upper() for c in changes["currencies"])
        if "theme" in changes:
            try:
                changes["theme"] = Theme(changes["theme"])
            except ValueError:
                pass
        if isinstance(changes.get("notifications"), dict):
            bad = set(changes["notifications"]) - set(NotificationPreferences.__dataclass_fields__)
            if bad:
                raise ValidationError([f"Unknown notification setting '{f}'" for f in sorted(bad)])
            changes["notifications"] = replace(self.settings.notifications, **changes["notifications"])

        updated = replace(self.settings, **changes)
        errors = validate_settings(updated)
        if errors:
            raise ValidationError(errors)

        self.settings = updated
        self.save()
        return updated

    def add_currency(self, currency: str) -> bool:
        """Enable a currency.

        Returns:
            False if it was already enabled

        Raises:
            ValidationError: If the code is not a three-letter ISO code
        """
        currency = currency.upper()
        errors = validate_currency_code(currency)
        if errors:
            raise ValidationError(errors)
        if currency in self.settings.currencies:
            return False
        self.settings = replace(self.settings, currencies=self.settings.currencies + (currency,))
        self.save()
        return True

    def remove_currency(self, currency: str) -> bool:
        """Disable a currency.

        Returns:
            False if it was not enabled

        Raises:
            ConflictError: If it is the default currency
        """
        currency = currency.upper()
        if currency == self.settings.default_currency:
            raise ConflictError(default_currency_removal(currency))
        if currency not in self.settings.currencies:
            return False
        self.settings = replace(
            self.settings,
            currencies=tuple(c for c in self.settings.currencies if c != currency),
        )
        self.save()
        return True

    def set_exchange_rate(self, from_currency: str, to_currency: str, rate: Decimal | str) -> None:
        """Store a manual exchange rate.

        Raises:
            ValidationError: If the rate is not a positive number
        """
        try:
            value = parse_amount(rate)
        except ValueError as e:
            raise ValidationError([str(e)])
        if value <= 0:
            raise ValidationError(["Exchange rate must be greater than 0"])

        rates = {base: dict(targets) for base, targets in self.settings.exchange_rates.items()}
        rates.setdefault(from_currency.upper(), {})[to_currency.upper()] = value
        self.settings = replace(self.settings, exchange_rates=rates)
        self.save()

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        """Stored rate between two currencies (identity, direct or inverse)."""
        return lookup_rate(self.settings.exchange_rates, from_currency.upper(), to_currency.upper())

    def store_rates(
        self,
        base_currency: str,
        rates: dict[str, Decimal],
        fetched_at: Optional[datetime] = None,
    ) -> None:
        """Replace the rate table for one base currency and stamp the update time."""
        table = {base: dict(targets) for base, targets in self.settings.exchange_rates.items()}
        table[base_currency.upper()] = dict(rates)
        self.settings = replace(
            self.settings,
            exchange_rates=table,
            last_rates_update=ensure_utc(fetched_at) if fetched_at else utc_now(),
        )
        self.save()

    def set_notifications(self, **changes: Any) -> NotificationPreferences:
        """Change notification preferences."""
        return self.update(notifications=changes).notifications
