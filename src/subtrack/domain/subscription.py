"""Subscription domain service."""

import logging
import uuid
from collections import defaultdict
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from subtrack.database.base import Database
from subtrack.domain import billing
from subtrack.domain.entities import BillingCycle, BillingCycleType, Subscription
from subtrack.domain.errors import NotFoundError, ValidationError, subscription_not_found
from subtrack.domain.validation import validate_subscription
from subtrack.utils.amount_parser import try_parse_amount
from subtrack.utils.date_parser import ensure_utc, utc_now

if TYPE_CHECKING:
    from subtrack.domain.currency import CurrencyService

logger = logging.getLogger(__name__)

# Fields a caller may not change through update()
PROTECTED_FIELDS = {"id", "created_at", "updated_at"}


def normalize_billing_cycle(cycle: BillingCycle) -> BillingCycle:
    """Drop ``custom_days`` from non-custom cycles."""
    if cycle.type != BillingCycleType.CUSTOM and cycle.custom_days is not None:
        return replace(cycle, custom_days=None)
    return cycle


class SubscriptionService:
    """Service for managing subscriptions.

    Holds the subscription collection in memory and writes it back to the
    database after each mutation.
    """

    def __init__(self, db: Database, currency_service: Optional["CurrencyService"] = None):
        """Initialize subscription service.

        Args:
            db: Database instance
            currency_service: Optional converter used for totals in a target currency
        """
        self.db = db
        self.currency_service = currency_service
        self.subscriptions: list[Subscription] = []
        self.load()

    def load(self) -> list[Subscription]:
        """Reload subscriptions from the database."""
        self.subscriptions = self.db.load_subscriptions()
        logger.debug("Loaded %d subscriptions", len(self.subscriptions))
        return self.subscriptions

    def save(self) -> bool:
        """Persist subscriptions.

        Storage failures are logged and reported through the return value;
        the in-memory collection keeps the change either way.

        Returns:
            True if the write succeeded
        """
        try:
            self.db.save_subscriptions(self.subscriptions)
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to save subscriptions: %s", e)
            return False

    def get_all(self) -> list[Subscription]:
        """List all subscriptions."""
        return list(self.subscriptions)

    def get_active(self) -> list[Subscription]:
        """List active subscriptions."""
        return [s for s in self.subscriptions if s.is_active]

    def get_inactive(self) -> list[Subscription]:
        """List inactive subscriptions."""
        return [s for s in self.subscriptions if not s.is_active]

    def get_by_id(self, subscription_id: str) -> Optional[Subscription]:
        """Get subscription by ID, or None."""
        for sub in self.subscriptions:
            if sub.id == subscription_id:
                return sub
        return None

    def require(self, subscription_id: str) -> Subscription:
        """Get subscription by ID.

        Raises:
            NotFoundError: If no subscription has that ID
        """
        sub = self.get_by_id(subscription_id)
        if sub is None:
            raise NotFoundError(subscription_not_found(subscription_id))
        return sub

    def get_by_category(self, category: str) -> list[Subscription]:
        """List subscriptions in a category."""
        return [s for s in self.subscriptions if s.category == category]

    def _index_of(self, subscription_id: str) -> int:
        for index, sub in enumerate(self.subscriptions):
            if sub.id == subscription_id:
                return index
        raise NotFoundError(subscription_not_found(subscription_id))

    def create(
        self,
        name: str,
        cost: Decimal,
        next_billing_date: datetime,
        currency: str = "USD",
        billing_cycle: Optional[BillingCycle] = None,
        category: str = "Other",
        notes: str = "",
        payment_method: str = "",
        is_active: bool = True,
        reminder_days: Iterable[int] = (3,),
        now: Optional[datetime] = None,
    ) -> Subscription:
        """Create a subscription.

        Returns:
            The created Subscription

        Raises:
            ValidationError: If any field is invalid; nothing is stored
        """
        now = ensure_utc(now) if now else utc_now()
        subscription = Subscription(
            id=str(uuid.uuid4()),
            name=name.strip() if name else "",
            cost=try_parse_amount(cost),
            currency=(currency or "").upper(),
            billing_cycle=normalize_billing_cycle(billing_cycle or BillingCycle()),
            next_billing_date=ensure_utc(next_billing_date) if next_billing_date else None,
            category=category or "Other",
            notes=notes or "",
            payment_method=payment_method or "",
            is_active=is_active,
            reminder_days=tuple(reminder_days),
            created_at=now,
            updated_at=now,
        )

        errors = validate_subscription(subscription)
        if errors:
            raise ValidationError(errors)

        self.subscriptions.append(subscription)
        self.save()
        logger.info("Created subscription %s (%s)", subscription.id, subscription.name)
        return subscription

    def update(self, subscription_id: str, now: Optional[datetime] = None, **changes: Any) -> Subscription:
        """Update fields of a subscription.

        The ID and creation date are preserved and ``updated_at`` is refreshed.

        Raises:
            NotFoundError: If the subscription doesn't exist
            ValidationError: If the result is invalid; nothing is changed
        """
        index = self._index_of(subscription_id)
        existing = self.subscriptions[index]

        unknown = set(changes) - (set(Subscription.__dataclass_fields__) - PROTECTED_FIELDS)
        if unknown:
            raise ValidationError([f"Unknown or read-only field '{f}'" for f in sorted(unknown)])

        if "cost" in changes:
            changes["cost"] = try_parse_amount(changes["cost"])
        if "billing_cycle" in changes:
            changes["billing_cycle"] = normalize_billing_cycle(changes["billing_cycle"])
        if "currency" in changes and changes["currency"]:
            changes["currency"] = changes["currency"].upper()
        if changes.get("next_billing_date") is not None:
            changes["next_billing_date"] = ensure_utc(changes["next_billing_date"])
        if "reminder_days" in changes:
            changes["reminder_days"] = tuple(changes["reminder_days"])

        updated = replace(existing, **changes, updated_at=ensure_utc(now) if now else utc_now())
        errors = validate_subscription(updated)
        if errors:
            raise ValidationError(errors)

        self.subscriptions[index] = updated
        self.save()
        return updated

    def delete(self, subscription_id: str) -> None:
        """Delete a subscription.

        Raises:
            NotFoundError: If the subscription doesn't exist
        """
        index = self._index_of(subscription_id)
        removed = self.subscriptions.pop(index)
        self.save()
        logger.info("Deleted subscription %s (%s)", removed.id, removed.name)

    def toggle_active(self, subscription_id: str) -> Subscription:
        """Flip a subscription between active and inactive."""
        sub = self.require(subscription_id)
        return self.update(subscription_id, is_active=not sub.is_active)

    def record_payment(self, subscription_id: str, now: Optional[datetime] = None) -> Subscription:
        """Record the pending payment and advance to the next billing date.

        Raises:
            NotFoundError: If the subscription doesn't exist
        """
        index = self._index_of(subscription_id)
        paid = billing.record_payment(self.subscriptions[index], now=now)
        self.subscriptions[index] = paid
        self.save()
        logger.info(
            "Recorded payment for %s, next billing %s",
            paid.name,
            paid.next_billing_date.date().isoformat(),
        )
        return paid

    def get_upcoming_renewals(self, days: int = 7, now: Optional[datetime] = None) -> list[Subscription]:
        """Active subscriptions renewing within ``days`` from now, soonest first."""
        now = ensure_utc(now) if now else utc_now()
        horizon = now + timedelta(days=days)
        upcoming = [
            s for s in self.get_active()
            if billing.is_within_range(s.next_billing_date, now, horizon)
        ]
        return sorted(upcoming, key=lambda s: s.next_billing_date)

    def get_overdue(self, now: Optional[datetime] = None) -> list[Subscription]:
        """Active subscriptions whose billing date has passed."""
        now = ensure_utc(now) if now else utc_now()
        return [s for s in self.get_active() if s.next_billing_date < now]

    def get_due_reminders(self, now: Optional[datetime] = None) -> list[tuple[Subscription, int]]:
        """Subscriptions whose days-until-renewal matches one of their reminder offsets.

        Returns:
            List of (subscription, days until renewal) pairs, soonest first
        """
        now = ensure_utc(now) if now else utc_now()
        due = []
        for sub in self.get_active():
            days = billing.days_until_renewal(now, sub.next_billing_date)
            if days in sub.reminder_days:
                due.append((sub, days))
        return sorted(due, key=lambda pair: pair[1])

    def get_subscription_monthly_cost(self, subscription: Subscription) -> Decimal:
        """Monthly equivalent of one subscription's cost."""
        return billing.monthly_equivalent(subscription)

    def _monthly_cost_in(self, subscription: Subscription, currency: Optional[str]) -> Decimal:
        monthly = billing.monthly_equivalent(subscription)
        if currency is None or self.currency_service is None:
            return monthly
        return self.currency_service.convert(monthly, subscription.currency, currency)

    def get_total_monthly_cost(self, currency: Optional[str] = None) -> Decimal:
        """Sum of monthly equivalents over active subscriptions.

        When ``currency`` is given and a currency service is configured,
        each subscription's cost is converted first.
        """
        return sum(
            (self._monthly_cost_in(s, currency) for s in self.get_active()),
            Decimal("0"),
        )

    def get_total_yearly_cost(self, currency: Optional[str] = None) -> Decimal:
        """Total monthly cost scaled to a year."""
        return self.get_total_monthly_cost(currency) * billing.MONTHS_PER_YEAR

    def get_spending_by_category(self) -> dict[str, Decimal]:
        """Monthly equivalent spend per category over active subscriptions."""
        totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for sub in self.get_active():
            totals[sub.category] += billing.monthly_equivalent(sub)
        return dict(totals)

    def search(self, query: str) -> list[Subscription]:
        """Case-insensitive search over name, category and notes."""
        needle = query.lower()
        return [
            s for s in self.subscriptions
            if needle in s.name.lower()
            or needle in s.category.lower()
            or needle in s.notes.lower()
        ]

    def get_stats(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Dashboard statistics.

        Returns:
            Dict with total, active, inactive, upcoming_renewals, overdue,
            total_monthly_cost, total_yearly_cost and by_category
        """
        now = ensure_utc(now) if now else utc_now()
        total = len(self.subscriptions)
        active = len(self.get_active())
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "upcoming_renewals": len(self.get_upcoming_renewals(7, now=now)),
            "overdue": len(self.get_overdue(now=now)),
            "total_monthly_cost": self.get_total_monthly_cost(),
            "total_yearly_cost": self.get_total_yearly_cost(),
            "by_category": self.get_spending_by_category(),
        }
