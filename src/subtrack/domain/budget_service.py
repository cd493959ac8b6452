"""Budget domain service."""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from subtrack.database.base import Database
from subtrack.domain.budget import budget_status, period_end_for, spending_for_budget
from subtrack.domain.entities import Budget, BudgetPeriod, BudgetStatus, BudgetType
from subtrack.domain.errors import NotFoundError, ValidationError, budget_not_found
from subtrack.domain.subscription import SubscriptionService
from subtrack.domain.billing import is_within_range
from subtrack.domain.validation import validate_budget
from subtrack.utils.amount_parser import try_parse_amount
from subtrack.utils.date_parser import ensure_utc, utc_now

logger = logging.getLogger(__name__)

# The period is fixed at creation time
PROTECTED_FIELDS = {"id", "created_at", "updated_at", "period"}


def _coerce_budget_type(value: Any) -> BudgetType | str:
    try:
        return BudgetType(value)
    except ValueError:
        return value


class BudgetService:
    """Service for managing budgets and evaluating them against subscriptions."""

    def __init__(self, db: Database, subscription_service: SubscriptionService):
        """Initialize budget service.

        Args:
            db: Database instance
            subscription_service: Source of the subscriptions budgets are evaluated on
        """
        self.db = db
        self.subscription_service = subscription_service
        self.budgets: list[Budget] = []
        self.load()

    def load(self) -> list[Budget]:
        """Reload budgets from the database."""
        self.budgets = self.db.load_budgets()
        logger.debug("Loaded %d budgets", len(self.budgets))
        return self.budgets

    def save(self) -> bool:
        """Persist budgets, logging storage failures.

        Returns:
            True if the write succeeded
        """
        try:
            self.db.save_budgets(self.budgets)
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to save budgets: %s", e)
            return False

    def get_all(self) -> list[Budget]:
        """List all budgets."""
        return list(self.budgets)

    def get_active(self) -> list[Budget]:
        """List active budgets."""
        return [b for b in self.budgets if b.is_active]

    def get_by_id(self, budget_id: str) -> Optional[Budget]:
        """Get budget by ID, or None."""
        for budget in self.budgets:
            if budget.id == budget_id:
                return budget
        return None

    def require(self, budget_id: str) -> Budget:
        """Get budget by ID.

        Raises:
            NotFoundError: If no budget has that ID
        """
        budget = self.get_by_id(budget_id)
        if budget is None:
            raise NotFoundError(budget_not_found(budget_id))
        return budget

    def _index_of(self, budget_id: str) -> int:
        for index, budget in enumerate(self.budgets):
            if budget.id == budget_id:
                return index
        raise NotFoundError(budget_not_found(budget_id))

    def create(
        self,
        amount: Decimal,
        budget_type: BudgetType | str = BudgetType.MONTHLY,
        currency: str = "USD",
        category: Optional[str] = None,
        alert_threshold: Decimal = Decimal("80"),
        start: Optional[datetime] = None,
        is_active: bool = True,
        now: Optional[datetime] = None,
    ) -> Budget:
        """Create a budget.

        The period starts at ``start`` (default: now) and its end is derived
        from the budget type.

        Raises:
            ValidationError: If any field is invalid; nothing is stored
        """
        now = ensure_utc(now) if now else utc_now()
        start = ensure_utc(start) if start else now
        budget_type = _coerce_budget_type(budget_type)

        budget = Budget(
            id=str(uuid.uuid4()),
            type=budget_type,
            amount=try_parse_amount(amount),
            currency=(currency or "").upper(),
            category=category or None,
            period=BudgetPeriod(start=start, end=period_end_for(budget_type, start)),
            alert_threshold=try_parse_amount(alert_threshold),
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

        errors = validate_budget(budget)
        if errors:
            raise ValidationError(errors)

        self.budgets.append(budget)
        self.save()
        logger.info("Created %s budget %s", budget.type, budget.id)
        return budget

    def update(self, budget_id: str, now: Optional[datetime] = None, **changes: Any) -> Budget:
        """Update fields of a budget. The period cannot be changed.

        Raises:
            NotFoundError: If the budget doesn't exist
            ValidationError: If the result is invalid; nothing is changed
        """
        index = self._index_of(budget_id)
        existing = self.budgets[index]

        unknown = set(changes) - (set(Budget.__dataclass_fields__) - PROTECTED_FIELDS)
        if unknown:
            raise ValidationError([f"Unknown or read-only field '{f}'" for f in sorted(unknown)])

        for key in ("amount", "alert_threshold"):
            if key in changes:
                changes[key] = try_parse_amount(changes[key])
        if "type" in changes:
            changes["type"] = _coerce_budget_type(changes["type"])
        if "currency" in changes and changes["currency"]:
            changes["currency"] = changes["currency"].upper()

        updated = replace(existing, **changes, updated_at=ensure_utc(now) if now else utc_now())
        errors = validate_budget(updated)
        if errors:
            raise ValidationError(errors)

        self.budgets[index] = updated
        self.save()
        return updated

    def delete(self, budget_id: str) -> None:
        """Delete a budget.

        Raises:
            NotFoundError: If the budget doesn't exist
        """
        index = self._index_of(budget_id)
        self.budgets.pop(index)
        self.save()
        logger.info("Deleted budget %s", budget_id)

    def _find_current(self, budget_type: BudgetType, now: datetime) -> Optional[Budget]:
        for budget in self.get_active():
            if (
                budget.type == budget_type
                and budget.category is None
                and is_within_range(now, budget.period.start, budget.period.end)
            ):
                return budget
        return None

    def get_current_month_budget(self, now: Optional[datetime] = None) -> Optional[Budget]:
        """Active overall monthly budget whose period contains now."""
        return self._find_current(BudgetType.MONTHLY, ensure_utc(now) if now else utc_now())

    def get_current_year_budget(self, now: Optional[datetime] = None) -> Optional[Budget]:
        """Active overall yearly budget whose period contains now."""
        return self._find_current(BudgetType.YEARLY, ensure_utc(now) if now else utc_now())

    def get_category_budget(self, category: str, now: Optional[datetime] = None) -> Optional[Budget]:
        """Active budget for ``category`` whose period contains now."""
        now = ensure_utc(now) if now else utc_now()
        for budget in self.get_active():
            if budget.category == category and is_within_range(
                now, budget.period.start, budget.period.end
            ):
                return budget
        return None

    def get_spending_for_budget(self, budget: Budget) -> Decimal:
        """Spend counted against ``budget`` across all subscriptions."""
        return spending_for_budget(budget, self.subscription_service.get_all())

    def get_budget_status(self, budget_id: str) -> BudgetStatus:
        """Evaluate one budget.

        Raises:
            NotFoundError: If the budget doesn't exist
        """
        budget = self.require(budget_id)
        return budget_status(budget, self.subscription_service.get_all())

    def get_all_budget_statuses(self) -> list[BudgetStatus]:
        """Evaluate every active budget."""
        subscriptions = self.subscription_service.get_all()
        return [budget_status(b, subscriptions) for b in self.get_active()]

    def get_budgets_needing_alerts(self) -> list[BudgetStatus]:
        """Active budgets at or over their alert threshold."""
        return [s for s in self.get_all_budget_statuses() if s.should_alert]

    def get_budget_summary(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Current monthly and yearly overall budgets plus every category budget.

        Returns:
            Dict with ``monthly`` and ``yearly`` (BudgetStatus or None) and
            ``categories`` (list of BudgetStatus)
        """
        now = ensure_utc(now) if now else utc_now()
        subscriptions = self.subscription_service.get_all()
        monthly = self.get_current_month_budget(now)
        yearly = self.get_current_year_budget(now)
        return {
            "monthly": budget_status(monthly, subscriptions) if monthly else None,
            "yearly": budget_status(yearly, subscriptions) if yearly else None,
            "categories": [
                budget_status(b, subscriptions)
                for b in self.get_active()
                if b.category is not None
            ],
        }
