"""Utility for resolving user-entered references to record IDs."""

from subtrack.domain.budget_service import BudgetService
from subtrack.domain.errors import NotFoundError, ValidationError
from subtrack.domain.subscription import SubscriptionService


def resolve_subscription(subscription_service: SubscriptionService, reference: str) -> str:
    """Resolve a subscription ID, unique ID prefix or name to its ID.

    Args:
        subscription_service: SubscriptionService instance
        reference: Full ID, ID prefix, or name (case-insensitive)

    Returns:
        Subscription ID

    Raises:
        NotFoundError: If nothing matches
        ValidationError: If the reference matches more than one subscription
    """
    subscriptions = subscription_service.get_all()
    for sub in subscriptions:
        if sub.id == reference:
            return sub.id

    by_prefix = [s for s in subscriptions if s.id.startswith(reference)]
    if len(by_prefix) == 1:
        return by_prefix[0].id

    wanted = reference.strip().lower()
    by_name = [s for s in subscriptions if s.name.lower() == wanted]
    if len(by_name) == 1:
        return by_name[0].id

    if len(by_prefix) > 1 or len(by_name) > 1:
        raise ValidationError([f"'{reference}' matches more than one subscription, use its ID"])
    raise NotFoundError(f"Subscription '{reference}' not found")


def resolve_budget(budget_service: BudgetService, reference: str) -> str:
    """Resolve a budget ID or unique ID prefix to its ID.

    Raises:
        NotFoundError: If nothing matches
        ValidationError: If the prefix is ambiguous
    """
    budgets = budget_service.get_all()
    for budget in budgets:
        if budget.id == reference:
            return budget.id

    matches = [b for b in budgets if b.id.startswith(reference)]
    if len(matches) == 1:
        return matches[0].id
    if matches:
        raise ValidationError([f"'{reference}' matches more than one budget, use its ID"])
    raise NotFoundError(f"Budget '{reference}' not found")
