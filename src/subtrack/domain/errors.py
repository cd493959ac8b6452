"""Shared domain error messages and error types."""

from typing import Iterable


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """One or more validation rules failed for a record.

    All messages are collected before raising so the caller can show every
    problem at once.
    """

    def __init__(self, messages: Iterable[str]):
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class NotFoundError(DomainError):
    """Requested record does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


def subscription_not_found(subscription_id: str) -> str:
    """Return message for missing subscription."""
    return f"Subscription {subscription_id} not found"


def budget_not_found(budget_id: str) -> str:
    """Return message for missing budget."""
    return f"Budget {budget_id} not found"


def category_not_found(category_id: str) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def duplicate_category_name(name: str) -> str:
    """Return message for a category name that is already taken."""
    return f"Category with name '{name}' already exists"


def default_currency_removal(currency: str) -> str:
    """Return message when trying to disable the default currency."""
    return f"Cannot remove {currency}: it is the default currency"
