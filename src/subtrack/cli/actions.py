"""Named actions shared by the ``action`` command and the matching subcommands.

Every action is looked up in ``HANDLERS``; unknown names are rejected before
any handler runs.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from subtrack.domain.errors import DomainError, ValidationError
from subtrack.domain.services import AppServices
from subtrack.utils.formatters import format_date
from subtrack.utils.record_resolver import resolve_budget, resolve_subscription

logger = logging.getLogger(__name__)


class Action(str, Enum):
    RECORD_PAYMENT = "record-payment"
    TOGGLE_ACTIVE = "toggle-active"
    DELETE_SUBSCRIPTION = "delete-subscription"
    DELETE_BUDGET = "delete-budget"
    EXPORT_JSON = "export-json"
    EXPORT_CSV = "export-csv"
    IMPORT_JSON = "import-json"
    UPDATE_RATES = "update-rates"


def _require_param(action: Action, param: Optional[str]) -> str:
    if not param:
        raise ValidationError([f"Action '{action.value}' requires a parameter"])
    return param


def _record_payment(services: AppServices, param: Optional[str]) -> str:
    sub_id = resolve_subscription(services.subscriptions, _require_param(Action.RECORD_PAYMENT, param))
    paid = services.subscriptions.record_payment(sub_id)
    return f"Recorded payment for '{paid.name}'. Next billing date: {format_date(paid.next_billing_date)}"


def _toggle_active(services: AppServices, param: Optional[str]) -> str:
    sub_id = resolve_subscription(services.subscriptions, _require_param(Action.TOGGLE_ACTIVE, param))
    sub = services.subscriptions.toggle_active(sub_id)
    return f"'{sub.name}' is now {'active' if sub.is_active else 'inactive'}"


def _delete_subscription(services: AppServices, param: Optional[str]) -> str:
    sub_id = resolve_subscription(services.subscriptions, _require_param(Action.DELETE_SUBSCRIPTION, param))
    name = services.subscriptions.require(sub_id).name
    services.subscriptions.delete(sub_id)
    return f"Deleted subscription '{name}'"


def _delete_budget(services: AppServices, param: Optional[str]) -> str:
    budget_id = resolve_budget(services.budgets, _require_param(Action.DELETE_BUDGET, param))
    services.budgets.delete(budget_id)
    return f"Deleted budget {budget_id}"


def _export_json(services: AppServices, param: Optional[str]) -> str:
    result = services.transfer.export_json(_require_param(Action.EXPORT_JSON, param))
    if not result["success"]:
        raise DomainError(f"Export failed: {result['error']}")
    return f"Exported data to {result['path']}"


def _export_csv(services: AppServices, param: Optional[str]) -> str:
    result = services.transfer.export_csv(_require_param(Action.EXPORT_CSV, param))
    if not result["success"]:
        raise DomainError(f"Export failed: {result['error']}")
    return f"Exported {result['rows']} subscriptions to {result['path']}"


def _import_json(services: AppServices, param: Optional[str]) -> str:
    result = services.transfer.import_json(_require_param(Action.IMPORT_JSON, param))
    if not result["success"]:
        raise ValidationError(["Import failed"] + result["errors"])
    services.reload()
    counts = ", ".join(f"{count} {key}" for key, count in result["imported"].items())
    return f"Imported {counts or 'nothing'}"


def _update_rates(services: AppServices, param: Optional[str]) -> str:
    base = (param or services.settings.get().default_currency).upper()
    rates = services.currency.fetch_rates(base)
    if rates is None:
        raise DomainError(f"Could not fetch exchange rates for {base}")
    services.settings.store_rates(base, rates, services.currency.last_update)
    return f"Updated {len(rates)} exchange rates for {base}"


HANDLERS: dict[Action, Callable[[AppServices, Optional[str]], str]] = {
    Action.RECORD_PAYMENT: _record_payment,
    Action.TOGGLE_ACTIVE: _toggle_active,
    Action.DELETE_SUBSCRIPTION: _delete_subscription,
    Action.DELETE_BUDGET: _delete_budget,
    Action.EXPORT_JSON: _export_json,
    Action.EXPORT_CSV: _export_csv,
    Action.IMPORT_JSON: _import_json,
    Action.UPDATE_RATES: _update_rates,
}


def dispatch(action: Action | str, services: AppServices, param: Optional[str] = None) -> str:
    """Run a named action.

    Args:
        action: Action or its name, e.g. ``"record-payment"``
        services: Service container to act on
        param: Action argument (subscription, budget, path or base currency)

    Returns:
        Message describing the outcome

    Raises:
        ValidationError: If the action name is unknown or its parameter missing
        DomainError: If the action fails
    """
    try:
        action = Action(action)
    except ValueError:
        raise ValidationError([f"Unknown action '{action}'"])
    logger.debug("Dispatching %s(%r)", action.value, param)
    return HANDLERS[action](services, param)
