"""Wiring of the domain services around one database."""

from dataclasses import dataclass
from typing import Optional

import httpx

from subtrack.database.base import Database
from subtrack.domain.analytics import AnalyticsService
from subtrack.domain.budget_service import BudgetService
from subtrack.domain.category import CategoryService
from subtrack.domain.currency import CurrencyService
from subtrack.domain.settings import SettingsService
from subtrack.domain.subscription import SubscriptionService
from subtrack.domain.transfer import DataTransferService


@dataclass
class AppServices:
    """All services sharing one database and one currency cache."""

    db: Database
    settings: SettingsService
    currency: CurrencyService
    subscriptions: SubscriptionService
    budgets: BudgetService
    categories: CategoryService
    analytics: AnalyticsService
    transfer: DataTransferService

    def reload(self) -> None:
        """Re-read every collection, e.g. after an import replaced them."""
        self.settings.load()
        self.currency.load_from_settings(self.settings.get())
        self.subscriptions.load()
        self.budgets.load()
        self.categories.load()

    def close(self) -> None:
        self.currency.close()
        self.db.disconnect()


def create_services(
    db: Database,
    rates_url: Optional[str] = None,
    http_client: Optional[httpx.Client] = None,
) -> AppServices:
    """Build the service graph for ``db``.

    Args:
        db: Database instance
        rates_url: Exchange-rate endpoint override
        http_client: HTTP client for rate fetches (tests pass a mock transport)
    """
    settings = SettingsService(db)
    currency = CurrencyService(rates_url=rates_url, client=http_client)
    currency.load_from_settings(settings.get())
    subscriptions = SubscriptionService(db, currency_service=currency)
    return AppServices(
        db=db,
        settings=settings,
        currency=currency,
        subscriptions=subscriptions,
        budgets=BudgetService(db, subscriptions),
        categories=CategoryService(db),
        analytics=AnalyticsService(subscriptions),
        transfer=DataTransferService(db),
    )
