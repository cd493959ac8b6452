"""Currency conversion and exchange-rate lookup."""

import logging
import os
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import httpx

from subtrack.domain.entities import Settings
from subtrack.utils.date_parser import ensure_utc, utc_now

logger = logging.getLogger(__name__)

RATES_URL_ENV = "SUBTRACK_RATES_URL"
DEFAULT_RATES_URL = "https://api.frankfurter.app/latest"
RATES_MAX_AGE = timedelta(hours=24)
REQUEST_TIMEOUT = 10.0

RateTable = dict[str, dict[str, Decimal]]


def resolve_rates_url(rates_url: Optional[str] = None) -> str:
    """Rates endpoint from the argument, then SUBTRACK_RATES_URL, then the default."""
    return rates_url or os.environ.get(RATES_URL_ENV) or DEFAULT_RATES_URL


def lookup_rate(
    rates: RateTable,
    from_currency: str,
    to_currency: str,
    base_currency: Optional[str] = None,
) -> Optional[Decimal]:
    """Find the rate converting one unit of ``from_currency`` into ``to_currency``.

    Tries, in order: identity, a direct rate, the inverse of the opposite
    rate, and (when ``base_currency`` is given) a cross rate through the
    base currency's table.

    Returns:
        The rate, or None if it cannot be derived
    """
    if from_currency == to_currency:
        return Decimal("1")

    direct = rates.get(from_currency, {}).get(to_currency)
    if direct:
        return direct

    opposite = rates.get(to_currency, {}).get(from_currency)
    if opposite:
        return Decimal("1") / opposite

    if base_currency and base_currency in rates:
        from_base = rates[base_currency].get(from_currency)
        to_base = rates[base_currency].get(to_currency)
        if from_base and to_base:
            return to_base / from_base

    return None


class CurrencyService:
    """Exchange-rate cache with an HTTP refresh.

    Rates are kept per base currency: ``exchange_rates[base][target]`` is
    how many units of ``target`` one unit of ``base`` buys.
    """

    def __init__(self, rates_url: Optional[str] = None, client: Optional[httpx.Client] = None):
        """Initialize currency service.

        Args:
            rates_url: Endpoint returning ``{"rates": {...}}`` for ``?from=BASE``
            client: HTTP client to use; one is created on first fetch if omitted
        """
        self.rates_url = resolve_rates_url(rates_url)
        self.client = client
        self._owns_client = False
        self.exchange_rates: RateTable = {}
        self.last_update: Optional[datetime] = None
        self.base_currency = "USD"

    def _get_client(self) -> httpx.Client:
        if self.client is None:
            self.client = httpx.Client(timeout=REQUEST_TIMEOUT)
            self._owns_client = True
        return self.client

    def close(self) -> None:
        """Close the HTTP client if this service opened it."""
        if self.client is not None and self._owns_client:
            self.client.close()
            self.client = None
            self._owns_client = False

    def fetch_rates(self, base_currency: str = "USD", now: Optional[datetime] = None) -> Optional[dict[str, Decimal]]:
        """Fetch the latest rates for ``base_currency``.

        On any failure the previous rates are kept.

        Returns:
            Mapping of target currency to rate, or None if the fetch failed
        """
        base_currency = base_currency.upper()
        logger.info("Fetching exchange rates for %s from %s", base_currency, self.rates_url)
        try:
            response = self._get_client().get(self.rates_url, params={"from": base_currency})
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict) or not isinstance(data.get("rates"), dict):
                raise ValueError("Invalid response format")
            rates = {
                code.upper(): Decimal(str(value))
                for code, value in data["rates"].items()
            }
        except httpx.HTTPStatusError as e:
            logger.error("Exchange rate request failed: HTTP %s", e.response.status_code)
            return None
        except httpx.HTTPError as e:
            logger.error("Exchange rate request failed: %s", e)
            return None
        except (ValueError, InvalidOperation) as e:
            logger.error("Exchange rate response unreadable: %s", e)
            return None

        self.exchange_rates[base_currency] = rates
        self.last_update = ensure_utc(now) if now else utc_now()
        self.base_currency = base_currency
        logger.info("Fetched %d exchange rates for %s", len(rates), base_currency)
        return rates

    def get_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        """Rate from one currency to another, or None if unknown."""
        return lookup_rate(self.exchange_rates, from_currency, to_currency, self.base_currency)

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        """Convert an amount between currencies.

        Returns the amount unchanged when no rate is known.
        """
        rate = self.get_rate(from_currency, to_currency)
        if rate is None:
            logger.warning("No exchange rate found for %s to %s", from_currency, to_currency)
            return amount
        return amount * rate

    def set_rate(self, from_currency: str, to_currency: str, rate: Decimal) -> None:
        """Set a manual exchange rate."""
        self.exchange_rates.setdefault(from_currency, {})[to_currency] = Decimal(str(rate))

    def needs_update(self, now: Optional[datetime] = None) -> bool:
        """True when rates were never fetched or are at least 24 hours old."""
        if self.last_update is None:
            return True
        now = ensure_utc(now) if now else utc_now()
        return now - self.last_update >= RATES_MAX_AGE

    def auto_update(self, base_currency: str = "USD", now: Optional[datetime] = None) -> Optional[dict[str, Decimal]]:
        """Fetch rates if stale, otherwise return the cached table for the base."""
        if self.needs_update(now):
            return self.fetch_rates(base_currency, now=now)
        return self.exchange_rates.get(base_currency.upper())

    def load_from_settings(self, settings: Settings) -> None:
        """Seed rates, last update time and base currency from settings."""
        if settings.exchange_rates:
            self.exchange_rates = {
                base: dict(targets) for base, targets in settings.exchange_rates.items()
            }
        if settings.last_rates_update:
            self.last_update = settings.last_rates_update
        if settings.default_currency:
            self.base_currency = settings.default_currency

    def export_for_settings(self) -> dict[str, Any]:
        """Fields to write back into Settings via ``dataclasses.replace``."""
        return {
            "exchange_rates": {
                base: dict(targets) for base, targets in self.exchange_rates.items()
            },
            "last_rates_update": self.last_update,
        }
