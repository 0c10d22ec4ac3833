import time
import logging
import threading
from django.core.cache import cache
from typing import Optional, Dict, Any, Callable

from .exceptions import UnknownCurrency

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600


def _key(base_currency: str) -> str:
    return f"fxtable:{base_currency.upper()}"


def get_table(base_currency: str) -> Optional[Dict[str, Any]]:
    return cache.get(_key(base_currency))


def set_table(base_currency: str, payload: Dict[str, Any], ttl_seconds: int = DEFAULT_TTL_SECONDS * 2) -> None:
    cache.set(_key(base_currency), payload, ttl_seconds)


class RateCache:
    """
    Holds the last fetched rate table for one base currency.

    The table is stored as a single cache entry
    ``{"base": ..., "rates": {...}, "fetched_at": ...}`` and replaced
    wholesale on refresh. A table older than ``ttl_seconds`` is always
    refetched, whether or not it holds the requested code. Refreshes that
    race inside one process share a single fetch.
    """

    def __init__(self, source, base_currency: str = "USD", ttl_seconds: float = DEFAULT_TTL_SECONDS,
                 clock: Callable[[], float] = time.time):
        self.source = source
        self.base_currency = base_currency.upper()
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._refresh_lock = threading.Lock()

    def _is_fresh(self, entry: Optional[Dict[str, Any]]) -> bool:
        if not entry or not entry.get("rates"):
            return False
        return self.clock() - entry["fetched_at"] < self.ttl_seconds

    def get_table(self) -> Dict[str, Any]:
        entry = get_table(self.base_currency)
        if self._is_fresh(entry):
            return entry

        with self._refresh_lock:
            # Another thread may have refreshed while we waited.
            entry = get_table(self.base_currency)
            if self._is_fresh(entry):
                return entry

            logger.info("Rate table for %s is missing or stale, refreshing", self.base_currency)
            return self._refresh()

    def refresh(self) -> Dict[str, Any]:
        """Fetch and store a new table regardless of the current one's age."""
        with self._refresh_lock:
            return self._refresh()

    def _refresh(self) -> Dict[str, Any]:
        rates = self.source.fetch(self.base_currency)
        entry = {
            "base": self.base_currency,
            "rates": rates,
            "fetched_at": self.clock(),
        }
        set_table(self.base_currency, entry, ttl_seconds=int(self.ttl_seconds * 2))
        return entry

    def get_rate(self, currency_code: str) -> float:
        code = (currency_code or "").strip().upper()
        if not code:
            raise UnknownCurrency("Currency cannot be empty")

        rates = self.get_table()["rates"]
        if code not in rates:
            raise UnknownCurrency(f"Invalid Currency Code: {code}")
        return rates[code]
