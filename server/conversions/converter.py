import math
import asyncio
import functools
from dataclasses import dataclass, asdict
from typing import Any, Dict
from asgiref.sync import async_to_sync, sync_to_async
from django.conf import settings
from django.utils.module_loading import import_string

from .cache import RateCache
from .exceptions import InvalidAmount, UnknownCurrency
from .history import ConversionLog
from .store import RecordStore


@dataclass(frozen=True)
class ConversionResult:
    amount: float
    source: str
    target: str
    result: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self):
        return f"{self.amount} {self.source} = {self.result} {self.target}"


def parse_amount(raw: Any) -> float:
    """Accept a number or numeric string; reject anything not strictly positive."""
    if isinstance(raw, bool):
        raise InvalidAmount(f"Invalid amount: {raw!r}")
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError):
        raise InvalidAmount(f"Invalid amount: {raw!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmount(f"Amount must be a positive number, got {raw}")
    return value


def normalize_code(raw: Any) -> str:
    code = str(raw or "").strip().upper()
    if not code:
        raise UnknownCurrency("Currency cannot be empty")
    return code


class Converter:
    """Converts amounts between two currencies through the cache's base currency."""

    def __init__(self, rates: RateCache):
        self.rates = rates

    async def convert_async(self, amount: Any, from_code: Any, to_code: Any) -> ConversionResult:
        value = parse_amount(amount)
        source = normalize_code(from_code)
        target = normalize_code(to_code)

        # Both lookups run in worker threads and are joined here.
        get_rate = sync_to_async(self.rates.get_rate, thread_sensitive=False)
        rate_from, rate_to = await asyncio.gather(get_rate(source), get_rate(target))

        return ConversionResult(value, source, target, value / rate_from * rate_to)

    def convert(self, amount: Any, from_code: Any, to_code: Any) -> ConversionResult:
        return async_to_sync(self.convert_async)(amount, from_code, to_code)


def build_rate_source():
    source_class = import_string(settings.RATES_SOURCE)
    return source_class.from_settings()


@functools.lru_cache(maxsize=None)
def get_default_converter() -> Converter:
    rates = RateCache(
        build_rate_source(),
        base_currency=settings.RATES_BASE_CURRENCY,
        ttl_seconds=settings.RATES_CACHE_TTL,
    )
    return Converter(rates)


@functools.lru_cache(maxsize=None)
def get_record_store() -> RecordStore:
    return RecordStore()


@functools.lru_cache(maxsize=None)
def get_conversion_log() -> ConversionLog:
    return ConversionLog(history_size=settings.CONVERSION_HISTORY_SIZE)
