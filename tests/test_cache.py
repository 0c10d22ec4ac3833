import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from conversions import cache as rate_cache
from conversions.cache import RateCache
from conversions.exceptions import NetworkError, UnknownCurrency

from .conftest import CountingSource


def test_second_lookup_within_ttl_uses_cached_table(source, clock):
    rates = RateCache(source, ttl_seconds=600, clock=clock)

    assert rates.get_rate('INR') == 83.0
    clock.advance(599)
    assert rates.get_rate('EUR') == 0.9
    assert source.fetch_count == 1


def test_expired_table_is_fetched_exactly_once(source, clock):
    rates = RateCache(source, ttl_seconds=600, clock=clock)
    rates.get_rate('INR')

    clock.advance(600)
    assert rates.get_rate('INR') == 83.0
    assert rates.get_rate('USD') == 1.0
    assert source.fetch_count == 2


def test_stale_table_is_refreshed_even_when_code_is_present(source, clock):
    rates = RateCache(source, ttl_seconds=600, clock=clock)
    rates.get_rate('INR')

    source.rates['INR'] = 84.0
    clock.advance(601)

    assert rates.get_rate('INR') == 84.0


def test_refresh_replaces_table_wholesale(source, clock):
    rates = RateCache(source, ttl_seconds=600, clock=clock)
    rates.get_rate('EUR')

    source.rates = {'USD': 1.0, 'GBP': 0.8}
    clock.advance(700)

    assert rates.get_rate('GBP') == 0.8
    with pytest.raises(UnknownCurrency):
        rates.get_rate('EUR')


def test_unknown_currency_never_returns_a_value(source, clock):
    rates = RateCache(source, clock=clock)

    with pytest.raises(UnknownCurrency) as excinfo:
        rates.get_rate('XXX')
    assert 'XXX' in str(excinfo.value)


def test_codes_are_case_normalised(source, clock):
    rates = RateCache(source, clock=clock)
    assert rates.get_rate(' inr ') == 83.0


@pytest.mark.parametrize('code', ['', '   ', None])
def test_blank_code_is_unknown_currency(source, clock, code):
    rates = RateCache(source, clock=clock)
    with pytest.raises(UnknownCurrency):
        rates.get_rate(code)
    assert source.fetch_count == 0


def test_fetch_failure_propagates_and_keeps_cache_empty(clock):
    failing = CountingSource({}, error=NetworkError('refused'))
    rates = RateCache(failing, clock=clock)

    with pytest.raises(NetworkError):
        rates.get_rate('INR')
    assert rate_cache.get_table('USD') is None

    with pytest.raises(NetworkError):
        rates.get_rate('INR')
    assert failing.fetch_count == 2


def test_failed_refresh_of_stale_table_propagates(source, clock):
    rates = RateCache(source, ttl_seconds=600, clock=clock)
    rates.get_rate('INR')

    source.error = NetworkError('refused')
    clock.advance(601)

    with pytest.raises(NetworkError):
        rates.get_rate('INR')


def test_table_is_shared_through_django_cache(source, clock):
    RateCache(source, clock=clock).get_rate('INR')
    other = CountingSource({'USD': 1.0})

    assert RateCache(other, clock=clock).get_rate('INR') == 83.0
    assert other.fetch_count == 0


def test_get_table_reports_fetch_time(source, clock):
    table = RateCache(source, base_currency='usd', clock=clock).get_table()

    assert table == {
        'base': 'USD',
        'rates': {'USD': 1.0, 'INR': 83.0, 'EUR': 0.9},
        'fetched_at': clock.now,
    }


def test_concurrent_refreshes_share_one_fetch(rate_table):
    class SlowSource(CountingSource):
        def fetch(self, base_currency, symbols=None):
            time.sleep(0.05)
            return super().fetch(base_currency, symbols)

    source = SlowSource(rate_table)
    rates = RateCache(source)
    start = threading.Barrier(8)

    def lookup(code):
        start.wait()
        return rates.get_rate(code)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lookup, ['USD', 'INR', 'EUR', 'INR'] * 2))

    assert results == [1.0, 83.0, 0.9, 83.0] * 2
    assert source.fetch_count == 1


def test_refresh_fetches_even_when_fresh(source, clock):
    rates = RateCache(source, clock=clock)
    rates.get_rate('INR')

    source.rates['INR'] = 85.0
    rates.refresh()

    assert rates.get_rate('INR') == 85.0
    assert source.fetch_count == 2
