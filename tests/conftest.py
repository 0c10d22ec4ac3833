import pytest
from django.core.cache import cache

from conversions.converter import get_default_converter, get_record_store, get_conversion_log


class CountingSource:
    """Static rate source that records how often it was asked to fetch."""

    def __init__(self, rates, error=None):
        self.rates = dict(rates)
        self.error = error
        self.fetch_count = 0

    def fetch(self, base_currency, symbols=None):
        self.fetch_count += 1
        if self.error is not None:
            raise self.error
        return dict(self.rates)


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_state():
    cache.clear()
    get_default_converter.cache_clear()
    get_record_store.cache_clear()
    get_conversion_log.cache_clear()
    yield
    get_conversion_log().close()
    get_conversion_log.cache_clear()
    cache.clear()


@pytest.fixture
def rate_table():
    return {'USD': 1.0, 'INR': 83.0, 'EUR': 0.9}


@pytest.fixture
def source(rate_table):
    return CountingSource(rate_table)


@pytest.fixture
def clock():
    return FakeClock()
