import math
import logging
import requests
from typing import Dict, Any, Iterable, Optional
from django.conf import settings
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import NetworkError, ParseError

logger = logging.getLogger(__name__)


def _create_session(max_retries: int = 0) -> requests.Session:
    """Create a requests session; retries are off unless configured."""
    session = requests.Session()
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def parse_rate_table(body: Any, base_currency: str) -> Dict[str, float]:
    """
    Turn a `/latest` response body into a rate table keyed by upper-case code.
    Every rate must be a finite number greater than zero.
    """
    if not isinstance(body, dict):
        raise ParseError("Rate response is not a JSON object")

    rates = body.get("rates")
    if not isinstance(rates, dict) or not rates:
        error = body.get("error")
        detail = f": {error}" if error else ""
        raise ParseError(f"Rate response has no rates table{detail}")

    table = {}
    for code, value in rates.items():
        if isinstance(value, bool):
            raise ParseError(f"Rate for {code} is not a number: {value!r}")
        try:
            rate = float(value)
        except (TypeError, ValueError):
            raise ParseError(f"Rate for {code} is not a number: {value!r}")
        if not math.isfinite(rate) or rate <= 0:
            raise ParseError(f"Rate for {code} must be positive, got {value!r}")
        table[str(code).upper()] = rate

    table.setdefault(base_currency.upper(), 1.0)
    return table


class HttpRateSource:
    """Fetches the full rate table from an exchangerate.host style `/latest` endpoint."""

    def __init__(self, base_url: str, timeout: float = 10, access_key: Optional[str] = None, max_retries: int = 0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.access_key = access_key
        self.max_retries = max_retries

    @classmethod
    def from_settings(cls) -> "HttpRateSource":
        return cls(
            settings.RATES_API_URL,
            timeout=settings.RATES_HTTP_TIMEOUT,
            access_key=settings.RATES_API_KEY or None,
            max_retries=settings.RATES_MAX_RETRIES,
        )

    def fetch(self, base_currency: str, symbols: Optional[Iterable[str]] = None) -> Dict[str, float]:
        """
        GET <host>/latest?base=<CODE>[&symbols=A,B].
        Raises NetworkError on connection failures, timeouts and non-2xx
        responses, ParseError when the body is not a well-formed table.
        """
        base_currency = base_currency.upper()
        params = {"base": base_currency}
        if symbols:
            params["symbols"] = ",".join(code.upper() for code in symbols)
        if self.access_key:
            params["access_key"] = self.access_key

        url = f"{self.base_url}/latest"
        session = _create_session(self.max_retries)
        try:
            resp = session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
        except requests.HTTPError as e:
            raise NetworkError(f"Rate endpoint returned HTTP {e.response.status_code}") from e
        except requests.JSONDecodeError as e:
            raise ParseError(f"Rate response is not valid JSON: {e}") from e
        except requests.RequestException as e:
            raise NetworkError(f"Could not reach rate endpoint: {e}") from e
        finally:
            session.close()

        table = parse_rate_table(body, base_currency)
        logger.info("Fetched %d rates for base %s from %s", len(table), base_currency, url)
        return table


class StaticRateSource:
    """Serves a fixed rate table; used offline and in tests."""

    def __init__(self, rates: Dict[str, Any]):
        self.rates = dict(rates)

    @classmethod
    def from_settings(cls) -> "StaticRateSource":
        return cls(settings.RATES_STATIC_TABLE)

    def fetch(self, base_currency: str, symbols: Optional[Iterable[str]] = None) -> Dict[str, float]:
        table = parse_rate_table({"rates": self.rates}, base_currency)
        if symbols:
            wanted = {code.upper() for code in symbols} | {base_currency.upper()}
            table = {code: rate for code, rate in table.items() if code in wanted}
        return table
