"""
EODHD end-of-day price provider.

Fetches daily OHLCV history for US listings from https://eodhd.com/api/eod.
Closes are split/dividend adjusted when the API supplies an adjusted close.
"""

import decimal
import logging
import time
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import requests

from stockfolio.config import ConfigurationError, get_eodhd_api_key
from stockfolio.data.providers.base import DataProviderError, PriceProvider
from stockfolio.data.providers.cache import CachedPriceProvider, FileCache
from stockfolio.models import PriceRecord
from stockfolio.portfolio.tickers import normalize_symbol

logger = logging.getLogger(__name__)


def _to_decimal(value: Any) -> Decimal:
    return Decimal("0") if value is None else Decimal(str(value))


def parse_eod_row(row: dict) -> PriceRecord:
    """
    Convert one end-of-day JSON row into a PriceRecord.

    Raises:
        KeyError: If date or both close fields are missing
        ValueError, decimal.InvalidOperation: On unparseable values
    """
    close = row.get("adjusted_close")
    if close is None:
        close = row["close"]

    return PriceRecord(
        date=date.fromisoformat(row["date"]),
        open=_to_decimal(row.get("open")),
        high=_to_decimal(row.get("high")),
        low=_to_decimal(row.get("low")),
        close=_to_decimal(close),
        volume=_to_decimal(row.get("volume")),
    )


class EODHDProvider(PriceProvider):
    """
    PriceProvider backed by the EODHD end-of-day endpoint.

    Rate-limit responses (HTTP 429) back off for RATE_LIMIT_DELAY seconds
    times the attempt number; timeouts and other transport errors back off
    for retry_delay times the attempt number. Both share max_retries.
    """

    BASE_URL = "https://eodhd.com/api"
    EXCHANGE = "US"

    RATE_LIMIT_RETRIES = 3
    RATE_LIMIT_DELAY = 5.0  # seconds

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timeout: float = 30.0,
    ):
        """
        Args:
            api_key: EODHD API key (defaults to get_eodhd_api_key())
            max_retries: Attempts per request
            retry_delay: Base back-off after a transport error (seconds)
            timeout: Per-request timeout (seconds)

        Raises:
            DataProviderError: If no API key is available
        """
        if not api_key:
            try:
                api_key = get_eodhd_api_key()
            except ConfigurationError as e:
                raise DataProviderError(str(e)) from e
        self._api_key = api_key

        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "EODHD"

    def eod_url(self, symbol: str) -> str:
        return f"{self.BASE_URL}/eod/{normalize_symbol(symbol)}.{self.EXCHANGE}"

    def get_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[PriceRecord]:
        """
        Fetch daily records for a symbol between two dates (inclusive).

        Rows that cannot be parsed are skipped and counted in a warning.
        """
        rows = self._fetch(
            self.eod_url(symbol),
            {
                "from": start_date.isoformat(),
                "to": end_date.isoformat(),
                "api_token": self._api_key,
                "fmt": "json",
            },
        )

        records = []
        skipped = 0
        for row in rows:
            try:
                records.append(parse_eod_row(row))
            except (KeyError, ValueError, TypeError, decimal.InvalidOperation):
                skipped += 1

        if skipped:
            logger.warning("Skipped %d malformed EODHD rows for %s", skipped, symbol)
        logger.debug("Fetched %d EODHD records for %s", len(records), symbol)
        return records

    def _fetch(self, url: str, params: dict) -> list:
        """
        GET a JSON list from EODHD, retrying transient failures.

        Raises:
            DataProviderError: On API errors, invalid JSON, or when every
                attempt fails
        """
        last_error = "no attempts made"

        for attempt in range(1, self._max_retries + 1):
            try:
                response = requests.get(url, params=params, timeout=self._timeout)

                if response.status_code == 429:
                    last_error = "rate limited"
                    if attempt >= self.RATE_LIMIT_RETRIES:
                        raise DataProviderError(
                            f"EODHD API rate limit exceeded after {attempt} attempts"
                        )
                    time.sleep(self.RATE_LIMIT_DELAY * attempt)
                    continue

                response.raise_for_status()
            except requests.exceptions.Timeout:
                last_error = "Request timeout"
            except requests.exceptions.RequestException as e:
                last_error = str(e)
            else:
                return self._decode(response)

            logger.debug("EODHD attempt %d/%d failed: %s", attempt, self._max_retries, last_error)
            if attempt < self._max_retries:
                time.sleep(self._retry_delay * attempt)

        raise DataProviderError(
            f"Failed to fetch data from EODHD after {self._max_retries} attempts: {last_error}"
        )

    @staticmethod
    def _decode(response: requests.Response) -> list:
        try:
            data = response.json()
        except ValueError as e:
            raise DataProviderError(f"Invalid JSON response from EODHD API: {e}") from e

        if isinstance(data, dict) and "error" in data:
            raise DataProviderError(f"EODHD API error: {data['error']}")
        if not isinstance(data, list):
            logger.warning("Unexpected EODHD payload of type %s", type(data).__name__)
            return []
        return data


def get_eodhd_provider(
    use_cache: bool = True,
    cache_dir: str = "data/cache",
    api_key: Optional[str] = None,
) -> PriceProvider:
    """
    Build an EODHD provider, wrapped in a FileCache unless use_cache is False.

    Raises:
        DataProviderError: If no API key is available
    """
    provider = EODHDProvider(api_key=api_key)
    if not use_cache:
        return provider
    return CachedPriceProvider(provider, FileCache(cache_dir))
