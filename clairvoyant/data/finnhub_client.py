"""
Finnhub REST client for the symbol directory and daily price history.

Failures never raise: a failed directory request returns no symbols and a
failed price request returns no prices, which window preparation later
skips.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests

from .symbols import SymbolRecord

logger = logging.getLogger(__name__)


class FinnhubClient:
    """
    Finnhub stock API client.

    Args:
        api_key: API token
        base_url: REST endpoint
        timeout: Request timeout in seconds
        session: Optional requests session (a new one is created otherwise)
    """

    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(
        self,
        api_key: str = '',
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

        if not self.api_key:
            logger.warning("No Finnhub API key configured; requests will be rejected")

    def _get(self, endpoint: str, params: Dict[str, Any]) -> Any:
        """Make an API request and decode the JSON body."""
        params = dict(params, token=self.api_key)
        response = self.session.get(f"{self.base_url}{endpoint}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def list_symbols(self, exchange: str = 'US') -> List[SymbolRecord]:
        """
        Fetch the symbol directory of an exchange.

        Returns:
            Symbol records without prices (empty on failure)
        """
        try:
            payload = self._get('/stock/symbol', {'exchange': exchange})
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching symbol directory for {exchange}: {e}")
            return []

        if not isinstance(payload, list):
            logger.error(f"Unexpected symbol directory payload for {exchange}")
            return []

        return [SymbolRecord.from_api(entry) for entry in payload if entry.get('symbol')]

    def prices(self, symbol: str, now: Optional[datetime] = None) -> List[float]:
        """
        Fetch daily close prices over the trailing year.

        Args:
            symbol: Ticker
            now: End of the range (defaults to the current time)

        Returns:
            Close prices, oldest first (empty on failure)
        """
        stop = pd.Timestamp(now or datetime.now(timezone.utc))
        start = stop - pd.DateOffset(years=1)
        params = {
            'symbol': symbol,
            'resolution': 'D',
            'from': int(start.timestamp()),
            'to': int(stop.timestamp()),
        }

        try:
            payload = self._get('/stock/candle', params)
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Error fetching prices for {symbol}: {e}")
            return []

        if not isinstance(payload, dict) or payload.get('s') != 'ok':
            status = payload.get('s') if isinstance(payload, dict) else None
            logger.warning(f"No prices for {symbol} (status: {status})")
            return []

        try:
            return [float(value) for value in payload.get('c') or []]
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed prices for {symbol}: {e}")
            return []

    @staticmethod
    def estimate_fetch(count: int, delay: float) -> Tuple[float, float]:
        """
        Estimate the cost of fetching ``count`` symbols.

        Returns:
            gigabytes: Size of a count x count complex128 matrix
            days: Wall time when waiting ``delay`` seconds per symbol
        """
        gigabytes = count * count * 16 / (1024 ** 3)
        days = count * delay / (60 * 60 * 24)
        return gigabytes, days
