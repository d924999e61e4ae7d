"""
Symbol records and price window preparation.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Sequence

logger = logging.getLogger(__name__)


@dataclass
class SymbolRecord:
    """
    A listed symbol and its daily close prices.

    Args:
        symbol: Ticker used for price requests
        description: Display name of the company
        display_symbol: Ticker as shown by the exchange
        currency: Trading currency
        type: Security type (e.g. 'Common Stock')
        prices: Daily close prices, oldest first
    """

    symbol: str
    description: str = ''
    display_symbol: str = ''
    currency: str = ''
    type: str = ''
    prices: List[float] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'SymbolRecord':
        """Build a record from one entry of the Finnhub symbol directory."""
        return cls(
            symbol=payload.get('symbol') or '',
            description=payload.get('description') or '',
            display_symbol=payload.get('displaySymbol') or '',
            currency=payload.get('currency') or '',
            type=payload.get('type') or '',
        )

    @property
    def change(self) -> float:
        """Last price minus first price"""
        if not self.prices:
            return 0.0
        return float(self.prices[-1]) - float(self.prices[0])


def prepare_windows(records: Sequence[SymbolRecord], window_length: int) -> List[SymbolRecord]:
    """
    Cut every record to exactly ``window_length`` prices.

    Records with fewer prices are dropped; longer ones keep their first
    ``window_length`` prices.

    Args:
        records: Symbol records
        window_length: Window length W

    Returns:
        Records whose ``prices`` all have length W, in input order
    """
    prepared = []
    for record in records:
        if len(record.prices) < window_length:
            logger.debug(f"Skipping {record.symbol}: {len(record.prices)} prices < {window_length}")
            continue
        prepared.append(replace(record, prices=[float(p) for p in record.prices[:window_length]]))

    logger.info(f"Prepared {len(prepared)}/{len(records)} symbols with window {window_length}")
    return prepared
