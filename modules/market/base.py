"""
market/base.py
--------------
Interface every market-data provider implements.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional


class BaseMarketData(ABC):
    """A named source of last-traded prices keyed by exchange symbol."""

    name: str = ""

    @abstractmethod
    async def get_prices(self, symbols: Optional[Iterable[str]]) -> Dict[str, float]:
        """
        Return symbol -> price for the requested symbols.

        Symbols without a usable price are simply absent; returned prices
        are always positive. An empty collection asks for every market.
        """
        raise NotImplementedError

    async def get_price(self, symbol: Optional[str]) -> float:
        """Price of one symbol, 0.0 when unavailable."""
        if not symbol:
            return 0.0
        prices = await self.get_prices({symbol})
        return prices.get(symbol, 0.0)
