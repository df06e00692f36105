"""
market/coindcx.py
-----------------
Last-traded prices from the public CoinDCX ticker.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

import aiohttp

from core.errors import PROVIDER_FAILURES
from modules.data_provider import DataProvider
from modules.market.base import BaseMarketData
from utils.http import DEFAULT_TIMEOUT_SECONDS, request_json, session_scope
from utils.logger import setup_logger

DEFAULT_BASE_URL = "https://api.coindcx.com"
DEFAULT_TICKER_PATH = "/exchange/ticker"


class CoinDCXMarketData(BaseMarketData):
    name = "CoinDCXMarketData"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        ticker_path: str = DEFAULT_TICKER_PATH,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
        data_provider: Optional[DataProvider] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.ticker_url = base_url.rstrip("/") + ticker_path
        self.timeout = timeout
        self._session = session
        self.data_provider = data_provider or DataProvider()
        self.logger = logger or setup_logger(self.name)

    async def get_prices(self, symbols: Optional[Iterable[str]]) -> Dict[str, float]:
        if symbols is None:
            return {}
        wanted = set(symbols)
        self.logger.info("Fetching market prices for %d symbols from CoinDCX", len(wanted))

        try:
            async with session_scope(self._session) as session:
                data = await request_json(session, "GET", self.ticker_url, timeout=self.timeout)
        except PROVIDER_FAILURES as exc:
            self.logger.error(
                "Error fetching market prices from CoinDCX: %s. Message: %s",
                exc.__class__.__name__,
                exc,
            )
            return {}

        df = self.data_provider.create_dataframe_from_ticker(data)
        prices = self.data_provider.prices_for(df, wanted)
        return {market: price for market, price in prices.items() if price > 0}
