"""
core/pipeline.py
----------------
End-to-end trading cycle:

    resolve providers -> (news || portfolio) -> relevant symbols -> prices
    -> DecisionContext -> strategy signals -> sized orders -> broker batch

News and portfolio are fetched concurrently; every other step waits for
the one before it. A run never contacts the broker for submission when
sizing produced no orders.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, NamedTuple, Optional

from core.errors import InvalidComponentError, UnknownComponentError
from core.registry import CapabilityKind, CapabilityRegistry
from core.selector import identify_relevant_symbols
from core.sizing import SignalSizer
from models.context import DecisionContext
from models.news import NewsItem
from models.order import Order
from modules.broker.base import BaseBroker
from modules.market.base import BaseMarketData
from modules.news.base import BaseNewsSource
from modules.strategy.base import BaseStrategy
from utils.logger import setup_logger


class PipelineComponents(NamedTuple):
    news_source: BaseNewsSource
    strategy: BaseStrategy
    broker: BaseBroker
    market_data: BaseMarketData


class TradingPipeline:
    def __init__(
        self,
        registry: CapabilityRegistry,
        sizer: Optional[SignalSizer] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry
        self.sizer = sizer or SignalSizer()
        self.logger = logger or setup_logger(__name__)

    # ------------------------------------------------------------------ #
    def resolve(
        self,
        news_source_name: str,
        strategy_name: str,
        broker_name: str,
        market_data_name: str,
    ) -> PipelineComponents:
        """Resolve all four names up front; any miss aborts the whole run."""
        wanted = (
            (CapabilityKind.NEWS_SOURCE, news_source_name),
            (CapabilityKind.STRATEGY, strategy_name),
            (CapabilityKind.BROKER, broker_name),
            (CapabilityKind.MARKET_DATA, market_data_name),
        )
        resolved, missing = [], []
        for kind, name in wanted:
            try:
                resolved.append(self.registry.resolve(kind, name))
            except UnknownComponentError as exc:
                missing.append(str(exc))
        if missing:
            raise InvalidComponentError(
                "Invalid component names provided: " + "; ".join(missing)
            )
        return PipelineComponents(*resolved)

    async def execute_full_pipeline(
        self,
        news_source_name: str,
        strategy_name: str,
        broker_name: str,
        market_data_name: str,
    ) -> List[Order]:
        self.logger.info(
            "Starting trading pipeline with Source: %s, Strategy: %s, Broker: %s, MarketData: %s",
            news_source_name,
            strategy_name,
            broker_name,
            market_data_name,
        )
        parts = self.resolve(news_source_name, strategy_name, broker_name, market_data_name)

        # 1+2. news and portfolio have no dependency on each other
        news, portfolio = await asyncio.gather(
            self._fetch_news(parts.news_source),
            parts.broker.get_portfolio(),
        )
        self.logger.info("Fetched %d news items", len(news))
        self.logger.info("Current portfolio assets: %s", sorted(portfolio.balances))

        # 3. prices for the relevant markets only
        symbols = identify_relevant_symbols(
            portfolio, news, quote_currency=self.sizer.config.quote_currency
        )
        prices = await parts.market_data.get_prices(symbols)
        self.logger.info("Fetched prices for %d symbols", len(prices))

        # 4. context
        context = DecisionContext(recent_news=news, portfolio=portfolio, market_prices=prices)

        # 5. signals, order preserved
        signals = await parts.strategy.generate_signals(context)
        self.logger.info("Generated %d trade signals", len(signals))

        # 6. sizing and submission
        orders = self.sizer.size(signals, context.market_prices, portfolio)
        if not orders:
            self.logger.info("No orders to place")
            return []
        return await parts.broker.place_orders(orders)

    async def _fetch_news(self, source: BaseNewsSource) -> List[NewsItem]:
        try:
            return list(await source.fetch_news())
        except Exception:  # noqa: BLE001 - news is best-effort
            self.logger.exception("News source %s failed; continuing without news", source.name)
            return []
