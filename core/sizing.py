"""
core/sizing.py
--------------
Turns strategy signals into concrete orders under allocation, confidence
and minimum-size rules.

Signals are folded in the order received. BUY sizing draws down a
simulated quote-currency balance that starts at the portfolio snapshot.
Each BUY spends at most 95% of what is left, so the simulated balance
never goes negative and total spend for one batch never exceeds the
snapshot. The accumulator is private to a single call; it
is not a live balance and two concurrent runs cannot see each other's
spend.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import reduce
from typing import List, Mapping, NamedTuple, Optional, Sequence, Tuple

from models.order import Order, OrderType
from models.portfolio import Portfolio
from models.signal import SignalType, TradeSignal
from utils.logger import setup_logger

logger = setup_logger(__name__)

MINIMUM_TRADE_SIZE = 100.0
BALANCE_SAFETY_MARGIN = 0.95


@dataclass(frozen=True)
class SizingConfig:
    max_allocation_per_trade: float = 5000.0
    min_confidence_threshold: float = 0.7
    quote_currency: str = "INR"
    minimum_trade_size: float = MINIMUM_TRADE_SIZE
    safety_margin: float = BALANCE_SAFETY_MARGIN


class _Allocation(NamedTuple):
    orders: Tuple[Order, ...]
    quote_balance: float


class SignalSizer:
    """Stateless between calls; all batch state lives in the fold."""

    def __init__(self, config: Optional[SizingConfig] = None) -> None:
        self.config = config or SizingConfig()

    # ------------------------------------------------------------------ #
    def size(
        self,
        signals: Sequence[TradeSignal],
        prices: Mapping[str, float],
        portfolio: Portfolio,
    ) -> List[Order]:
        start = _Allocation((), portfolio.balance_of(self.config.quote_currency))
        final = reduce(
            lambda acc, signal: self._step(acc, signal, prices, portfolio),
            signals,
            start,
        )
        return list(final.orders)

    def exchange_symbol(self, symbol: str) -> str:
        quote = self.config.quote_currency
        return symbol if symbol.endswith(quote) else f"{symbol}{quote}"

    # ------------------------------------------------------------------ #
    def _step(
        self,
        acc: _Allocation,
        signal: TradeSignal,
        prices: Mapping[str, float],
        portfolio: Portfolio,
    ) -> _Allocation:
        if signal.confidence < self.config.min_confidence_threshold:
            logger.info(
                "Skipping signal for %s due to low confidence: %s",
                signal.symbol,
                signal.confidence,
            )
            return acc

        symbol = self.exchange_symbol(signal.symbol)
        price = prices.get(symbol)
        if price is None or not math.isfinite(price) or price <= 0:
            logger.warning("Invalid price for %s. Skipping.", symbol)
            return acc

        if signal.type is SignalType.BUY:
            return self._size_buy(acc, signal, symbol, price)
        if signal.type is SignalType.SELL:
            return self._size_sell(acc, signal, symbol, price, portfolio)
        return acc

    def _size_buy(
        self, acc: _Allocation, signal: TradeSignal, symbol: str, price: float
    ) -> _Allocation:
        cfg = self.config
        target_spend = min(
            cfg.max_allocation_per_trade * signal.confidence,
            acc.quote_balance * cfg.safety_margin,
        )
        if target_spend < cfg.minimum_trade_size:
            logger.warning(
                "Target spend %.2f %s too low for %s. Skipping.",
                target_spend,
                cfg.quote_currency,
                symbol,
            )
            return acc

        quantity = target_spend / price
        if not math.isfinite(quantity) or quantity <= 0:
            logger.warning("Quantity %s for %s is not tradable. Skipping.", quantity, symbol)
            return acc
        order = Order(symbol=symbol, type=OrderType.BUY, quantity=quantity, price=price)
        logger.info(
            "BUY: Spending %.2f %s (Confidence: %s) to get %s units of %s at price %s",
            target_spend,
            cfg.quote_currency,
            signal.confidence,
            quantity,
            symbol,
            price,
        )
        return _Allocation(acc.orders + (order,), acc.quote_balance - target_spend)

    def _size_sell(
        self,
        acc: _Allocation,
        signal: TradeSignal,
        symbol: str,
        price: float,
        portfolio: Portfolio,
    ) -> _Allocation:
        # no minimum-size floor on sells
        base_asset = symbol[: -len(self.config.quote_currency)]
        available = portfolio.balance_of(base_asset)
        if available <= 0:
            return acc

        quantity = available * signal.confidence
        if not math.isfinite(quantity) or quantity <= 0:
            return acc
        order = Order(symbol=symbol, type=OrderType.SELL, quantity=quantity, price=price)
        logger.info(
            "SELL: Selling %s units of %s (Confidence: %s) at price %s for a total of %s",
            quantity,
            symbol,
            signal.confidence,
            price,
            price * quantity,
        )
        return _Allocation(acc.orders + (order,), acc.quote_balance)
