"""
broker/base.py
--------------
Interface every brokerage adapter implements.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Sequence

from models.order import Order
from models.portfolio import Portfolio


class BaseBroker(ABC):
    """A named exchange account: balances in, orders out."""

    name: str = ""

    @abstractmethod
    async def get_portfolio(self) -> Portfolio:
        raise NotImplementedError

    @abstractmethod
    async def place_orders(self, orders: Sequence[Order]) -> List[Order]:
        """
        Submit a batch and return one settled order per input, same order.

        Implementations report failures through order status, never by
        raising.
        """
        raise NotImplementedError

    async def place_order(self, order: Order) -> Order:
        placed = await self.place_orders([order])
        return placed[0] if placed else order

    async def get_balance(self, asset: str) -> float:
        portfolio = await self.get_portfolio()
        return portfolio.balance_of(asset)
