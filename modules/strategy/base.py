"""
strategy/base.py
----------------
Common interface for all strategy implementations.

A Strategy receives the DecisionContext assembled by the pipeline and
returns trade signals. The order of the returned list is significant:
the sizing engine consumes the quote balance in that order.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List

from models.context import DecisionContext
from models.signal import TradeSignal


class BaseStrategy(ABC):
    """Abstract base strategy with a single entry point."""

    name: str = ""

    @abstractmethod
    async def generate_signals(self, context: DecisionContext) -> List[TradeSignal]:
        """
        Evaluate the context and return zero or more signals.

        Each signal carries
        -------------------
        symbol      : str   - base asset or exchange symbol (e.g. 'BTC', 'BTCINR')
        type        : str   - 'BUY', 'SELL' or 'HOLD'
        confidence  : float - 0.0 .. 1.0
        reason      : str   - free-text justification
        """
        raise NotImplementedError
