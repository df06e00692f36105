"""
broker/precision.py
-------------------
Per-market quantity precision, fetched once from exchange metadata.

The cache is populate-once: the first successful load fills it and later
``ensure_loaded`` calls are no-ops. ``refresh`` reloads on demand. A
lock makes concurrent first callers share a single fetch. Until a load
succeeds, every market gets ``DEFAULT_PRECISION``.
"""

from __future__ import annotations

import asyncio
from decimal import ROUND_DOWN, Decimal
from typing import Awaitable, Callable, Dict

from core.errors import PROVIDER_FAILURES
from utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_PRECISION = 8

PrecisionLoader = Callable[[], Awaitable[Dict[str, int]]]


def round_quantity(quantity: float, precision: int) -> Decimal:
    """Round toward zero at ``precision`` places and drop trailing zeros.

    Never rounds up, so the rounded quantity never spends more than the
    sized one. This departs from the exchange client's usual half-down
    rounding, which can round a quantity up by one step.

    Raises ``decimal.InvalidOperation`` when ``quantity`` is not finite or
    needs more significant digits than the decimal context allows.
    """
    step = Decimal(1).scaleb(-precision)
    rounded = Decimal(str(quantity)).quantize(step, rounding=ROUND_DOWN)
    return rounded.normalize() if rounded else Decimal(0)


class PrecisionCache:
    def __init__(self, loader: PrecisionLoader, default: int = DEFAULT_PRECISION) -> None:
        self._loader = loader
        self.default = default
        self._precisions: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    @property
    def populated(self) -> bool:
        return bool(self._precisions)

    def precision_for(self, symbol: str) -> int:
        return self._precisions.get(symbol, self.default)

    async def ensure_loaded(self) -> None:
        if self._precisions:
            return
        async with self._lock:
            if self._precisions:
                return
            await self._load()

    async def refresh(self) -> None:
        async with self._lock:
            await self._load()

    async def _load(self) -> None:
        try:
            loaded = await self._loader()
        except PROVIDER_FAILURES as exc:
            logger.error("Failed to load market precisions: %s", exc)
            return
        if loaded:
            self._precisions = dict(loaded)
            logger.info("Loaded quantity precision for %d markets", len(loaded))
