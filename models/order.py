# --------------------------------------------------------------------
# models/order.py
# One immutable order record. Status moves PENDING -> EXECUTED | FAILED
# exactly once; every transition returns a new Order.
# --------------------------------------------------------------------
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    EXECUTED = "EXECUTED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({OrderStatus.EXECUTED, OrderStatus.FAILED})


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1)
    type: OrderType
    quantity: float = Field(..., gt=0)
    price: float = Field(..., gt=0)
    status: OrderStatus = OrderStatus.PENDING
    order_id: Optional[str] = None
    client_order_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _transition(self, **update) -> "Order":
        if self.is_terminal:
            raise ValueError(
                f"order {self.order_id or self.client_order_id or self.symbol} "
                f"is already {self.status.value}"
            )
        return self.model_copy(update=update)

    def with_submission(self, quantity: float, client_order_id: str) -> "Order":
        """Copy carrying the rounded quantity and correlation id actually sent."""
        return self._transition(quantity=quantity, client_order_id=client_order_id)

    def mark_executed(self, order_id: Optional[str]) -> "Order":
        return self._transition(status=OrderStatus.EXECUTED, order_id=order_id)

    def mark_failed(self, error: Optional[str] = None) -> "Order":
        return self._transition(status=OrderStatus.FAILED, error=error)
