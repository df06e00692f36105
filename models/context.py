from __future__ import annotations

import math
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.news import NewsItem
from models.portfolio import Portfolio


class DecisionContext(BaseModel):
    """Everything a strategy sees for one pipeline run."""

    model_config = ConfigDict(frozen=True)

    recent_news: List[NewsItem] = Field(default_factory=list)
    portfolio: Portfolio = Field(default_factory=Portfolio)
    market_prices: Dict[str, float] = Field(default_factory=dict)

    @field_validator("market_prices")
    @classmethod
    def positive_prices_only(cls, v: Dict[str, float]) -> Dict[str, float]:
        # a non-positive or non-finite price means "no price"
        return {
            symbol: price
            for symbol, price in v.items()
            if math.isfinite(price) and price > 0
        }
