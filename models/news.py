from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Sentiment(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class NewsItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    source: str = ""
    timestamp: Optional[datetime] = None
    sentiment: Optional[Sentiment] = None

    @field_validator("title", "description", "source", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("sentiment", mode="before")
    @classmethod
    def normalize_sentiment(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or None
        return v
