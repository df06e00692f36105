"""
strategy/news_sentiment.py
--------------------------
Offline rule: every POSITIVE headline is a BUY vote for BTC.

Also used as the fallback when the Ollama model cannot be reached.
"""

from __future__ import annotations
from typing import Iterable, List

from models.context import DecisionContext
from models.news import NewsItem, Sentiment
from models.signal import SignalType, TradeSignal

from .base import BaseStrategy

FALLBACK_SYMBOL = "BTC"
FALLBACK_CONFIDENCE = 0.7


def sentiment_signals(news: Iterable[NewsItem]) -> List[TradeSignal]:
    return [
        TradeSignal(
            symbol=FALLBACK_SYMBOL,
            type=SignalType.BUY,
            confidence=FALLBACK_CONFIDENCE,
            reason=f"Fallback: News sentiment analysis: {item.title}",
        )
        for item in news
        if item.sentiment is Sentiment.POSITIVE
    ]


class NewsSentimentStrategy(BaseStrategy):
    name = "NewsSentimentStrategy"

    async def generate_signals(self, context: DecisionContext) -> List[TradeSignal]:
        return sentiment_signals(context.recent_news)
