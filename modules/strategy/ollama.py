"""
strategy/ollama.py
------------------
Signals from a locally hosted Ollama model (``/api/generate``).

When the model is unreachable the strategy degrades to the news
sentiment rule instead of returning nothing.
"""

from __future__ import annotations

from typing import List, Optional

import aiohttp

from models.context import DecisionContext
from models.signal import TradeSignal
from utils.http import request_json

from .llm import LLMStrategy
from .news_sentiment import sentiment_signals

DEFAULT_OLLAMA_URL = "http://localhost:11434/api/generate"
DEFAULT_OLLAMA_MODEL = "llama3.2"


class OllamaStrategy(LLMStrategy):
    name = "OllamaLLMStrategy"

    def __init__(
        self,
        model: str = DEFAULT_OLLAMA_MODEL,
        url: str = DEFAULT_OLLAMA_URL,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.model = model
        self.url = url

    async def _complete(self, session: aiohttp.ClientSession, prompt: str) -> Optional[str]:
        payload = {"model": self.model, "prompt": prompt, "stream": False}
        data = await request_json(session, "POST", self.url, json=payload, timeout=self.timeout)
        return data.get("response") if isinstance(data, dict) else None

    def fallback_signals(self, context: DecisionContext) -> List[TradeSignal]:
        self.logger.warning("Falling back to news sentiment rule")
        return sentiment_signals(context.recent_news)
