"""
strategy/llm.py
---------------
Shared plumbing for strategies backed by a language model: prompt
assembly, tolerant parsing of the reply, and the call/fallback flow.

The model is asked for a JSON array of signals. Replies often wrap that
array in prose, so only the text between the first ``[`` and the last
``]`` is parsed. Anything unparsable yields no signals.
"""

from __future__ import annotations

import json
import logging
from abc import abstractmethod
from typing import List, Optional

import aiohttp
from pydantic import TypeAdapter, ValidationError

from core.errors import PROVIDER_FAILURES, ResponseParsingError
from models.context import DecisionContext
from models.signal import TradeSignal
from utils.http import DEFAULT_TIMEOUT_SECONDS, session_scope
from utils.logger import setup_logger

from .base import BaseStrategy

logger = setup_logger(__name__)

_SIGNAL_LIST = TypeAdapter(List[TradeSignal])


def build_prompt(context: DecisionContext) -> str:
    lines = [
        "You are an expert crypto trading analyst. "
        "Analyze the following context to generate trade signals.",
        "",
        f"Current Portfolio: {context.portfolio.balances}",
        f"Market Prices: {context.market_prices}",
        "",
        "Recent News:",
    ]
    for item in context.recent_news:
        sentiment = item.sentiment.value if item.sentiment else "UNKNOWN"
        lines.append(f"- Title: {item.title}")
        lines.append(f"  Description: {item.description}")
        lines.append(f"  Sentiment: {sentiment}")
    lines += [
        "",
        'Respond ONLY with a JSON list of objects. Each object MUST have fields: '
        '"symbol", "type" (must be one of BUY, SELL, HOLD), '
        '"confidence" (float 0.0 to 1.0), and "reason".',
        'Format Example: [{"symbol": "BTC", "type": "BUY", "confidence": 0.9, '
        '"reason": "Strong positive sentiment in recent news."}]',
    ]
    return "\n".join(lines) + "\n"


def extract_signals(text: str) -> List[TradeSignal]:
    """Strict variant of ``parse_signals``: raises ``ResponseParsingError``."""
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end < start:
        raise ResponseParsingError("no JSON array in model response")
    try:
        return _SIGNAL_LIST.validate_python(json.loads(text[start:end + 1]))
    except (ValueError, ValidationError) as exc:
        raise ResponseParsingError(str(exc)) from exc


def parse_signals(text: Optional[str], *, source: str = "LLM") -> List[TradeSignal]:
    if not text:
        return []
    try:
        return extract_signals(text)
    except ResponseParsingError as exc:
        logger.warning(
            "Failed to parse %s response as JSON: %s. Response text: %s", source, exc, text
        )
        return []


class LLMStrategy(BaseStrategy):
    """Template for model-backed strategies; subclasses implement ``_complete``."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.timeout = timeout
        self._session = session
        self.logger = logger or setup_logger(self.name)

    @abstractmethod
    async def _complete(self, session: aiohttp.ClientSession, prompt: str) -> Optional[str]:
        """Send ``prompt`` to the model and return its raw text reply."""
        raise NotImplementedError

    def is_configured(self) -> bool:
        return True

    def fallback_signals(self, context: DecisionContext) -> List[TradeSignal]:
        return []

    async def generate_signals(self, context: DecisionContext) -> List[TradeSignal]:
        if not self.is_configured():
            self.logger.warning("%s is not configured. Skipping strategy.", self.name)
            return []

        self.logger.info(
            "Generating signals using %s for news items: %d", self.name, len(context.recent_news)
        )
        prompt = build_prompt(context)
        try:
            async with session_scope(self._session) as session:
                text = await self._complete(session, prompt)
        except PROVIDER_FAILURES as exc:
            self.logger.error("Error calling %s: %s", self.name, exc)
            return self.fallback_signals(context)

        if text is None:
            return self.fallback_signals(context)
        self.logger.debug("%s response: %s", self.name, text)
        return parse_signals(text, source=self.name)
