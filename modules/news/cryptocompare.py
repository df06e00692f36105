"""
news/cryptocompare.py
---------------------
Latest crypto headlines from the CryptoCompare news API.

The endpoint returns ``{"Data": [{title, body, source, published_on}, ...]}``.
It carries no sentiment, so every item is tagged NEUTRAL.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import aiohttp

from core.errors import PROVIDER_FAILURES
from models.news import NewsItem, Sentiment
from modules.news.base import BaseNewsSource
from utils.http import DEFAULT_TIMEOUT_SECONDS, request_json, session_scope
from utils.logger import setup_logger

DEFAULT_NEWS_API_URL = "https://min-api.cryptocompare.com/data/v2/news/?lang=EN"


class CryptoNewsScraper(BaseNewsSource):
    name = "CryptoNewsScraper"

    def __init__(
        self,
        news_api_url: str = DEFAULT_NEWS_API_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.news_api_url = news_api_url
        self.timeout = timeout
        self._session = session
        self.logger = logger or setup_logger(self.name)

    async def fetch_news(self) -> List[NewsItem]:
        self.logger.info("Fetching latest crypto news from: %s", self.news_api_url)
        try:
            async with session_scope(self._session) as session:
                payload = await request_json(session, "GET", self.news_api_url, timeout=self.timeout)
        except PROVIDER_FAILURES as exc:
            self.logger.error("Error fetching news from CryptoCompare: %s", exc)
            return []

        rows = payload.get("Data") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            self.logger.warning("CryptoCompare response has no Data list")
            return []

        items: List[NewsItem] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            try:
                items.append(self._to_news_item(row))
            except PROVIDER_FAILURES as exc:
                # skip malformed rows
                self.logger.debug("Skipping malformed news row %r: %s", row, exc)
        return items

    @staticmethod
    def _to_news_item(row: Any) -> NewsItem:
        published = row.get("published_on")
        return NewsItem(
            title=row.get("title"),
            description=row.get("body"),
            source=row.get("source"),
            timestamp=(
                datetime.fromtimestamp(int(published), tz=timezone.utc)
                if published is not None
                else None
            ),
            sentiment=Sentiment.NEUTRAL,
        )
