"""
news/base.py
------------
Interface every news source implements.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List

from models.news import NewsItem


class BaseNewsSource(ABC):
    """A named feed of recent news items."""

    name: str = ""

    @abstractmethod
    async def fetch_news(self) -> List[NewsItem]:
        """
        Return the latest news items.

        Implementations must never raise: any provider failure yields an
        empty list.
        """
        raise NotImplementedError
