import json
from typing import Any, List, Optional
from unittest.mock import MagicMock

import pytest

from models.news import NewsItem, Sentiment
from models.portfolio import Portfolio


# ------------------------- Fake aiohttp session ------------------------- #

class FakeResponse:
    """Async context manager standing in for ``aiohttp.ClientResponse``."""

    def __init__(self, status: int = 200, text: str = "") -> None:
        self.status = status
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def text(self) -> str:
        return self._text


class FakeSession:
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self) -> None:
        self._queue: List[Any] = []
        self.request = MagicMock(side_effect=self._dispatch)

    def queue(
        self,
        payload: Any = None,
        *,
        status: int = 200,
        text: Optional[str] = None,
        exc: Optional[BaseException] = None,
    ) -> "FakeSession":
        if exc is not None:
            self._queue.append(exc)
        else:
            self._queue.append(FakeResponse(status, text if text is not None else json.dumps(payload)))
        return self

    def _dispatch(self, method, url, **kwargs):
        if not self._queue:
            raise AssertionError(f"unexpected request {method} {url}")
        item = self._queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def call(self, index: int = -1):
        args, kwargs = self.request.call_args_list[index]
        return args[0], args[1], kwargs


@pytest.fixture
def fake_session():
    return FakeSession()


# ------------------------- Domain fixtures ------------------------- #

@pytest.fixture
def inr_portfolio():
    return Portfolio(balances={"INR": 10000.0, "BTC": 0.0})


@pytest.fixture
def bitcoin_news():
    return [
        NewsItem(
            title="Bitcoin rally continues",
            description="BTC breaks resistance",
            source="CoinDesk",
            sentiment=Sentiment.POSITIVE,
        )
    ]
