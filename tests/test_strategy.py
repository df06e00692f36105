import json
from unittest.mock import patch

import aiohttp
import pytest

from core.errors import ResponseParsingError
from models.context import DecisionContext
from models.news import NewsItem, Sentiment
from models.signal import SignalType
from modules.strategy.google_llm import GoogleLLMStrategy
from modules.strategy.llm import build_prompt, extract_signals, parse_signals
from modules.strategy.news_sentiment import NewsSentimentStrategy, sentiment_signals
from modules.strategy.ollama import OllamaStrategy

OLLAMA_URL = "http://ollama.test/api/generate"

REPLY = (
    "Here is my analysis:\n"
    '[{"symbol": "btc", "type": "buy", "confidence": 0.9, "reason": "Strong news"},'
    ' {"symbol": "ETH", "type": "HOLD", "confidence": 0.4, "reason": "Flat"}]\n'
    "Trade carefully."
)

# ------------------------- Fixtures ------------------------- #

@pytest.fixture
def context(inr_portfolio, bitcoin_news):
    return DecisionContext(
        recent_news=bitcoin_news,
        portfolio=inr_portfolio,
        market_prices={"BTCINR": 5000000.0},
    )


# ------------------------- Parsing ------------------------- #

def test_parse_signals_extracts_array_from_prose():
    signals = parse_signals(REPLY)
    assert [(s.symbol, s.type) for s in signals] == [("BTC", SignalType.BUY), ("ETH", SignalType.HOLD)]
    assert signals[0].confidence == 0.9


@pytest.mark.parametrize(
    "text",
    [
        None,
        "",
        "I cannot help with that.",
        "[not json]",
        '[{"symbol": "BTC", "type": "MAYBE", "confidence": 0.5}]',
        '] backwards [',
        '{"symbol": "BTC", "type": "BUY"}',
    ],
)
def test_parse_signals_unparsable_gives_nothing(text):
    assert parse_signals(text) == []


def test_extract_signals_raises():
    with pytest.raises(ResponseParsingError):
        extract_signals("no array here")


def test_build_prompt_mentions_context(context):
    prompt = build_prompt(context)
    assert "Bitcoin rally continues" in prompt
    assert "Sentiment: POSITIVE" in prompt
    assert "BTCINR" in prompt
    assert "'INR': 10000.0" in prompt
    assert '"symbol", "type" (must be one of BUY, SELL, HOLD)' in prompt


def test_build_prompt_unknown_sentiment(inr_portfolio):
    ctx = DecisionContext(
        recent_news=[NewsItem(title="Quiet day")], portfolio=inr_portfolio, market_prices={}
    )
    assert "Sentiment: UNKNOWN" in build_prompt(ctx)


# ------------------------- News sentiment rule ------------------------- #

def test_sentiment_signals_one_buy_per_positive_item():
    news = [
        NewsItem(title="A", sentiment=Sentiment.POSITIVE),
        NewsItem(title="B", sentiment=Sentiment.NEGATIVE),
        NewsItem(title="C", sentiment=Sentiment.POSITIVE),
        NewsItem(title="D"),
    ]
    signals = sentiment_signals(news)
    assert len(signals) == 2
    assert all(s.symbol == "BTC" and s.type is SignalType.BUY for s in signals)
    assert all(s.confidence == 0.7 for s in signals)
    assert signals[1].reason == "Fallback: News sentiment analysis: C"


@pytest.mark.asyncio
async def test_news_sentiment_strategy(context):
    signals = await NewsSentimentStrategy().generate_signals(context)
    assert len(signals) == 1
    assert NewsSentimentStrategy.name == "NewsSentimentStrategy"


# ------------------------- Ollama ------------------------- #

@pytest.mark.asyncio
async def test_ollama_parses_response(fake_session, context):
    fake_session.queue({"model": "llama3.2", "response": REPLY, "done": True})
    strategy = OllamaStrategy(model="llama3.2", url=OLLAMA_URL, session=fake_session)

    signals = await strategy.generate_signals(context)

    assert [s.symbol for s in signals] == ["BTC", "ETH"]
    method, url, kwargs = fake_session.call(0)
    assert (method, url) == ("POST", OLLAMA_URL)
    assert kwargs["json"]["model"] == "llama3.2"
    assert kwargs["json"]["stream"] is False
    assert "Bitcoin rally continues" in kwargs["json"]["prompt"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure",
    [
        {"exc": aiohttp.ClientConnectionError("refused")},
        {"status": 500, "text": "model not loaded"},
        {"payload": ["unexpected"]},
    ],
)
async def test_ollama_falls_back_to_sentiment_rule(fake_session, context, failure):
    fake_session.queue(**failure)
    strategy = OllamaStrategy(url=OLLAMA_URL, session=fake_session)

    signals = await strategy.generate_signals(context)

    assert len(signals) == 1
    assert signals[0].reason == "Fallback: News sentiment analysis: Bitcoin rally continues"


@pytest.mark.asyncio
async def test_ollama_garbage_reply_gives_nothing(fake_session, context):
    fake_session.queue({"response": "I am not sure."})
    strategy = OllamaStrategy(url=OLLAMA_URL, session=fake_session)
    assert await strategy.generate_signals(context) == []


# ------------------------- Google ------------------------- #

def _gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


@pytest.mark.asyncio
async def test_google_without_key_makes_no_call(context):
    strategy = GoogleLLMStrategy(api_key="")
    with patch("aiohttp.ClientSession") as session_cls:
        assert await strategy.generate_signals(context) == []
    session_cls.assert_not_called()


@pytest.mark.asyncio
async def test_google_parses_candidate_text(fake_session, context):
    fake_session.queue(_gemini_reply(REPLY))
    strategy = GoogleLLMStrategy(api_key="g-key", model="gemini-test", session=fake_session)

    signals = await strategy.generate_signals(context)

    assert signals[0].symbol == "BTC"
    method, url, kwargs = fake_session.call(0)
    assert method == "POST"
    assert url.endswith("/models/gemini-test:generateContent")
    assert kwargs["headers"] == {"x-goog-api-key": "g-key"}
    assert "Bitcoin rally continues" in json.dumps(kwargs["json"])


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure",
    [
        {"payload": {"candidates": []}},
        {"payload": {"candidates": [{"finishReason": "SAFETY"}]}},
        {"status": 403, "text": "API key invalid"},
    ],
)
async def test_google_failures_give_nothing(fake_session, context, failure):
    fake_session.queue(**failure)
    strategy = GoogleLLMStrategy(api_key="g-key", session=fake_session)
    assert await strategy.generate_signals(context) == []
