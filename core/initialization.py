"""
core/initialization.py
----------------------
Loads configuration from .env, then builds every provider, freezes them
into the capability registry and wires the trading pipeline, with simple
dependency-injection (DI) overrides.
"""

from __future__ import annotations

import os
from typing import Dict, Optional

from dotenv import load_dotenv

from core.pipeline import TradingPipeline
from core.registry import CapabilityKind, CapabilityRegistry
from core.sizing import SignalSizer
from modules.broker.coindcx import CoinDCXBroker
from modules.market.coindcx import CoinDCXMarketData
from modules.news.cryptocompare import DEFAULT_NEWS_API_URL, CryptoNewsScraper
from modules.strategy.google_llm import DEFAULT_GOOGLE_MODEL, GoogleLLMStrategy
from modules.strategy.news_sentiment import NewsSentimentStrategy
from modules.strategy.ollama import DEFAULT_OLLAMA_MODEL, DEFAULT_OLLAMA_URL, OllamaStrategy
from utils.config_manager import ConfigManager
from utils.config_validator import validate_config
from utils.logger import setup_logger


def _float_env(key: str, default: float) -> float:
    raw = os.getenv(key, "")
    try:
        return float(raw) if raw.strip() else default
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


def load_configuration(env_path: str = "config.env") -> Dict:
    """
    Load settings from an .env-style file and return a structured config dict.
    Values already present in the process environment win over the file.
    """
    log = setup_logger(__name__)
    load_dotenv(dotenv_path=env_path)

    conf: Dict[str, object] = {
        "COINDCX_API": {
            "api_key": os.getenv("COINDCX_API_KEY", ""),
            "api_secret": os.getenv("COINDCX_API_SECRET", ""),
            "base_url": os.getenv("COINDCX_BASE_URL", "https://api.coindcx.com"),
            "portfolio_path": os.getenv("COINDCX_PORTFOLIO_PATH", "/exchange/v1/users/balances"),
            "order_path": os.getenv("COINDCX_ORDER_PATH", "/exchange/v1/orders/create_multiple"),
            "market_details_path": os.getenv("COINDCX_MARKET_DETAILS_PATH", "/exchange/v1/market_details"),
            "ticker_path": os.getenv("COINDCX_TICKER_PATH", "/exchange/ticker"),
        },
        "NEWS_API_URL": os.getenv("NEWS_API_URL", DEFAULT_NEWS_API_URL),
        "OLLAMA": {
            "model": os.getenv("OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL),
            "url": os.getenv("OLLAMA_URL", DEFAULT_OLLAMA_URL),
        },
        "GOOGLE_LLM": {
            "model": os.getenv("GOOGLE_LLM_MODEL", DEFAULT_GOOGLE_MODEL),
            "api_key": os.getenv("GOOGLE_LLM_API_KEY", ""),
        },
        "TRADING": {
            "max_allocation_per_trade": _float_env("TRADING_MAX_ALLOCATION_PER_TRADE", 5000.0),
            "min_confidence_threshold": _float_env("TRADING_MIN_CONFIDENCE_THRESHOLD", 0.7),
            "quote_currency": os.getenv("TRADING_QUOTE_CURRENCY", "INR"),
        },
        "DEFAULTS": {
            "news_source": os.getenv("DEFAULT_NEWS_SOURCE", "CryptoNewsScraper"),
            "strategy": os.getenv("DEFAULT_STRATEGY", "OllamaLLMStrategy"),
            "broker": os.getenv("DEFAULT_BROKER", "CoinDCXBroker"),
            "market_data": os.getenv("DEFAULT_MARKET_DATA", "CoinDCXMarketData"),
        },
        "HTTP_TIMEOUT_SECONDS": _float_env("HTTP_TIMEOUT_SECONDS", 10.0),
        "API_HOST": os.getenv("API_HOST", "127.0.0.1"),
        "API_PORT": int(os.getenv("API_PORT", "8080")),
    }

    validate_config(conf)
    log.debug("Trading limits: %s", conf["TRADING"])
    log.debug("Default components: %s", conf["DEFAULTS"])
    return conf


def initialize_components(
    config: Dict,
    overrides: Optional[Dict[str, object]] = None,
) -> Dict[str, object]:
    """
    Construct every provider, freeze them into the registry and wire the pipeline.

    Keys you can override:
    {"logger", "session", "news_sources", "market_data", "strategies", "brokers", "sizer"}
    """
    overrides = overrides or {}
    cfg = ConfigManager(config)

    # 1) Logger
    logger = overrides.get("logger") or setup_logger()

    timeout = cfg.get_timeout()
    session = overrides.get("session")
    http_kwargs = {"timeout": timeout, "session": session}

    # 2) Providers
    dcx = cfg.get_coindcx()
    brokers = overrides.get("brokers") or [
        CoinDCXBroker(
            api_key=dcx.get("api_key", ""),
            api_secret=dcx.get("api_secret", ""),
            base_url=dcx.get("base_url", "https://api.coindcx.com"),
            portfolio_path=dcx.get("portfolio_path", "/exchange/v1/users/balances"),
            order_path=dcx.get("order_path", "/exchange/v1/orders/create_multiple"),
            market_details_path=dcx.get("market_details_path", "/exchange/v1/market_details"),
            **http_kwargs,
        )
    ]
    market_data = overrides.get("market_data") or [
        CoinDCXMarketData(
            base_url=dcx.get("base_url", "https://api.coindcx.com"),
            ticker_path=dcx.get("ticker_path", "/exchange/ticker"),
            **http_kwargs,
        )
    ]
    news_sources = overrides.get("news_sources") or [
        CryptoNewsScraper(cfg.get("NEWS_API_URL", DEFAULT_NEWS_API_URL), **http_kwargs)
    ]
    ollama = cfg.get("OLLAMA") or {}
    google = cfg.get("GOOGLE_LLM") or {}
    strategies = overrides.get("strategies") or [
        OllamaStrategy(
            model=ollama.get("model", DEFAULT_OLLAMA_MODEL),
            url=ollama.get("url", DEFAULT_OLLAMA_URL),
            **http_kwargs,
        ),
        GoogleLLMStrategy(
            api_key=google.get("api_key", ""),
            model=google.get("model", DEFAULT_GOOGLE_MODEL),
            **http_kwargs,
        ),
        NewsSentimentStrategy(),
    ]

    # 3) Registry (frozen from here on)
    registry = CapabilityRegistry.build(
        news_sources=news_sources,
        market_data=market_data,
        strategies=strategies,
        brokers=brokers,
    )

    # 4) Pipeline
    sizer = overrides.get("sizer") or SignalSizer(cfg.get_sizing_config())
    pipeline = TradingPipeline(registry, sizer, logger=logger)

    for broker in brokers:
        if getattr(broker, "dry_run", False):
            logger.warning("Broker %s has no credentials - running in dry-run mode", broker.name)
    logger.info(
        "Registry ready: %s",
        {kind.value: registry.names(kind) for kind in CapabilityKind},
    )
    return {
        "logger": logger,
        "config": cfg,
        "registry": registry,
        "sizer": sizer,
        "pipeline": pipeline,
        "defaults": cfg.get_defaults(),
    }
