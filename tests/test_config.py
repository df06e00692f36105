import logging
from pathlib import Path

import pytest
from dotenv import dotenv_values

from core.errors import DuplicateComponentError
from core.initialization import initialize_components, load_configuration
from core.pipeline import TradingPipeline
from core.registry import CapabilityKind
from core.sizing import SignalSizer
from modules.broker.coindcx import CoinDCXBroker
from modules.news.base import BaseNewsSource
from utils.config_manager import ConfigManager
from utils.config_validator import validate_config

ENV_KEYS = [
    "COINDCX_API_KEY",
    "COINDCX_API_SECRET",
    "COINDCX_BASE_URL",
    "COINDCX_PORTFOLIO_PATH",
    "COINDCX_ORDER_PATH",
    "COINDCX_MARKET_DETAILS_PATH",
    "COINDCX_TICKER_PATH",
    "NEWS_API_URL",
    "OLLAMA_MODEL",
    "OLLAMA_URL",
    "GOOGLE_LLM_MODEL",
    "GOOGLE_LLM_API_KEY",
    "TRADING_MAX_ALLOCATION_PER_TRADE",
    "TRADING_MIN_CONFIDENCE_THRESHOLD",
    "TRADING_QUOTE_CURRENCY",
    "DEFAULT_NEWS_SOURCE",
    "DEFAULT_STRATEGY",
    "DEFAULT_BROKER",
    "DEFAULT_MARKET_DATA",
    "HTTP_TIMEOUT_SECONDS",
    "API_HOST",
    "API_PORT",
]

# ------------------------- Fixtures ------------------------- #

@pytest.fixture
def clean_env(monkeypatch):
    # set-then-delete so values loaded from a .env file are undone afterwards
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "x")
        monkeypatch.delenv(key)
    return monkeypatch


@pytest.fixture
def env_file(tmp_path):
    def write(text):
        path = tmp_path / "config.env"
        path.write_text(text)
        return str(path)
    return write


@pytest.fixture
def base_config():
    return {
        "COINDCX_API": {"api_key": "", "api_secret": ""},
        "NEWS_API_URL": "https://news.test",
        "OLLAMA": {"model": "llama3.2", "url": "http://ollama.test"},
        "GOOGLE_LLM": {"model": "gemini-test", "api_key": ""},
        "TRADING": {"max_allocation_per_trade": 5000.0, "min_confidence_threshold": 0.7, "quote_currency": "INR"},
        "DEFAULTS": {"news_source": "CryptoNewsScraper", "strategy": "", "broker": "CoinDCXBroker", "market_data": "CoinDCXMarketData"},
        "HTTP_TIMEOUT_SECONDS": 5.0,
    }


# ------------------------- load_configuration ------------------------- #

def test_load_configuration_defaults(clean_env, env_file):
    config = load_configuration(env_file(""))

    assert config["COINDCX_API"]["api_key"] == ""
    assert config["COINDCX_API"]["base_url"] == "https://api.coindcx.com"
    assert config["TRADING"] == {
        "max_allocation_per_trade": 5000.0,
        "min_confidence_threshold": 0.7,
        "quote_currency": "INR",
    }
    assert config["DEFAULTS"]["strategy"] == "OllamaLLMStrategy"
    assert config["HTTP_TIMEOUT_SECONDS"] == 10.0
    assert config["API_PORT"] == 8080


def test_load_configuration_reads_file(clean_env, env_file):
    path = env_file(
        "COINDCX_API_KEY=key\n"
        "COINDCX_API_SECRET=secret\n"
        "TRADING_MAX_ALLOCATION_PER_TRADE=2500\n"
        "TRADING_MIN_CONFIDENCE_THRESHOLD=0.5\n"
        "DEFAULT_STRATEGY=GoogleLLMStrategy\n"
        "HTTP_TIMEOUT_SECONDS=3\n"
    )
    config = load_configuration(path)

    assert config["COINDCX_API"]["api_key"] == "key"
    assert config["TRADING"]["max_allocation_per_trade"] == 2500.0
    assert config["TRADING"]["min_confidence_threshold"] == 0.5
    assert config["DEFAULTS"]["strategy"] == "GoogleLLMStrategy"
    assert config["HTTP_TIMEOUT_SECONDS"] == 3.0


def test_process_environment_wins_over_file(clean_env, env_file):
    clean_env.setenv("TRADING_QUOTE_CURRENCY", "USDT")
    config = load_configuration(env_file("TRADING_QUOTE_CURRENCY=INR\n"))
    assert config["TRADING"]["quote_currency"] == "USDT"


@pytest.mark.parametrize(
    "line",
    [
        "TRADING_MAX_ALLOCATION_PER_TRADE=lots",
        "TRADING_MAX_ALLOCATION_PER_TRADE=-1",
        "TRADING_MIN_CONFIDENCE_THRESHOLD=1.5",
        "HTTP_TIMEOUT_SECONDS=0",
    ],
)
def test_load_configuration_rejects_bad_values(clean_env, env_file, line):
    with pytest.raises(ValueError):
        load_configuration(env_file(line + "\n"))


def test_example_env_documents_every_config_key():
    example = dotenv_values(Path(__file__).resolve().parent.parent / "config.env.example")

    assert set(example) == set(ENV_KEYS)
    # logging is configured before config.env is loaded
    assert not any(key.startswith("LOG_") for key in example)


# ------------------------- validate_config ------------------------- #

def test_validate_config_accepts_base(base_config):
    validate_config(base_config)


def test_validate_config_missing_keys(base_config):
    del base_config["TRADING"]
    with pytest.raises(ValueError, match="TRADING"):
        validate_config(base_config)


def test_validate_config_type_errors(base_config):
    base_config["COINDCX_API"] = ["not", "a", "dict"]
    with pytest.raises(TypeError):
        validate_config(base_config)


def test_validate_config_empty_quote_currency(base_config):
    base_config["TRADING"]["quote_currency"] = ""
    with pytest.raises(ValueError, match="quote_currency"):
        validate_config(base_config)


# ------------------------- ConfigManager ------------------------- #

def test_config_manager_helpers(base_config):
    cfg = ConfigManager(base_config)

    sizing = cfg.get_sizing_config()
    assert sizing.max_allocation_per_trade == 5000.0
    assert sizing.quote_currency == "INR"
    assert cfg.get_timeout() == 5.0
    # blank defaults fall back to the built-in names
    assert cfg.get_defaults()["strategy"] == "OllamaLLMStrategy"
    assert cfg.get_api_bind() == ("127.0.0.1", 8080)


# ------------------------- initialize_components ------------------------- #

def test_initialize_components_registers_everything(base_config):
    components = initialize_components(base_config, {"logger": logging.getLogger("test")})
    registry = components["registry"]

    assert registry.frozen
    assert registry.names(CapabilityKind.NEWS_SOURCE) == ["CryptoNewsScraper"]
    assert registry.names(CapabilityKind.MARKET_DATA) == ["CoinDCXMarketData"]
    assert registry.names(CapabilityKind.BROKER) == ["CoinDCXBroker"]
    assert registry.names(CapabilityKind.STRATEGY) == [
        "GoogleLLMStrategy",
        "NewsSentimentStrategy",
        "OllamaLLMStrategy",
    ]
    assert isinstance(components["pipeline"], TradingPipeline)
    assert isinstance(components["sizer"], SignalSizer)
    assert components["defaults"]["broker"] == "CoinDCXBroker"


def test_initialize_components_passes_settings_to_providers(base_config):
    base_config["COINDCX_API"] = {"api_key": "k", "api_secret": "s", "base_url": "https://dcx.test/"}
    components = initialize_components(base_config, {"logger": logging.getLogger("test")})
    broker = components["registry"].resolve(CapabilityKind.BROKER, "CoinDCXBroker")
    ollama = components["registry"].resolve(CapabilityKind.STRATEGY, "OllamaLLMStrategy")

    assert not broker.dry_run
    assert broker.base_url == "https://dcx.test"
    assert broker.timeout == 5.0
    assert ollama.url == "http://ollama.test"


def test_initialize_components_overrides(base_config):
    class OtherNews(BaseNewsSource):
        name = "OtherNews"

        async def fetch_news(self):
            return []

    broker = CoinDCXBroker()
    components = initialize_components(
        base_config,
        {"logger": logging.getLogger("test"), "news_sources": [OtherNews()], "brokers": [broker]},
    )
    registry = components["registry"]
    assert registry.names(CapabilityKind.NEWS_SOURCE) == ["OtherNews"]
    assert registry.resolve(CapabilityKind.BROKER, "CoinDCXBroker") is broker


def test_duplicate_names_fail_startup(base_config):
    with pytest.raises(DuplicateComponentError):
        initialize_components(
            base_config,
            {"logger": logging.getLogger("test"), "brokers": [CoinDCXBroker(), CoinDCXBroker()]},
        )
