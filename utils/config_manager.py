from typing import Any, Dict

from core.sizing import SizingConfig


class ConfigManager:
    def __init__(self, config: Dict[str, Any]):
        self.config = config

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def get_coindcx(self) -> Dict[str, Any]:
        return self.config.get("COINDCX_API") or {}

    def get_timeout(self) -> float:
        return float(self.config.get("HTTP_TIMEOUT_SECONDS", 10.0))

    def get_sizing_config(self) -> SizingConfig:
        trading = self.config.get("TRADING") or {}
        return SizingConfig(
            max_allocation_per_trade=float(trading.get("max_allocation_per_trade", 5000.0)),
            min_confidence_threshold=float(trading.get("min_confidence_threshold", 0.7)),
            quote_currency=trading.get("quote_currency") or "INR",
        )

    def get_defaults(self) -> Dict[str, str]:
        defaults = {
            "news_source": "CryptoNewsScraper",
            "strategy": "OllamaLLMStrategy",
            "broker": "CoinDCXBroker",
            "market_data": "CoinDCXMarketData",
        }
        defaults.update({k: v for k, v in (self.config.get("DEFAULTS") or {}).items() if v})
        return defaults

    def get_api_bind(self) -> tuple:
        return self.config.get("API_HOST", "127.0.0.1"), int(self.config.get("API_PORT", 8080))
