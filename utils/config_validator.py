def validate_config(config: dict):
    required_keys = [
        "COINDCX_API",
        "TRADING",
        "DEFAULTS",
    ]

    missing = [k for k in required_keys if k not in config or not config[k]]
    if missing:
        raise ValueError(f"Missing required configuration keys: {missing}")

    if not isinstance(config["COINDCX_API"], dict):
        raise TypeError("COINDCX_API must be a dictionary.")

    if not isinstance(config["DEFAULTS"], dict):
        raise TypeError("DEFAULTS must be a dictionary.")

    trading = config["TRADING"]
    if not isinstance(trading, dict):
        raise TypeError("TRADING must be a dictionary.")

    allocation = trading.get("max_allocation_per_trade")
    if not isinstance(allocation, (int, float)) or allocation <= 0:
        raise ValueError("TRADING.max_allocation_per_trade must be a positive number.")

    threshold = trading.get("min_confidence_threshold")
    if not isinstance(threshold, (int, float)) or not 0.0 <= threshold <= 1.0:
        raise ValueError("TRADING.min_confidence_threshold must be between 0 and 1.")

    if not trading.get("quote_currency"):
        raise ValueError("TRADING.quote_currency must be a non-empty string.")

    timeout = config.get("HTTP_TIMEOUT_SECONDS", 10.0)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError("HTTP_TIMEOUT_SECONDS must be a positive number.")
