"""
core/errors.py
--------------
Exception types shared by the pipeline and the provider adapters.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import aiohttp


class TradeBotError(Exception):
    """Base error for trade bot operations."""


class ConfigurationError(TradeBotError):
    """Bad wiring or configuration. Fatal to the request, never retried."""


class DuplicateComponentError(ConfigurationError):
    """A provider name was registered twice for the same capability."""


class UnknownComponentError(ConfigurationError):
    """No provider is registered under the requested name."""


class InvalidComponentError(ConfigurationError):
    """One or more pipeline component names failed to resolve."""


class ExternalProviderError(TradeBotError):
    """Network, timeout or non-2xx failure talking to an external service."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def is_client_error(self) -> bool:
        return self.status is not None and 400 <= self.status < 500


class ResponseParsingError(TradeBotError):
    """An external payload could not be decoded into the expected shape."""


# Everything an adapter boundary degrades on instead of propagating.
# ValueError covers json decoding and pydantic validation failures.
PROVIDER_FAILURES = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ExternalProviderError,
    ResponseParsingError,
    ValueError,
    LookupError,
    TypeError,
)
