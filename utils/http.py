"""
utils/http.py
-------------
Small aiohttp helpers shared by every adapter: an optional-session scope
and a JSON request that always carries a bounded timeout.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import aiohttp

from core.errors import ExternalProviderError, ResponseParsingError

DEFAULT_TIMEOUT_SECONDS = 10.0


@asynccontextmanager
async def session_scope(
    session: Optional[aiohttp.ClientSession] = None,
) -> AsyncIterator[aiohttp.ClientSession]:
    """Yield the injected session, or a short-lived one closed on exit."""
    if session is not None:
        yield session
        return
    async with aiohttp.ClientSession() as owned:
        yield owned


async def request_json(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    **kwargs: Any,
) -> Any:
    """Send a request and decode the JSON body.

    Raises ``ExternalProviderError`` for any non-2xx status (the raw body is
    kept on the exception) and ``ResponseParsingError`` when the body is not
    JSON. Transport errors and timeouts propagate as raised by aiohttp.
    """
    async with session.request(
        method, url, timeout=aiohttp.ClientTimeout(total=timeout), **kwargs
    ) as resp:
        status = resp.status
        body = await resp.text()

    if not 200 <= status < 300:
        raise ExternalProviderError(
            f"{method} {url} -> HTTP {status}", status=status, body=body
        )
    try:
        return json.loads(body)
    except ValueError as exc:
        raise ResponseParsingError(f"{method} {url} returned a non-JSON body") from exc
