"""
strategy/google_llm.py
----------------------
Signals from Google's Gemini ``generateContent`` endpoint.
"""

from __future__ import annotations

from typing import Optional

import aiohttp

from utils.http import request_json

from .llm import LLMStrategy

DEFAULT_GOOGLE_MODEL = "gemini-3-flash-preview"
API_URL_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GoogleLLMStrategy(LLMStrategy):
    name = "GoogleLLMStrategy"

    def __init__(self, api_key: str = "", model: str = DEFAULT_GOOGLE_MODEL, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model

    @property
    def url(self) -> str:
        return API_URL_TEMPLATE.format(model=self.model)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _complete(self, session: aiohttp.ClientSession, prompt: str) -> Optional[str]:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        data = await request_json(
            session,
            "POST",
            self.url,
            json=payload,
            headers={"x-goog-api-key": self.api_key},
            timeout=self.timeout,
        )
        if not isinstance(data, dict):
            return None
        candidates = data.get("candidates") or []
        if not candidates:
            return None
        return candidates[0]["content"]["parts"][0]["text"]
