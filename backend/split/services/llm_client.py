"""Thin chat-completions clients for OpenAI and Perplexity over httpx."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from split.config import get_settings

logger = logging.getLogger(__name__)


class VisibilityServiceError(Exception):
    """Raised when an upstream AI/scraping API call fails."""


@dataclass
class ChatResponse:
    content: str
    search_results: list[dict[str, Any]] = field(default_factory=list)
    duration_ms: int = 0


class ChatClient:
    """Minimal OpenAI-compatible chat-completions client.

    Perplexity exposes the same request shape and adds ``search_results``
    (and, on older models, ``citations``) to the response body.
    """

    def __init__(self, api_url: str, api_key: str, model: str, timeout: float = 60,
                 http_client: httpx.Client | None = None):
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._http = http_client

    @classmethod
    def openai(cls, http_client: httpx.Client | None = None) -> "ChatClient":
        settings = get_settings()
        return cls(settings.openai_url, settings.openai_api_key, settings.openai_model,
                   timeout=settings.http_timeout, http_client=http_client)

    @classmethod
    def perplexity(cls, http_client: httpx.Client | None = None) -> "ChatClient":
        settings = get_settings()
        return cls(settings.perplexity_url, settings.perplexity_api_key, settings.perplexity_model,
                   timeout=settings.http_timeout, http_client=http_client)

    def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        payload: dict[str, Any] = {"model": self.model, "messages": messages}
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature

        started = time.monotonic()
        try:
            if self._http is not None:
                resp = self._http.post(self.api_url, json=payload, headers=self._headers(), timeout=self.timeout)
            else:
                resp = httpx.post(self.api_url, json=payload, headers=self._headers(), timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise VisibilityServiceError(f"{self.model} request failed: {e}") from e

        choices = data.get("choices") or []
        content = ""
        if choices:
            content = (choices[0].get("message") or {}).get("content") or ""

        search_results = data.get("search_results")
        if search_results is None:
            search_results = [{"url": url} for url in data.get("citations") or []]

        return ChatResponse(
            content=content,
            search_results=search_results,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
