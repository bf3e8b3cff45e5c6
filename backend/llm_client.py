"""LLM client for Ollama-compatible endpoints (Ollama /api/chat)."""

import json as _json
import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from backend.app.core.llm_provider import LLMProviderError, _raise_for_transport

logger = logging.getLogger(__name__)

# Ollama can be slow on large prompts; default 5 minutes, configurable via env
_LLM_TIMEOUT = float(os.environ.get("OLLAMA_TIMEOUT", "300"))


class LLMClientError(LLMProviderError):
    """Raised when an Ollama request fails."""


class LLMClient:
    """Client for interacting with Ollama-compatible LLM endpoints."""

    def __init__(self, base_url: str | None = None, model: Optional[str] = None, timeout: float | None = None):
        self.base_url = (base_url or "http://localhost:11434").strip().rstrip("/")
        self.model = model
        self._timeout = timeout or _LLM_TIMEOUT
        self.client = httpx.Client(timeout=self._timeout)

    def close(self) -> None:
        """Close the underlying HTTP client (optional, for clean shutdown)."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _ensure_model(self) -> None:
        """Pick the first installed model when none was configured."""
        if self.model:
            return
        try:
            resp = self.client.get(f"{self.base_url}/api/tags")
            resp.raise_for_status()
            models = resp.json().get("models", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to auto-detect model: %s", e)
            raise LLMClientError("Model not specified and auto-detection failed") from e
        if not models:
            raise LLMClientError("Model not specified and Ollama has no models installed")
        self.model = models[0]["name"]
        logger.info("Auto-detected model: %s", self.model)

    def _payload(self, messages: List[Dict[str, str]], options: Dict[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"model": self.model, "messages": messages, "stream": False}
        sampling: Dict[str, Any] = {}
        if options.get("temperature") is not None:
            sampling["temperature"] = options["temperature"]
        if options.get("max_tokens"):
            sampling["num_predict"] = options["max_tokens"]
        if sampling:
            payload["options"] = sampling
        if options.get("json_mode"):
            payload["format"] = "json"
        return payload

    def chat(self, messages: List[Dict[str, str]], options: Optional[Dict[str, Any]] = None) -> str:
        """Call /api/chat; return the assistant message text.

        ``options`` carries ``temperature`` and ``max_tokens`` (sent to Ollama
        as ``num_predict``); ``json_mode`` constrains output to valid JSON.

        Raises :class:`LLMClientError` on transport or decoding failures; the
        message keeps the server's error text so callers can classify it.
        """
        self._ensure_model()
        try:
            response = self.client.post(f"{self.base_url}/api/chat", json=self._payload(messages, options or {}))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Ollama request failed (model=%s, url=%s): %s", self.model, self.base_url, exc)
            _raise_for_transport(exc, "Ollama", self.base_url, LLMClientError)

        try:
            body = response.json()
        except _json.JSONDecodeError as exc:
            logger.error(
                "Ollama response was not valid JSON (status %d, first 500 chars): %s",
                response.status_code,
                response.text[:500],
            )
            raise LLMClientError("Ollama returned non-JSON response") from exc

        return (body.get("message") or {}).get("content", "")
