"""LLM provider abstraction: unified chat interface for Ollama, Anthropic, and OpenAI-compatible backends.

Each provider implements ChatProviderProtocol: ``chat(messages, options)``
takes role-tagged messages plus ``{temperature, max_tokens}`` and returns
the response text. The model adapter uses ``provider.chat`` as its binding.
"""
from __future__ import annotations

import json as _json
import logging
import os
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = float(os.environ.get("LLM_TIMEOUT", os.environ.get("OLLAMA_TIMEOUT", "300")))

SUPPORTED_PROVIDERS = ("ollama", "anthropic", "openai", "openai_compat")


class LLMProviderError(Exception):
    """Raised when an LLM request fails."""


@runtime_checkable
class ChatProviderProtocol(Protocol):
    """Unified interface for LLM providers."""

    def chat(self, messages: List[Dict[str, str]], options: Optional[Dict[str, Any]] = None) -> str:
        """Run one chat completion. Returns raw response text."""
        ...


def _split_system(messages: List[Dict[str, str]]) -> tuple[str, List[Dict[str, str]]]:
    """Anthropic takes system text as a top-level field, not a message."""
    system_parts = [m.get("content", "") for m in messages if m.get("role") == "system"]
    rest = [
        {"role": m.get("role", "user"), "content": m.get("content", "")}
        for m in messages
        if m.get("role") != "system"
    ]
    return "\n\n".join(p for p in system_parts if p), rest


def _raise_for_transport(
    exc: httpx.HTTPError,
    name: str,
    base_url: str,
    error_cls: type[LLMProviderError] = LLMProviderError,
) -> None:
    """Re-raise an httpx failure as error_cls; HTTP errors keep the server text."""
    if isinstance(exc, httpx.TimeoutException):
        raise error_cls(f"{name} request timed out") from exc
    if isinstance(exc, httpx.ConnectError):
        raise error_cls(f"Cannot connect to {name} API at {base_url}") from exc
    if isinstance(exc, httpx.HTTPStatusError):
        raise error_cls(
            f"{name} HTTP error {exc.response.status_code}: {exc.response.text[:500]}"
        ) from exc
    raise error_cls(f"{name} network error: {exc}") from exc


class _HTTPChatClient:
    """Shared httpx plumbing for the cloud chat clients."""

    name = "LLM"
    api_key_env = ""
    default_base_url = ""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ):
        self.model = model
        self.api_key = api_key or (os.environ.get(self.api_key_env, "") if self.api_key_env else "")
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.max_tokens = max_tokens
        self.client = httpx.Client(timeout=_DEFAULT_TIMEOUT)

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _base_payload(self, options: Dict[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": options.get("max_tokens") or self.max_tokens,
        }
        if options.get("temperature") is not None:
            payload["temperature"] = options["temperature"]
        return payload

    def _post_json(self, path: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = self.client.post(f"{self.base_url}{path}", json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("%s request failed (model=%s): %s", self.name, self.model, exc)
            _raise_for_transport(exc, self.name, self.base_url)
        try:
            return response.json()
        except _json.JSONDecodeError as exc:
            raise LLMProviderError(f"{self.name} returned non-JSON response") from exc


class AnthropicClient(_HTTPChatClient):
    """Client for Anthropic's Messages API (Claude models).

    Requires ANTHROPIC_API_KEY environment variable or api_key parameter.
    """

    name = "Anthropic"
    api_key_env = "ANTHROPIC_API_KEY"
    default_base_url = "https://api.anthropic.com"

    def __init__(self, model: str = "claude-sonnet-4-5-20250929", **kwargs: Any):
        super().__init__(model, **kwargs)

    def chat(self, messages: List[Dict[str, str]], options: Optional[Dict[str, Any]] = None) -> str:
        """Call Anthropic Messages API; text blocks are concatenated."""
        if not self.api_key:
            raise LLMProviderError("ANTHROPIC_API_KEY not set")
        system, rest = _split_system(messages)
        payload = self._base_payload(options or {})
        payload["messages"] = rest
        if system:
            payload["system"] = system
        body = self._post_json(
            "/v1/messages",
            payload,
            {
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01",
                "content-type": "application/json",
            },
        )
        return "".join(
            block.get("text", "")
            for block in body.get("content", [])
            if isinstance(block, dict) and block.get("type") == "text"
        )


class OpenAICompatClient(_HTTPChatClient):
    """Client for OpenAI-compatible APIs (OpenAI, local servers, etc.).

    Works with any OpenAI-compatible endpoint (OpenRouter, Together, vLLM, etc.).
    OPENAI_API_KEY is optional for local servers.
    """

    name = "OpenAI-compatible"
    api_key_env = "OPENAI_API_KEY"
    default_base_url = "https://api.openai.com"

    def __init__(self, model: str = "gpt-4o", **kwargs: Any):
        super().__init__(model, **kwargs)

    def chat(self, messages: List[Dict[str, str]], options: Optional[Dict[str, Any]] = None) -> str:
        """Call the chat completions API; ``json_mode`` requests a JSON object response."""
        options = options or {}
        payload = self._base_payload(options)
        payload["messages"] = [{"role": m.get("role", "user"), "content": m.get("content", "")} for m in messages]
        if options.get("json_mode"):
            payload["response_format"] = {"type": "json_object"}
        headers: Dict[str, str] = {"content-type": "application/json"}
        if self.api_key:
            headers["authorization"] = f"Bearer {self.api_key}"
        body = self._post_json("/v1/chat/completions", payload, headers)
        choices = body.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content", "") or ""


def create_provider(
    provider: str,
    model: str,
    base_url: str = "",
    api_key: str = "",
) -> ChatProviderProtocol:
    """Factory: create a chat client by provider name (see SUPPORTED_PROVIDERS)."""
    if provider == "ollama":
        from backend.llm_client import LLMClient

        return LLMClient(base_url=base_url or None, model=model)
    if provider == "anthropic":
        return AnthropicClient(model=model, api_key=api_key or None, base_url=base_url or None)
    if provider in ("openai", "openai_compat"):
        return OpenAICompatClient(model=model, api_key=api_key or None, base_url=base_url or None)
    raise NotImplementedError(
        f"Provider '{provider}' not supported. Supported: {', '.join(SUPPORTED_PROVIDERS)}."
    )
