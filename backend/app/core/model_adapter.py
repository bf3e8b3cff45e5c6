"""
Model adapter: calls the text generator and normalizes its response.

A binding is any callable ``(messages, options) -> raw`` where ``options``
holds ``temperature`` and ``max_tokens``. The adapter recovers once from a
context-length error (truncated input, smaller budget) and once from a
transient error (short fixed sleep, same input). Everything else propagates.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Callable, Optional

from backend.app.constants import (
    ADAPTER_CONTEXT_RETRY_CHARS,
    ADAPTER_CONTEXT_RETRY_MAX_TOKENS,
    ADAPTER_TRANSIENT_RETRY_DELAY_S,
)
from backend.app.core.errors import BindingUnavailable, ContextTooLarge
from backend.app.core.text_utils import truncate_middle

logger = logging.getLogger(__name__)

Messages = list[dict[str, str]]
Binding = Callable[[Messages, dict[str, Any]], Any]

CONTEXT_LIMIT_MARKERS = (
    "maximum context length",
    "context window",
    "token limit",
    "too many tokens",
    "prompt too long",
    "prompt is too long",
    "input too long",
    "context_length_exceeded",
)
TRANSIENT_MARKERS = (
    "rate limit",
    "temporarily unavailable",
    "overloaded",
    "try again",
    "internal error",
)


def _message_of(error: BaseException) -> str:
    return str(error).lower()


def is_context_limit_error(error: BaseException) -> bool:
    message = _message_of(error)
    return any(marker in message for marker in CONTEXT_LIMIT_MARKERS)


def is_transient_error(error: BaseException) -> bool:
    message = _message_of(error)
    return any(marker in message for marker in TRANSIENT_MARKERS)


def extract_text(raw: Any) -> str:
    """Plain text from a generator response.

    Accepts a string, or a mapping/object with ``response``, ``text`` or
    ``result``, or an ``output`` list joined by newlines. Anything else is
    JSON-serialized.
    """
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    for key in ("response", "text", "result"):
        value = raw.get(key) if isinstance(raw, dict) else getattr(raw, key, None)
        if isinstance(value, str):
            return value
    output = raw.get("output") if isinstance(raw, dict) else getattr(raw, "output", None)
    if isinstance(output, (list, tuple)):
        return "\n".join(extract_text(item) for item in output)
    try:
        return json.dumps(raw)
    except (TypeError, ValueError):
        return str(raw)


def truncate_user_messages(messages: Messages, max_chars: int = ADAPTER_CONTEXT_RETRY_CHARS) -> Messages:
    """Copy of messages with every user-role content cut to max_chars (head/tail kept)."""
    out = []
    for message in messages:
        if message.get("role") == "user":
            message = {**message, "content": truncate_middle(message.get("content", ""), max_chars)}
        out.append(message)
    return out


class ModelAdapter:
    """Generator binding plus bounded recovery."""

    def __init__(
        self,
        binding: Optional[Binding],
        *,
        temperature: float = 0.7,
        max_tokens: int = 1400,
        transient_delay: float = ADAPTER_TRANSIENT_RETRY_DELAY_S,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.binding = binding
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.transient_delay = transient_delay
        self._sleep = sleep

    @property
    def available(self) -> bool:
        return self.binding is not None

    def generate(
        self,
        messages: Messages,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        if self.binding is None:
            raise BindingUnavailable()
        options: dict[str, Any] = {
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }
        if json_mode:
            options["json_mode"] = True
        return extract_text(self._call_with_recovery(messages, options))

    def _call_with_recovery(self, messages: Messages, options: dict[str, Any]) -> Any:
        try:
            return self.binding(messages, options)
        except Exception as error:
            if is_context_limit_error(error):
                return self._retry_truncated(messages, options, error)
            if is_transient_error(error):
                logger.warning("Transient generator error, retrying once in %.1fs: %s", self.transient_delay, error)
                self._sleep(self.transient_delay)
                return self.binding(messages, options)
            raise

    def _retry_truncated(self, messages: Messages, options: dict[str, Any], error: Exception) -> Any:
        retry_options = {
            **options,
            "max_tokens": min(options["max_tokens"], ADAPTER_CONTEXT_RETRY_MAX_TOKENS),
        }
        logger.warning(
            "Generator context limit hit (%s); retrying with user messages cut to %d chars, max_tokens=%d",
            error,
            ADAPTER_CONTEXT_RETRY_CHARS,
            retry_options["max_tokens"],
        )
        try:
            return self.binding(truncate_user_messages(messages), retry_options)
        except Exception as retry_error:
            if is_context_limit_error(retry_error):
                raise ContextTooLarge() from retry_error
            raise


# One client per configured role; reused across requests.
_CLIENTS: dict[tuple[str, str, str, str, str], Any] = {}
_CLIENTS_LOCK = threading.Lock()


def _get_client(role: str) -> Any:
    """Lazy per-role client. Returns None when the role's provider is unset/"none"."""
    from backend.app import config
    from backend.app.core.llm_provider import create_provider

    cfg = config.MODEL_CONFIG.get(role) or {}
    provider = (cfg.get("provider") or "").strip().lower()
    if not provider or provider == "none":
        return None
    key = (role, provider, cfg.get("model", ""), cfg.get("base_url", ""), cfg.get("api_key", ""))
    with _CLIENTS_LOCK:
        client = _CLIENTS.get(key)
        if client is None:
            client = create_provider(provider, key[2], base_url=key[3], api_key=key[4])
            _CLIENTS[key] = client
    return client


def close_clients() -> None:
    """Close every cached provider client (API shutdown)."""
    with _CLIENTS_LOCK:
        clients = list(_CLIENTS.values())
        _CLIENTS.clear()
    for client in clients:
        close = getattr(client, "close", None)
        if close is not None:
            close()


def default_binding(role: str = "generation") -> Optional[Binding]:
    """Binding for a configured role, or None when its provider is unset/"none"."""
    client = _get_client(role)
    return client.chat if client is not None else None


def default_adapter(role: str = "generation") -> ModelAdapter:
    from backend.app.config import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE

    return ModelAdapter(default_binding(role), temperature=DEFAULT_TEMPERATURE, max_tokens=DEFAULT_MAX_TOKENS)
