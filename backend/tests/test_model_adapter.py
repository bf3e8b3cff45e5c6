"""Model adapter: response normalization and bounded error recovery."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from backend.app import config
from backend.app.constants import TRUNCATE_ELISION
from backend.app.core.errors import BindingUnavailable, ContextTooLarge
from backend.app.core.model_adapter import (
    ModelAdapter,
    close_clients,
    default_adapter,
    default_binding,
    extract_text,
    is_context_limit_error,
    is_transient_error,
    truncate_user_messages,
)
from backend.llm_client import LLMClient


def _messages(user: str = "hello"):
    return [{"role": "system", "content": "sys"}, {"role": "user", "content": user}]


def test_extract_text_shapes():
    assert extract_text("plain") == "plain"
    assert extract_text(None) == ""
    assert extract_text({"response": "a"}) == "a"
    assert extract_text({"text": "b"}) == "b"
    assert extract_text({"result": "c"}) == "c"
    assert extract_text(SimpleNamespace(text="d")) == "d"
    assert extract_text({"output": ["one", {"text": "two"}]}) == "one\ntwo"
    assert extract_text({"foo": 1}) == '{"foo": 1}'


def test_error_classifiers():
    assert is_context_limit_error(RuntimeError("This model's maximum context length is 8192 tokens"))
    assert is_context_limit_error(RuntimeError("Prompt is too long"))
    assert not is_context_limit_error(RuntimeError("boom"))
    assert is_transient_error(RuntimeError("Rate limit exceeded"))
    assert is_transient_error(RuntimeError("Server overloaded, try again"))
    assert not is_transient_error(RuntimeError("invalid api key"))


def test_missing_binding_raises():
    adapter = ModelAdapter(None)
    assert adapter.available is False
    with pytest.raises(BindingUnavailable) as exc:
        adapter.generate(_messages())
    assert exc.value.notice == "ai-missing"


def test_options_passed_to_binding(scripted):
    binding = scripted(["ok"])
    adapter = ModelAdapter(binding, temperature=0.5, max_tokens=800)
    assert adapter.generate(_messages()) == "ok"
    assert binding.calls[0][1] == {"temperature": 0.5, "max_tokens": 800}

    binding = scripted([{"response": "json"}])
    ModelAdapter(binding).generate(_messages(), temperature=0.1, max_tokens=50, json_mode=True)
    assert binding.calls[0][1] == {"temperature": 0.1, "max_tokens": 50, "json_mode": True}


def test_context_error_retries_once_truncated(scripted):
    binding = scripted([RuntimeError("maximum context length exceeded"), "recovered"])
    adapter = ModelAdapter(binding, max_tokens=1400)
    assert adapter.generate(_messages("x" * 20000)) == "recovered"

    retry_messages, retry_options = binding.calls[1]
    assert retry_options["max_tokens"] == 1200
    assert retry_messages[0]["content"] == "sys"
    assert TRUNCATE_ELISION in retry_messages[1]["content"]
    assert len(retry_messages[1]["content"]) <= 12000 + len(TRUNCATE_ELISION)


def test_context_retry_keeps_smaller_budget(scripted):
    binding = scripted([RuntimeError("token limit"), "ok"])
    ModelAdapter(binding).generate(_messages(), max_tokens=300)
    assert binding.calls[1][1]["max_tokens"] == 300


def test_second_context_error_is_context_too_large(scripted):
    second = RuntimeError("context window exceeded again")
    binding = scripted([RuntimeError("context window exceeded"), second])
    with pytest.raises(ContextTooLarge) as exc:
        ModelAdapter(binding).generate(_messages())
    assert exc.value.__cause__ is second
    assert exc.value.notice == "ai-too-long"


def test_transient_error_retries_after_sleep(scripted):
    sleeps = []
    binding = scripted([RuntimeError("Rate limit exceeded"), "ok"])
    adapter = ModelAdapter(binding, sleep=sleeps.append)
    assert adapter.generate(_messages()) == "ok"
    assert sleeps == [0.3]
    assert binding.calls[0][0] == binding.calls[1][0]


def test_transient_error_twice_propagates(scripted):
    binding = scripted([RuntimeError("overloaded"), RuntimeError("overloaded still")])
    with pytest.raises(RuntimeError, match="overloaded still"):
        ModelAdapter(binding, sleep=lambda _s: None).generate(_messages())


def test_other_errors_propagate_without_retry(scripted):
    binding = scripted([ValueError("bad request")])
    with pytest.raises(ValueError):
        ModelAdapter(binding).generate(_messages())
    assert len(binding.calls) == 1


def test_truncate_user_messages_leaves_system_untouched():
    messages = [{"role": "system", "content": "s" * 20}, {"role": "user", "content": "u" * 50}]
    out = truncate_user_messages(messages, 10)
    assert out[0] == messages[0]
    assert out[1]["content"] != messages[1]["content"]
    assert messages[1]["content"] == "u" * 50


def test_default_binding_none_for_unset_provider(monkeypatch):
    monkeypatch.setitem(config.MODEL_CONFIG, "generation", {"provider": "none", "model": ""})
    assert default_binding() is None
    assert default_adapter().available is False
    monkeypatch.setitem(config.MODEL_CONFIG, "generation", {"provider": "", "model": "x"})
    assert default_binding() is None


def test_default_binding_uses_provider_chat(monkeypatch):
    monkeypatch.setitem(
        config.MODEL_CONFIG,
        "generation",
        {"provider": "ollama", "model": "llama3.1:8b", "base_url": "http://ollama:11434"},
    )
    binding = default_binding()
    assert isinstance(binding.__self__, LLMClient)
    assert binding.__self__.base_url == "http://ollama:11434"
    close_clients()


def test_default_binding_reuses_one_client_per_role(monkeypatch):
    monkeypatch.setitem(
        config.MODEL_CONFIG,
        "generation",
        {"provider": "openai_compat", "model": "local-model", "base_url": "http://llm:8000"},
    )
    monkeypatch.setitem(
        config.MODEL_CONFIG,
        "metadata_tagger",
        {"provider": "openai_compat", "model": "local-model", "base_url": "http://llm:8000"},
    )
    first = default_binding().__self__
    assert default_adapter().binding.__self__ is first
    tagger = default_binding("metadata_tagger").__self__
    assert tagger is not first

    close_clients()
    assert first.client.is_closed
    assert tagger.client.is_closed
    assert default_binding().__self__ is not first
    close_clients()
