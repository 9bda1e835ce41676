"""Tests for seoforge.shared.llm backends and JSON extraction."""

from __future__ import annotations

import json
import urllib.error
from unittest.mock import MagicMock, patch

import anthropic
import pytest

from seoforge.shared.errors import (
    ExtractionError,
    LLMError,
    LLMTimeoutError,
    LLMUnavailableError,
)
from seoforge.shared.llm import (
    AnthropicBackend,
    OllamaBackend,
    create_backend,
    extract_json,
)


def _urlopen_response(payload: dict, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.read.return_value = json.dumps(payload).encode("utf-8")
    resp.status = status
    resp.__enter__ = MagicMock(return_value=resp)
    resp.__exit__ = MagicMock(return_value=False)
    return resp


def _text_block(text: str) -> MagicMock:
    block = MagicMock()
    block.type = "text"
    block.text = text
    return block


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------


class TestExtractJson:
    def test_bare_object_in_prose(self):
        assert extract_json('Here you go: {"a": 1} thanks') == {"a": 1}

    def test_earliest_delimiter_wins(self):
        assert extract_json('["x", {"a": 1}]') == ["x", {"a": 1}]

    def test_object_with_trailing_bracket_prose(self):
        assert extract_json('{"a": [1]} see [note]') == {"a": [1]}

    def test_fenced(self):
        assert extract_json('Sure!\n```json\n{"title": "T"}\n```') == {"title": "T"}

    def test_plain_fence(self):
        assert extract_json('```\n[1, 2]\n```') == [1, 2]

    def test_bare_array(self):
        assert extract_json('Result: ["a", "b"]') == ["a", "b"]

    def test_whole_text(self):
        assert extract_json('  {"k": "v"}  ') == {"k": "v"}

    def test_nothing_parses(self):
        with pytest.raises(ExtractionError):
            extract_json("no structured data here")


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


class TestAnthropicBackend:
    def test_model_alias(self):
        assert AnthropicBackend("haiku").model.startswith("claude-haiku")

    def test_identity(self):
        backend = AnthropicBackend("claude-x")
        assert backend.identity == "anthropic:claude-x"

    def test_check_connection_needs_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        assert not AnthropicBackend().check_connection()
        assert AnthropicBackend(api_key="sk-test").check_connection()

    def test_missing_key_raises_unavailable(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(LLMUnavailableError):
            AnthropicBackend().chat([{"role": "user", "content": "hi"}])

    @patch("seoforge.shared.llm.anthropic.Anthropic")
    def test_chat_joins_text_blocks(self, mock_cls: MagicMock):
        client = mock_cls.return_value
        client.messages.create.return_value = MagicMock(
            content=[_text_block("Hello "), _text_block("world")]
        )
        backend = AnthropicBackend("claude-x", api_key="sk-test", max_tokens=123)

        result = backend.chat([{"role": "user", "content": "hi"}], "be brief")

        assert result == "Hello world"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "be brief"
        assert kwargs["max_tokens"] == 123

    @patch("seoforge.shared.llm.anthropic.Anthropic")
    def test_timeout_is_distinct(self, mock_cls: MagicMock):
        client = mock_cls.return_value
        client.messages.create.side_effect = anthropic.APITimeoutError(request=MagicMock())
        backend = AnthropicBackend(api_key="sk-test")
        with pytest.raises(LLMTimeoutError):
            backend.complete("hi")

    @patch("seoforge.shared.llm.anthropic.Anthropic")
    def test_empty_response(self, mock_cls: MagicMock):
        mock_cls.return_value.messages.create.return_value = MagicMock(content=[])
        with pytest.raises(LLMError, match="empty response"):
            AnthropicBackend(api_key="sk-test").complete("hi")


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------


class TestOllamaBackend:
    @patch("seoforge.shared.llm.urllib.request.urlopen")
    def test_complete(self, mock_urlopen: MagicMock):
        mock_urlopen.return_value = _urlopen_response({"response": "  generated  "})
        backend = OllamaBackend("qwen", base_url="http://ollama:11434/")

        assert backend.complete("prompt", "system") == "generated"
        req = mock_urlopen.call_args.args[0]
        assert req.full_url == "http://ollama:11434/api/generate"
        body = json.loads(req.data.decode("utf-8"))
        assert body["system"] == "system"
        assert body["stream"] is False

    @patch("seoforge.shared.llm.urllib.request.urlopen")
    def test_chat_prepends_system(self, mock_urlopen: MagicMock):
        mock_urlopen.return_value = _urlopen_response({"message": {"content": "reply"}})
        backend = OllamaBackend("qwen", base_url="http://ollama:11434")

        assert backend.chat([{"role": "user", "content": "hi"}], "sys") == "reply"
        body = json.loads(mock_urlopen.call_args.args[0].data.decode("utf-8"))
        assert body["messages"][0] == {"role": "system", "content": "sys"}

    @patch("seoforge.shared.llm.urllib.request.urlopen")
    def test_timeout(self, mock_urlopen: MagicMock):
        mock_urlopen.side_effect = urllib.error.URLError(TimeoutError("timed out"))
        with pytest.raises(LLMTimeoutError):
            OllamaBackend("qwen", base_url="http://ollama:11434").complete("hi")

    @patch("seoforge.shared.llm.urllib.request.urlopen")
    def test_unreachable(self, mock_urlopen: MagicMock):
        mock_urlopen.side_effect = urllib.error.URLError("connection refused")
        with pytest.raises(LLMUnavailableError):
            OllamaBackend("qwen", base_url="http://ollama:11434").complete("hi")

    @patch("seoforge.shared.llm.urllib.request.urlopen")
    def test_check_connection(self, mock_urlopen: MagicMock):
        mock_urlopen.return_value = _urlopen_response({"models": []})
        assert OllamaBackend("qwen", base_url="http://ollama:11434").check_connection()
        mock_urlopen.side_effect = urllib.error.URLError("down")
        assert not OllamaBackend("qwen", base_url="http://ollama:11434").check_connection()

    @patch("seoforge.shared.llm.urllib.request.urlopen")
    def test_list_models(self, mock_urlopen: MagicMock):
        mock_urlopen.return_value = _urlopen_response({"models": [{"name": "a"}, {"name": "b"}]})
        assert OllamaBackend("qwen", base_url="http://x").list_models() == ["a", "b"]


class TestCreateBackend:
    def test_known_backends(self):
        assert isinstance(create_backend("anthropic"), AnthropicBackend)
        assert isinstance(create_backend("ollama", model="m", ollama_url="http://x"), OllamaBackend)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown LLM backend"):
            create_backend("gpt")
