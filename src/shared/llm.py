"""Shared LLM calling utilities.

Two interchangeable text backends sit behind one small interface:
1. Anthropic API (remote, uses ANTHROPIC_API_KEY)
2. Ollama (local inference server over HTTP)

Both expose ``complete(prompt)`` and ``chat(messages)``, enforce an explicit
timeout, and convert a timeout into ``LLMTimeoutError`` so callers never
confuse a slow model with weak content.
"""

from __future__ import annotations

import json
import logging
import os
import re
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from typing import Any

import anthropic

from seoforge.shared.errors import (
    ExtractionError,
    LLMError,
    LLMTimeoutError,
    LLMUnavailableError,
)

logger = logging.getLogger(__name__)

Message = dict[str, str]

# ---------------------------------------------------------------------------
# Model name mapping
# ---------------------------------------------------------------------------

_MODEL_MAP: dict[str, str] = {
    "sonnet": "claude-sonnet-4-20250514",
    "haiku": "claude-haiku-4-5-20251001",
    "opus": "claude-opus-4-20250514",
}

_DEFAULT_MODEL = "claude-sonnet-4-20250514"

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "qwen2.5:7b-instruct"

# Local model recommendations by use case
RECOMMENDED_OLLAMA_MODELS: dict[str, str] = {
    "premium": "nemotron-3-nano:30b-a3b-fp16",
    "balanced": "qwen2.5:7b-instruct",
    "fast": "qwen2.5:7b-instruct",
}


def _resolve_model(model: str | None) -> str:
    """Resolve a short model name to an API model ID."""
    if model is None:
        return _DEFAULT_MODEL
    return _MODEL_MAP.get(model, model)


# ---------------------------------------------------------------------------
# Backend interface
# ---------------------------------------------------------------------------


class LLMBackend(ABC):
    """A text-generation backend."""

    name: str = "llm"

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier used for generation."""

    @abstractmethod
    def chat(self, messages: list[Message], system_prompt: str | None = None) -> str:
        """Send a chat transcript and return the assistant reply."""

    def complete(self, prompt: str, system_prompt: str | None = None) -> str:
        """Single-turn completion."""
        return self.chat([{"role": "user", "content": prompt}], system_prompt)

    @abstractmethod
    def check_connection(self) -> bool:
        """Pre-flight health probe. Never raises."""

    @property
    def identity(self) -> str:
        """``backend:model`` label recorded on generated artifacts."""
        return f"{self.name}:{self.model}"


# ---------------------------------------------------------------------------
# Anthropic API
# ---------------------------------------------------------------------------


class AnthropicBackend(LLMBackend):
    """Claude via the Anthropic API."""

    name = "anthropic"

    def __init__(
        self,
        model: str | None = None,
        *,
        timeout: int = 600,
        max_tokens: int = 8000,
        api_key: str | None = None,
    ) -> None:
        self._model = _resolve_model(model)
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._api_key = api_key
        self._client: anthropic.Anthropic | None = None

    @property
    def model(self) -> str:
        return self._model

    def _key(self) -> str:
        return (self._api_key or os.environ.get("ANTHROPIC_API_KEY", "")).strip()

    def check_connection(self) -> bool:
        return bool(self._key())

    def _get_client(self) -> anthropic.Anthropic:
        """Lazy-create and cache the API client."""
        if self._client is None:
            api_key = self._key()
            if not api_key:
                raise LLMUnavailableError("ANTHROPIC_API_KEY not set")
            self._client = anthropic.Anthropic(api_key=api_key, timeout=self.timeout)
        return self._client

    def chat(self, messages: list[Message], system_prompt: str | None = None) -> str:
        client = self._get_client()
        logger.debug("Calling Anthropic API model=%s", self._model)

        kwargs: dict[str, object] = {
            "model": self._model,
            "max_tokens": self.max_tokens,
            "messages": messages,
        }
        if system_prompt and system_prompt.strip():
            kwargs["system"] = system_prompt

        try:
            response = client.messages.create(**kwargs)  # type: ignore[arg-type]
        except anthropic.APITimeoutError as exc:
            raise LLMTimeoutError(
                f"Anthropic API timed out after {self.timeout}s (model={self._model})"
            ) from exc
        except anthropic.APIConnectionError as exc:
            raise LLMUnavailableError(f"Cannot reach Anthropic API: {exc}") from exc
        except anthropic.APIError as exc:
            raise LLMError(f"Anthropic API failed (model={self._model}): {exc}") from exc

        text_parts: list[str] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)

        result = "".join(text_parts).strip()
        if not result:
            raise LLMError(f"Anthropic API returned empty response (model={self._model})")
        return result


# ---------------------------------------------------------------------------
# Ollama (local inference server)
# ---------------------------------------------------------------------------


class OllamaBackend(LLMBackend):
    """Locally running Ollama models over its HTTP API."""

    name = "ollama"

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None = None,
        timeout: int = 600,
        temperature: float = 0.7,
        top_p: float = 0.9,
        max_tokens: int = 8000,
    ) -> None:
        self._model = model or os.environ.get("OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL)
        self.base_url = (base_url or os.environ.get("OLLAMA_URL", DEFAULT_OLLAMA_URL)).rstrip("/")
        self.timeout = timeout
        self.temperature = temperature
        self.top_p = top_p
        self.max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._model

    def _options(self) -> dict[str, object]:
        return {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "num_predict": self.max_tokens,
        }

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        req = urllib.request.Request(
            url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except TimeoutError as exc:
            raise LLMTimeoutError(
                f"Ollama {path} timed out after {self.timeout}s (model={self._model})"
            ) from exc
        except urllib.error.HTTPError as exc:
            raise LLMError(f"Ollama API error: {exc.code} {exc.reason}") from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise LLMTimeoutError(
                    f"Ollama {path} timed out after {self.timeout}s (model={self._model})"
                ) from exc
            raise LLMUnavailableError(
                f"Cannot connect to Ollama at {self.base_url}: {exc.reason}"
            ) from exc

    def check_connection(self) -> bool:
        try:
            with urllib.request.urlopen(f"{self.base_url}/api/tags", timeout=10) as resp:
                return resp.status == 200
        except (urllib.error.URLError, OSError):
            return False

    def list_models(self) -> list[str]:
        try:
            with urllib.request.urlopen(f"{self.base_url}/api/tags", timeout=10) as resp:
                data = json.loads(resp.read().decode("utf-8"))
        except (urllib.error.URLError, OSError, json.JSONDecodeError):
            logger.warning("Failed to list Ollama models", exc_info=True)
            return []
        return [m.get("name", "") for m in data.get("models", [])]

    def complete(self, prompt: str, system_prompt: str | None = None) -> str:
        payload: dict[str, Any] = {
            "model": self._model,
            "prompt": prompt,
            "stream": False,
            "options": self._options(),
        }
        if system_prompt:
            payload["system"] = system_prompt
        logger.debug("Calling Ollama /api/generate model=%s", self._model)
        data = self._post("/api/generate", payload)
        return (data.get("response") or "").strip()

    def chat(self, messages: list[Message], system_prompt: str | None = None) -> str:
        all_messages = list(messages)
        if system_prompt:
            all_messages.insert(0, {"role": "system", "content": system_prompt})
        payload = {
            "model": self._model,
            "messages": all_messages,
            "stream": False,
            "options": self._options(),
        }
        logger.debug("Calling Ollama /api/chat model=%s", self._model)
        data = self._post("/api/chat", payload)
        message = data.get("message") or {}
        return (message.get("content") or "").strip()


def create_backend(
    backend: str,
    *,
    model: str | None = None,
    timeout: int = 600,
    ollama_url: str | None = None,
    temperature: float = 0.7,
    max_tokens: int = 8000,
) -> LLMBackend:
    """Factory keyed by backend name ("anthropic" or "ollama")."""
    if backend == "anthropic":
        return AnthropicBackend(model, timeout=timeout, max_tokens=max_tokens)
    if backend == "ollama":
        return OllamaBackend(
            model,
            base_url=ollama_url,
            timeout=timeout,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    raise ValueError(f"Unknown LLM backend: {backend!r} (expected 'anthropic' or 'ollama')")


# ---------------------------------------------------------------------------
# JSON output helpers
# ---------------------------------------------------------------------------

_FENCE_PATTERNS = [
    re.compile(r"```json\s*(.*?)```", re.DOTALL),
    re.compile(r"```\s*(.*?)```", re.DOTALL),
]
_DELIMITERS = (("{", "}"), ("[", "]"))


def _json_candidates(text: str) -> list[str]:
    """Fenced blocks, then outermost delimited blocks (earliest opener first), then the text."""
    candidates: list[str] = []
    for pattern in _FENCE_PATTERNS:
        match = pattern.search(text)
        if match:
            candidates.append(match.group(1).strip())

    openers = sorted(
        (text.find(start), start, end) for start, end in _DELIMITERS if start in text
    )
    for start_pos, _start, end in openers:
        end_pos = text.rfind(end)
        if end_pos > start_pos:
            candidates.append(text[start_pos : end_pos + 1])

    candidates.append(text.strip())
    return candidates


def extract_json(text: str) -> Any:
    """Pull structured data out of arbitrary LLM output.

    Tries, in order: a ```json fence, any fence, the outermost block opened
    by whichever of ``{`` / ``[`` appears first, then the whole text.

    Raises:
        ExtractionError: If none of the patterns parse.
    """
    for candidate in _json_candidates(text):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    raise ExtractionError("Could not extract valid JSON from response")
