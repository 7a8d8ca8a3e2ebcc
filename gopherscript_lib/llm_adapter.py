#!/usr/bin/env python3
from __future__ import annotations

"""
Model-agnostic LLM adapter for GopherScript.

Provides a unified `generate(prompt) -> str` interface over three hosted
text-generation APIs:
- Google Gemini     (API key in the query string)
- OpenAI Chat       (Bearer token)
- Anthropic Claude  (x-api-key header)

Each client sends exactly one synchronous POST per call. Failures are raised as
GenerationError subclasses; an empty string is never returned as success.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests

from gopherscript_lib.errors import (
    ConfigurationError,
    EmptyResponseError,
    MalformedResponseError,
    ProviderAPIError,
    TransportError,
)


class Provider(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    CLAUDE = "claude"

    @classmethod
    def valid_providers(cls) -> list[str]:
        return [p.value for p in cls]

    @classmethod
    def parse(cls, value: "Provider | str") -> "Provider":
        """
        Convert a provider name to a Provider.

        Raises:
            ConfigurationError: If the name is not a known provider.
        """
        if isinstance(value, Provider):
            return value
        try:
            return cls(str(value).lower().strip())
        except ValueError:
            raise ConfigurationError(
                f"invalid provider '{value}'. Valid providers: {', '.join(cls.valid_providers())}",
                provider=str(value),
            ) from None


@dataclass
class LLMConfig:
    """
    Configuration for an LLM client.

    Attributes:
        provider: Which backend to call.
        api_key: Credential for that backend (must be non-empty).
        model: Model name override; None uses the client's default model.
        timeout_sec: HTTP timeout override; None uses the client's default.
    """
    provider: Provider
    api_key: str
    model: Optional[str] = None
    timeout_sec: Optional[int] = None


def _preview(text: str) -> str:
    lines = text.splitlines()
    return "\n".join(lines[:5] + (["..."] if len(lines) > 10 else []) + lines[-5:])


class LLMClient(ABC):
    """
    Base class for a single-provider client.

    Subclasses describe the request envelope and how to dig the text (or the
    provider's error object) out of the response; transport and status
    handling live here.
    """

    provider: Provider
    default_model: str = ""
    default_timeout_sec: int = 120

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout_sec: Optional[int] = None,
        verbosity: int = 0,
    ) -> None:
        self.api_key = api_key
        self.model = model or self.default_model
        self.timeout_sec = timeout_sec or self.default_timeout_sec
        self.verbosity = verbosity

    @property
    def name(self) -> str:
        return self.provider.value

    @abstractmethod
    def _build_request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, str], dict[str, Any]]:
        """Return (url, headers, query params, JSON body) for one prompt."""

    @abstractmethod
    def _extract_error(self, data: dict[str, Any]) -> Optional[tuple[str, str]]:
        """Return (code, message) if the body carries an error object."""

    @abstractmethod
    def _extract_text(self, data: dict[str, Any]) -> Optional[str]:
        """Return the first usable text payload, or None."""

    def generate(self, prompt: str) -> str:
        """
        Send a prompt to the provider and return the generated text.

        Args:
            prompt: The input text to send to the model.

        Returns:
            The model's output (never empty).

        Raises:
            TransportError: Connection failure or timeout.
            ProviderAPIError: Non-2xx status or an error object in the body.
            MalformedResponseError: 2xx body that isn't a JSON object or has the wrong shape.
            EmptyResponseError: 2xx body without extractable text.
        """
        if self.verbosity >= 1:
            print(f"   🛈 [LLMAdapter] Using provider '{self.name}' with model '{self.model}'")
        if self.verbosity >= 3:
            print("\n      🛈 [LLMAdapter] Full prompt being sent:\n" + prompt + "\n")
        elif self.verbosity == 2:
            print("\n      🛈 [LLMAdapter] Prompt preview:\n" + _preview(prompt) + "\n")

        url, headers, params, payload = self._build_request(prompt)
        data = self._post(url, headers, params, payload)

        try:
            text = self._extract_text(data)
        except (AttributeError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(
                f"unexpected {self.name} response structure: {e}", provider=self.name
            ) from e
        if text is not None and not isinstance(text, str):
            raise MalformedResponseError(
                f"unexpected {self.name} response structure: text is {type(text).__name__}",
                provider=self.name,
            )
        if not text or not text.strip():
            raise EmptyResponseError(f"empty response from {self.name} API", provider=self.name)

        if self.verbosity >= 3:
            print("      🛈 [LLMAdapter] Full raw output:\n" + text + "\n")
        elif self.verbosity == 2:
            print("      🛈 [LLMAdapter] Output preview:\n" + _preview(text) + "\n")
        if self.verbosity >= 1:
            print(f"   🛈 [LLMAdapter] Received {len(text)} chars from {self.name}")

        return text

    def _redact(self, text: str) -> str:
        if self.api_key:
            return text.replace(self.api_key, "***")
        return text

    def _post(
        self,
        url: str,
        headers: dict[str, str],
        params: dict[str, str],
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            resp = requests.post(
                url,
                json=payload,
                headers=headers,
                params=params or None,
                timeout=self.timeout_sec,
            )
        except requests.Timeout as e:
            raise TransportError(
                f"{self.name} request timed out after {self.timeout_sec}s", provider=self.name
            ) from e
        except requests.RequestException as e:
            raise TransportError(
                f"failed to send request to {self.name}: {self._redact(str(e))}", provider=self.name
            ) from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if isinstance(data, dict):
            err = self._extract_error(data)
            if err is not None:
                code, message = err
                raise ProviderAPIError(
                    f"{self.name} API error [{code}]: {message}",
                    provider=self.name,
                    status_code=resp.status_code,
                    code=code,
                )

        if not resp.ok:
            body = self._redact((resp.text or "").strip())[:500]
            raise ProviderAPIError(
                f"{self.name} returned HTTP {resp.status_code}: {body}",
                provider=self.name,
                status_code=resp.status_code,
            )

        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"failed to decode {self.name} response as a JSON object", provider=self.name
            )

        return data


# ------------------------------
# Gemini
# ------------------------------
class GeminiClient(LLMClient):
    provider = Provider.GEMINI
    default_model = "gemini-2.0-flash"
    default_timeout_sec = 60

    API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def _build_request(self, prompt: str):
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        headers = {"Content-Type": "application/json"}
        return self.API_URL.format(model=self.model), headers, {"key": self.api_key}, payload

    def _extract_error(self, data):
        err = data.get("error")
        if not err:
            return None
        if isinstance(err, dict):
            return str(err.get("code") or err.get("status") or ""), str(err.get("message", ""))
        return "", str(err)

    def _extract_text(self, data):
        candidates = data.get("candidates") or []
        if not candidates:
            return None
        parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
        if not parts:
            return None
        return (parts[0] or {}).get("text")


# ------------------------------
# OpenAI
# ------------------------------
class OpenAIClient(LLMClient):
    provider = Provider.OPENAI
    default_model = "gpt-4o"
    default_timeout_sec = 120

    API_URL = "https://api.openai.com/v1/chat/completions"

    def _build_request(self, prompt: str):
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        return self.API_URL, headers, {}, payload

    def _extract_error(self, data):
        err = data.get("error")
        if not err:
            return None
        if isinstance(err, dict):
            return str(err.get("type") or err.get("code") or ""), str(err.get("message", ""))
        return "", str(err)

    def _extract_text(self, data):
        choices = data.get("choices") or []
        if not choices:
            return None
        message = (choices[0] or {}).get("message") or {}
        return message.get("content")


# ------------------------------
# Anthropic Claude
# ------------------------------
class ClaudeClient(LLMClient):
    provider = Provider.CLAUDE
    default_model = "claude-sonnet-4-20250514"
    default_timeout_sec = 120

    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"
    MAX_TOKENS = 8192

    def _build_request(self, prompt: str):
        payload = {
            "model": self.model,
            "max_tokens": self.MAX_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.API_VERSION,
        }
        return self.API_URL, headers, {}, payload

    def _extract_error(self, data):
        err = data.get("error")
        if not err:
            return None
        if isinstance(err, dict):
            return str(err.get("type", "")), str(err.get("message", ""))
        return "", str(err)

    def _extract_text(self, data):
        for block in data.get("content") or []:
            if isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
                return block["text"]
        return None


CLIENTS: dict[Provider, type[LLMClient]] = {
    Provider.GEMINI: GeminiClient,
    Provider.OPENAI: OpenAIClient,
    Provider.CLAUDE: ClaudeClient,
}


def create_client(config: LLMConfig, verbosity: int = 0) -> LLMClient:
    """
    Build the client for the configured provider.

    Args:
        config: Provider, credential and optional overrides.
        verbosity: Verbosity level passed on to the client.

    Returns:
        A ready-to-use LLMClient.

    Raises:
        ConfigurationError: If the API key is empty or the provider is unknown.
    """
    label = config.provider.value if isinstance(config.provider, Provider) else str(config.provider)
    if not config.api_key or not config.api_key.strip():
        raise ConfigurationError(f"API key is required for provider {label}", provider=label)

    provider = Provider.parse(config.provider)
    return CLIENTS[provider](
        api_key=config.api_key.strip(),
        model=config.model,
        timeout_sec=config.timeout_sec,
        verbosity=verbosity,
    )
