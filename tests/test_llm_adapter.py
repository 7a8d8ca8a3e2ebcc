"""Tests for gopherscript_lib.llm_adapter.

All HTTP traffic is mocked at requests.post; nothing touches the network.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from gopherscript_lib.errors import (
    ConfigurationError,
    EmptyResponseError,
    GenerationError,
    MalformedResponseError,
    ProviderAPIError,
    TransportError,
)
from gopherscript_lib.llm_adapter import (
    ClaudeClient,
    GeminiClient,
    LLMConfig,
    OpenAIClient,
    Provider,
    create_client,
)

POST = "gopherscript_lib.llm_adapter.requests.post"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _response(body=None, status=200, text=None):
    """Build a fake requests.Response."""
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    resp.text = text if text is not None else str(body)
    return resp


def _gemini_ok(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _openai_ok(text):
    return {"id": "chatcmpl-1", "choices": [{"message": {"role": "assistant", "content": text},
                                              "finish_reason": "stop"}]}


def _claude_ok(text):
    return {"id": "msg_1", "type": "message", "content": [{"type": "text", "text": text}]}


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------
class TestProvider:
    def test_valid_providers(self):
        assert Provider.valid_providers() == ["gemini", "openai", "claude"]

    @pytest.mark.parametrize("name,expected", [
        ("gemini", Provider.GEMINI),
        ("OpenAI", Provider.OPENAI),
        (" claude ", Provider.CLAUDE),
        (Provider.CLAUDE, Provider.CLAUDE),
    ])
    def test_parse(self, name, expected):
        assert Provider.parse(name) is expected

    def test_parse_unknown(self):
        with pytest.raises(ConfigurationError, match="invalid provider 'mistral'"):
            Provider.parse("mistral")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------
class TestCreateClient:
    @pytest.mark.parametrize("provider,cls", [
        (Provider.GEMINI, GeminiClient),
        (Provider.OPENAI, OpenAIClient),
        (Provider.CLAUDE, ClaudeClient),
    ])
    def test_returns_bound_variant(self, provider, cls):
        client = create_client(LLMConfig(provider=provider, api_key="k"))
        assert isinstance(client, cls)
        assert client.api_key == "k"
        assert client.name == provider.value

    def test_accepts_provider_name(self):
        assert isinstance(create_client(LLMConfig(provider="openai", api_key="k")), OpenAIClient)

    @pytest.mark.parametrize("key", ["", "   "])
    def test_empty_key_rejected_before_network(self, key):
        with patch(POST) as post:
            with pytest.raises(ConfigurationError, match="API key is required for provider gemini"):
                create_client(LLMConfig(provider=Provider.GEMINI, api_key=key))
        post.assert_not_called()

    def test_unknown_provider_rejected(self):
        with pytest.raises(ConfigurationError, match="invalid provider"):
            create_client(LLMConfig(provider="bard", api_key="k"))

    def test_default_timeouts(self):
        assert create_client(LLMConfig(Provider.GEMINI, "k")).timeout_sec == 60
        assert create_client(LLMConfig(Provider.OPENAI, "k")).timeout_sec == 120
        assert create_client(LLMConfig(Provider.CLAUDE, "k")).timeout_sec == 120

    def test_overrides(self):
        client = create_client(LLMConfig(Provider.OPENAI, "k", model="gpt-4.1", timeout_sec=5))
        assert client.model == "gpt-4.1"
        assert client.timeout_sec == 5


# ---------------------------------------------------------------------------
# Request envelopes
# ---------------------------------------------------------------------------
class TestRequestEnvelopes:
    def test_gemini_key_in_query(self):
        with patch(POST, return_value=_response(_gemini_ok("package main"))) as post:
            assert GeminiClient("secret").generate("hi") == "package main"

        args, kwargs = post.call_args
        assert args[0].endswith("/models/gemini-2.0-flash:generateContent")
        assert kwargs["params"] == {"key": "secret"}
        assert kwargs["json"] == {"contents": [{"parts": [{"text": "hi"}]}]}
        assert kwargs["timeout"] == 60
        assert "Authorization" not in kwargs["headers"]

    def test_openai_bearer(self):
        with patch(POST, return_value=_response(_openai_ok("package main"))) as post:
            assert OpenAIClient("secret").generate("hi") == "package main"

        args, kwargs = post.call_args
        assert args[0] == "https://api.openai.com/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["json"] == {"model": "gpt-4o", "messages": [{"role": "user", "content": "hi"}]}
        assert kwargs["params"] is None
        assert kwargs["timeout"] == 120

    def test_claude_api_key_header(self):
        with patch(POST, return_value=_response(_claude_ok("package main"))) as post:
            assert ClaudeClient("secret").generate("hi") == "package main"

        args, kwargs = post.call_args
        assert args[0] == "https://api.anthropic.com/v1/messages"
        assert kwargs["headers"]["x-api-key"] == "secret"
        assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
        assert kwargs["json"]["max_tokens"] == 8192
        assert kwargs["json"]["model"] == "claude-sonnet-4-20250514"
        assert kwargs["json"]["messages"] == [{"role": "user", "content": "hi"}]

    def test_single_call_per_generate(self):
        with patch(POST, return_value=_response(_openai_ok("x"))) as post:
            OpenAIClient("k").generate("hi")
        assert post.call_count == 1


# ---------------------------------------------------------------------------
# Response extraction
# ---------------------------------------------------------------------------
class TestResponseExtraction:
    def test_claude_skips_non_text_blocks(self):
        body = {"content": [{"type": "tool_use", "id": "t"}, {"type": "text", "text": "package main"}]}
        with patch(POST, return_value=_response(body)):
            assert ClaudeClient("k").generate("hi") == "package main"

    @pytest.mark.parametrize("cls,body", [
        (GeminiClient, {"candidates": []}),
        (GeminiClient, {"candidates": [{"content": {"parts": []}}]}),
        (GeminiClient, {}),
        (OpenAIClient, {"choices": []}),
        (OpenAIClient, {"choices": [{"message": {"content": ""}}]}),
        (ClaudeClient, {"content": []}),
        (ClaudeClient, {"content": [{"type": "tool_use"}]}),
    ])
    def test_empty_result_is_an_error(self, cls, body):
        with patch(POST, return_value=_response(body)):
            with pytest.raises(EmptyResponseError, match="empty response"):
                cls("k").generate("hi")


# ---------------------------------------------------------------------------
# Failure classification
# ---------------------------------------------------------------------------
class TestFailures:
    def test_timeout(self):
        with patch(POST, side_effect=requests.Timeout("read timed out")):
            with pytest.raises(TransportError, match="timed out after 60s"):
                GeminiClient("k").generate("hi")

    def test_connection_error_redacts_key(self):
        err = requests.ConnectionError("Max retries exceeded with url: /v1beta?key=supersecret")
        with patch(POST, side_effect=err):
            with pytest.raises(TransportError) as exc_info:
                GeminiClient("supersecret").generate("hi")
        assert "supersecret" not in str(exc_info.value)
        assert "***" in str(exc_info.value)

    def test_gemini_embedded_error(self):
        body = {"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}}
        with patch(POST, return_value=_response(body, status=400)):
            with pytest.raises(ProviderAPIError) as exc_info:
                GeminiClient("k").generate("hi")
        assert "API error [400]: API key not valid" in str(exc_info.value)
        assert exc_info.value.status_code == 400
        assert exc_info.value.provider == "gemini"

    def test_openai_embedded_error(self):
        body = {"error": {"message": "Incorrect API key", "type": "invalid_request_error", "code": "invalid_api_key"}}
        with patch(POST, return_value=_response(body, status=401)):
            with pytest.raises(ProviderAPIError, match=r"\[invalid_request_error\]: Incorrect API key"):
                OpenAIClient("k").generate("hi")

    def test_claude_embedded_error(self):
        body = {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}
        with patch(POST, return_value=_response(body, status=529)):
            with pytest.raises(ProviderAPIError, match=r"\[overloaded_error\]: Overloaded"):
                ClaudeClient("k").generate("hi")

    def test_non_2xx_without_error_object(self):
        with patch(POST, return_value=_response(ValueError("no json"), status=502, text="Bad Gateway")):
            with pytest.raises(ProviderAPIError, match="HTTP 502: Bad Gateway"):
                OpenAIClient("k").generate("hi")

    def test_malformed_success_body(self):
        with patch(POST, return_value=_response(ValueError("no json"), status=200, text="<html>")):
            with pytest.raises(MalformedResponseError):
                ClaudeClient("k").generate("hi")

    def test_non_object_json(self):
        with patch(POST, return_value=_response(["not", "an", "object"])):
            with pytest.raises(MalformedResponseError):
                OpenAIClient("k").generate("hi")

    @pytest.mark.parametrize("cls,body", [
        (GeminiClient, {"candidates": [{"content": "x"}]}),
        (GeminiClient, {"candidates": [{"content": {"parts": [{"text": 42}]}}]}),
        (GeminiClient, {"candidates": "oops"}),
        (OpenAIClient, {"choices": ["oops"]}),
        (OpenAIClient, {"choices": {"x": 1}}),
        (OpenAIClient, {"choices": [{"message": {"content": ["a", "b"]}}]}),
        (ClaudeClient, {"content": 7}),
        (ClaudeClient, {"content": [{"type": "text", "text": 42}]}),
    ])
    def test_wrong_shape_is_malformed(self, cls, body):
        with patch(POST, return_value=_response(body)):
            with pytest.raises(MalformedResponseError, match="unexpected .* response structure") as exc_info:
                cls("k").generate("hi")
        assert exc_info.value.provider == cls.provider.value

    def test_all_failures_share_base_class(self):
        for exc in (TransportError, ProviderAPIError, MalformedResponseError, EmptyResponseError):
            assert issubclass(exc, GenerationError)
