"""
Tests para el adaptador LLM (docs2qa.llm_provider).

Tests unitarios con mocks, sin API keys reales:
    pytest tests/test_llm_provider.py -v
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest

from docs2qa.llm_provider import (
    AnthropicProvider,
    BatchLLMProvider,
    BatchRequest,
    LLMProviderError,
    LLMResponse,
    OpenAIProvider,
    Provider,
    get_active_provider,
    get_defaults,
    get_llm_provider,
)


# ============================================================================
# Tests: Tipos
# ============================================================================

class TestLLMResponse:
    def test_ok_with_content(self):
        assert LLMResponse(content="Hola", model="m", provider="p").ok is True

    def test_not_ok_empty_content(self):
        assert LLMResponse(content="", model="m", provider="p").ok is False

    def test_not_ok_with_error(self):
        r = LLMResponse(content="parcial", model="m", provider="p", error="fallo")
        assert r.ok is False


# ============================================================================
# Tests: Provider config
# ============================================================================

class TestProviderConfig:
    def test_default_provider_is_anthropic(self):
        with patch.dict("os.environ", {}, clear=True):
            assert get_active_provider() == Provider.ANTHROPIC

    def test_provider_from_env(self):
        with patch.dict("os.environ", {"LLM_PROVIDER": "openai"}):
            assert get_active_provider() == Provider.OPENAI

    def test_explicit_name_wins(self):
        with patch.dict("os.environ", {"LLM_PROVIDER": "openai"}):
            assert get_active_provider("Anthropic") == Provider.ANTHROPIC

    def test_invalid_provider_raises(self):
        with pytest.raises(LLMProviderError, match="no reconocido"):
            get_active_provider("invalid_provider")

    def test_all_providers_have_defaults(self):
        for provider in Provider:
            defaults = get_defaults(provider)
            assert "model" in defaults
            assert "temperature" in defaults
            assert "max_tokens" in defaults


# ============================================================================
# Tests: Registry
# ============================================================================

class TestRegistry:
    def test_anthropic_is_batch_capable(self):
        provider = get_llm_provider("anthropic", model="claude-3-5-haiku-20241022")

        assert isinstance(provider, AnthropicProvider)
        assert isinstance(provider, BatchLLMProvider)
        assert provider.supports_batch is True
        assert provider.get_model_identifier() == "claude-3-5-haiku-20241022"

    def test_openai_is_sequential_only(self):
        with patch.dict("os.environ", {"OPENAI_API_KEY": "sk-test"}):
            provider = get_llm_provider("openai")

        assert isinstance(provider, OpenAIProvider)
        assert provider.supports_batch is False
        assert provider.get_model_identifier() == get_defaults(Provider.OPENAI)["model"]

    def test_model_from_env(self):
        with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "k", "LLM_MODEL": "claude-x"}):
            assert get_llm_provider("anthropic").get_model_identifier() == "claude-x"

    def test_missing_api_key(self):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(LLMProviderError, match="ANTHROPIC_API_KEY"):
                get_llm_provider("anthropic")
            with pytest.raises(LLMProviderError, match="OPENAI_API_KEY"):
                get_llm_provider("openai")

    def test_get_models(self):
        provider = AnthropicProvider(api_key="k")
        assert provider.get_model_identifier() in provider.get_models()

    @pytest.fixture(autouse=True)
    def _anthropic_key(self):
        with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "sk-ant-test"}):
            yield


# ============================================================================
# Tests: Anthropic
# ============================================================================

@pytest.fixture
def anthropic_provider():
    provider = AnthropicProvider(api_key="sk-ant-test")
    provider._client = MagicMock()
    return provider


class TestAnthropicProvider:
    def test_generate_response(self, anthropic_provider):
        anthropic_provider._client.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="Q1: a\nA1: b")],
            usage=SimpleNamespace(input_tokens=10, output_tokens=5),
        )

        text = anthropic_provider.generate_response("prompt", temperature=0.2)

        assert text == "Q1: a\nA1: b"
        kwargs = anthropic_provider._client.messages.create.call_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 16384
        assert kwargs["messages"][0]["content"][0]["text"] == "prompt"

    def test_default_temperature(self, anthropic_provider):
        anthropic_provider._client.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="ok")], usage=None,
        )
        response = anthropic_provider.complete("prompt")

        assert anthropic_provider._client.messages.create.call_args.kwargs["temperature"] == 0.7
        assert response.tokens_input == 0

    def test_sdk_error_is_provider_error(self, anthropic_provider):
        anthropic_provider._client.messages.create.side_effect = RuntimeError("500")

        with pytest.raises(LLMProviderError, match="anthropic"):
            anthropic_provider.generate_response("prompt")

    def test_joins_only_text_blocks(self, anthropic_provider):
        anthropic_provider._client.messages.create.return_value = SimpleNamespace(
            content=[
                SimpleNamespace(type="thinking", thinking="..."),
                SimpleNamespace(type="text", text="Q1: a\n"),
                SimpleNamespace(type="text", text="A1: b"),
            ],
            usage=None,
        )

        assert anthropic_provider.generate_response("prompt") == "Q1: a\nA1: b"

    def test_reply_without_text_is_provider_error(self, anthropic_provider):
        anthropic_provider._client.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(type="tool_use", id="t1", name="x", input={})],
            usage=None,
        )
        with pytest.raises(LLMProviderError, match="vacia"):
            anthropic_provider.generate_response("prompt")

    def test_empty_reply_is_provider_error(self, anthropic_provider):
        anthropic_provider._client.messages.create.return_value = SimpleNamespace(
            content=[], usage=None,
        )
        with pytest.raises(LLMProviderError, match="vacia"):
            anthropic_provider.generate_response("prompt")

    def test_create_batch(self, anthropic_provider):
        anthropic_provider._client.messages.batches.create.return_value = SimpleNamespace(
            id="msgbatch_1",
            processing_status="in_progress",
            request_counts=SimpleNamespace(processing=2, succeeded=0, errored=0,
                                           canceled=0, expired=0),
            results_url=None,
        )

        status = anthropic_provider.create_batch([
            BatchRequest(custom_id="a_0", prompt="p0"),
            BatchRequest(custom_id="b_1", prompt="p1", temperature=0.1),
        ])

        assert status.id == "msgbatch_1"
        assert status.ended is False
        assert status.request_counts["processing"] == 2
        payload = anthropic_provider._client.messages.batches.create.call_args.kwargs["requests"]
        assert [r["custom_id"] for r in payload] == ["a_0", "b_1"]
        assert payload[1]["params"]["temperature"] == 0.1

    def test_get_batch_status(self, anthropic_provider):
        anthropic_provider._client.messages.batches.retrieve.return_value = SimpleNamespace(
            id="msgbatch_1",
            processing_status="ended",
            request_counts=SimpleNamespace(processing=0, succeeded=1, errored=1,
                                           canceled=0, expired=0),
            results_url="https://api.example/results",
        )

        status = anthropic_provider.get_batch_status("msgbatch_1")

        assert status.ended is True
        assert status.results_url == "https://api.example/results"
        assert status.request_counts["errored"] == 1

    def test_get_batch_results(self, anthropic_provider):
        lines = [
            {"custom_id": "a_0", "result": {"type": "succeeded", "message": {
                "content": [{"type": "text", "text": "Q1: x\nA1: y"}]}}},
            {"custom_id": "b_1", "result": {"type": "errored", "error": {
                "type": "error", "error": {"type": "overloaded_error", "message": "busy"}}}},
            {"custom_id": "c_2", "result": {"type": "expired"}},
        ]
        response = MagicMock()
        response.text = "\n".join(json.dumps(l) for l in lines) + "\n"

        with patch("docs2qa.llm_provider._backends.httpx.get", return_value=response) as get:
            results = anthropic_provider.get_batch_results("https://api.example/results")

        assert get.call_args.kwargs["headers"]["x-api-key"] == "sk-ant-test"
        assert [(r.custom_id, r.outcome) for r in results] == [
            ("a_0", "succeeded"), ("b_1", "errored"), ("c_2", "expired"),
        ]
        assert results[0].text == "Q1: x\nA1: y"
        assert results[1].error == "overloaded_error: busy"
        assert results[2].succeeded is False

    def test_get_batch_results_http_error(self, anthropic_provider):
        with patch("docs2qa.llm_provider._backends.httpx.get",
                   side_effect=httpx.ConnectError("sin red")):
            with pytest.raises(LLMProviderError):
                anthropic_provider.get_batch_results("https://api.example/results")


# ============================================================================
# Tests: OpenAI
# ============================================================================

class TestOpenAIProvider:
    def _provider(self, model=None):
        provider = OpenAIProvider(model=model, api_key="sk-test")
        provider._client = MagicMock()
        provider._client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="respuesta"))],
            usage=SimpleNamespace(prompt_tokens=3, completion_tokens=4),
        )
        return provider

    def test_generate_response(self):
        provider = self._provider()

        assert provider.generate_response("hola") == "respuesta"
        kwargs = provider._client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "You are a helpful assistant."}
        assert kwargs["messages"][1] == {"role": "user", "content": "hola"}
        assert "temperature" in kwargs

    def test_reasoning_models_skip_temperature(self):
        provider = self._provider(model="o3-mini")
        provider.generate_response("hola")

        assert "temperature" not in provider._client.chat.completions.create.call_args.kwargs

    def test_sdk_error_is_provider_error(self):
        provider = self._provider()
        provider._client.chat.completions.create.side_effect = RuntimeError("401")

        with pytest.raises(LLMProviderError, match="openai"):
            provider.generate_response("hola")
