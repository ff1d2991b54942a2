"""Unit tests for the LLM provider adapters."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from esl_grader.config import LLMConfig, LLMProviderConfig
from esl_grader.llm import (
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
    create_provider_from_config,
    get_provider,
)
from esl_grader.llm.ollama import OllamaProvider
from esl_grader.llm.openai import OpenAIProvider

FAST_RETRY = {"max_retries": 3, "base_delay": 1.0, "max_delay": 2.0}


def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload
    return response


def _openai_payload(content='{"ok": true}'):
    return {
        "model": "gpt-4o-mini",
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 120, "completion_tokens": 30},
    }


@pytest.fixture
def openai_provider():
    config = LLMProviderConfig(api_key="test-key", base_url="https://api.example.com/v1", model="gpt-4o-mini")
    return OpenAIProvider(config, FAST_RETRY)


@pytest.fixture
def ollama_provider():
    config = LLMProviderConfig(base_url="http://localhost:11434", model="llama3")
    return OllamaProvider(config, FAST_RETRY)


class TestOpenAIProvider:
    """Test the chat completions adapter."""

    def test_successful_call(self, openai_provider):
        with patch("esl_grader.llm.openai.requests.post", return_value=_response(payload=_openai_payload())) as post:
            content = openai_provider.call("system", "user", temperature=0.1, max_tokens=50, require_json=True)

        assert content == '{"ok": true}'
        url = post.call_args[0][0]
        kwargs = post.call_args[1]
        assert url == "https://api.example.com/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        assert kwargs["json"]["response_format"] == {"type": "json_object"}
        assert kwargs["json"]["temperature"] == 0.1
        assert kwargs["json"]["max_tokens"] == 50
        assert kwargs["json"]["messages"][0] == {"role": "system", "content": "system"}

        stats = openai_provider.get_usage_stats()
        assert stats["total_input_tokens"] == 120
        assert stats["total_output_tokens"] == 30
        assert stats["total_calls"] == 1

    def test_config_defaults_used(self, openai_provider):
        with patch("esl_grader.llm.openai.requests.post", return_value=_response(payload=_openai_payload())) as post:
            openai_provider.call("system", "user")
        payload = post.call_args[1]["json"]
        assert payload["temperature"] == 0.2
        assert payload["max_tokens"] == 4096
        assert "response_format" not in payload

    def test_missing_api_key(self):
        provider = OpenAIProvider(LLMProviderConfig(model="gpt-4o-mini"), FAST_RETRY)
        with pytest.raises(LLMError, match="API key"):
            provider.call("system", "user")

    def test_http_error_is_not_retried(self, openai_provider):
        with patch("esl_grader.llm.openai.requests.post", return_value=_response(500, text="server error")) as post:
            with pytest.raises(LLMError, match="500"):
                openai_provider.call("system", "user")
        assert post.call_count == 1

    def test_rate_limit_is_retried(self, openai_provider):
        responses = [_response(429, text="slow down"), _response(payload=_openai_payload("done"))]
        with patch("esl_grader.llm.openai.requests.post", side_effect=responses) as post, \
                patch("esl_grader.llm.provider.time.sleep") as sleep:
            assert openai_provider.call("system", "user") == "done"
        assert post.call_count == 2
        sleep.assert_called_once_with(1.0)
        assert openai_provider.get_usage_stats()["total_calls"] == 1

    def test_timeouts_exhaust_retries(self, openai_provider):
        with patch("esl_grader.llm.openai.requests.post", side_effect=requests.exceptions.Timeout("slow")) as post, \
                patch("esl_grader.llm.provider.time.sleep") as sleep:
            with pytest.raises(LLMTimeoutError):
                openai_provider.call("system", "user")
        assert post.call_count == 3
        assert [c[0][0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_connection_error(self, openai_provider):
        with patch("esl_grader.llm.openai.requests.post",
                   side_effect=requests.exceptions.ConnectionError("refused")):
            with pytest.raises(LLMError, match="failed"):
                openai_provider.call("system", "user")

    def test_malformed_payload(self, openai_provider):
        with patch("esl_grader.llm.openai.requests.post", return_value=_response(payload={"choices": []})):
            with pytest.raises(LLMResponseError):
                openai_provider.call("system", "user")

    def test_null_content(self, openai_provider):
        with patch("esl_grader.llm.openai.requests.post", return_value=_response(payload=_openai_payload(None))):
            with pytest.raises(LLMResponseError):
                openai_provider.call("system", "user")


class TestOllamaProvider:
    """Test the Ollama chat adapter."""

    def test_json_mode_request(self, ollama_provider):
        payload = {"model": "llama3", "message": {"content": ' {"ok": 1} '},
                   "prompt_eval_count": 40, "eval_count": 10}
        with patch("esl_grader.llm.ollama.requests.post", return_value=_response(payload=payload)) as post:
            content = ollama_provider.call("grade this", "essay", temperature=0.3, max_tokens=99, require_json=True)

        assert content == '{"ok": 1}'
        assert post.call_args[0][0] == "http://localhost:11434/api/chat"
        body = post.call_args[1]["json"]
        assert body["format"] == "json"
        assert body["stream"] is False
        assert body["options"] == {"temperature": 0.3, "num_predict": 99}
        assert body["messages"][0]["content"].startswith("grade this")
        assert "valid JSON" in body["messages"][0]["content"]
        assert body["messages"][1]["content"] == "essay"
        assert ollama_provider.get_usage_stats()["total_tokens"] == 50

    def test_model_not_found(self, ollama_provider):
        with patch("esl_grader.llm.ollama.requests.post", return_value=_response(404)):
            with pytest.raises(LLMError, match="not found"):
                ollama_provider.call("system", "user")

    def test_generate_url_is_rewritten(self):
        provider = OllamaProvider(LLMProviderConfig(base_url="http://host:11434/api/generate"))
        assert provider.api_url == "http://host:11434/api/chat"


class TestProviderFactory:
    """Test provider registry lookups."""

    def test_get_registered_providers(self):
        config = LLMProviderConfig(api_key="k")
        assert isinstance(get_provider("openai", config), OpenAIProvider)
        assert isinstance(get_provider("ollama", config), OllamaProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_provider("carrier-pigeon", LLMProviderConfig())

    def test_create_from_config(self):
        llm_config = LLMConfig(
            provider="ollama",
            providers={"ollama": LLMProviderConfig(model="llama3")},
            max_retries=2,
        )
        provider = create_provider_from_config(llm_config)
        assert isinstance(provider, OllamaProvider)
        assert provider.retry_config["max_retries"] == 2

    def test_create_from_config_missing_section(self):
        with pytest.raises(ValueError):
            create_provider_from_config(LLMConfig(provider="openai"))
