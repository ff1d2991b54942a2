"""OpenAI-compatible chat completions provider."""

from typing import List, Optional

import requests

from ..models import Message, LLMResponse, messages_to_dicts
from .provider import (
    LLMProvider,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
    LLMResponseError,
    register_provider,
)


@register_provider("openai")
class OpenAIProvider(LLMProvider):
    """Provider for any ``/chat/completions`` endpoint with bearer auth."""

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def api_url(self) -> str:
        base = (self.config.base_url or "https://api.openai.com/v1").rstrip("/")
        if base.endswith("/chat/completions"):
            return base
        return f"{base}/chat/completions"

    def _call_api(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        require_json: bool = False
    ) -> LLMResponse:
        if not self.config.api_key:
            raise LLMError(
                "API key not configured. Set llm.providers.openai.api_key in config.json"
            )

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}"
        }
        payload = {
            "model": self.config.model,
            "messages": messages_to_dicts(messages),
            "temperature": temperature if temperature is not None else self.config.temperature,
            "max_tokens": max_tokens if max_tokens is not None else self.config.max_tokens,
        }
        if require_json:
            payload["response_format"] = {"type": "json_object"}

        try:
            response = requests.post(
                self.api_url, headers=headers, json=payload, timeout=self.config.timeout
            )
        except requests.exceptions.Timeout as e:
            raise LLMTimeoutError(f"Request to {self.api_url} timed out: {e}")
        except requests.exceptions.RequestException as e:
            raise LLMError(f"Request to {self.api_url} failed: {e}")

        if response.status_code == 429:
            raise LLMRateLimitError(f"Rate limited: {response.text[:200]}")
        if response.status_code >= 400:
            raise LLMError(f"API error {response.status_code}: {response.text[:500]}")

        try:
            result = response.json()
            content = result["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMResponseError(f"Unexpected response payload: {e}")
        if content is None:
            raise LLMResponseError("Response contained no message content")

        usage = result.get("usage") or {}
        return LLMResponse(
            content=content,
            model=result.get("model", self.config.model),
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            raw=result,
        )
