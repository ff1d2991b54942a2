"""Ollama chat provider."""

from typing import List, Optional

import requests

from ..models import Message, MessageRole, LLMResponse
from .provider import (
    LLMProvider,
    LLMError,
    LLMTimeoutError,
    LLMResponseError,
    register_provider,
)

JSON_INSTRUCTION = "\n\nIMPORTANT: You must respond with valid JSON only. No additional text or explanation."


@register_provider("ollama")
class OllamaProvider(LLMProvider):
    """Provider for a local Ollama server's ``/api/chat`` endpoint."""

    @property
    def provider_name(self) -> str:
        return "ollama"

    @property
    def api_url(self) -> str:
        base = (self.config.base_url or "http://localhost:11434").rstrip("/")
        if base.endswith("/api/generate"):
            return base.replace("/api/generate", "/api/chat")
        if base.endswith("/api/chat"):
            return base
        return f"{base}/api/chat"

    def _call_api(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        require_json: bool = False
    ) -> LLMResponse:
        chat = []
        for message in messages:
            content = message.content
            if require_json and message.role == MessageRole.SYSTEM:
                content += JSON_INSTRUCTION
            chat.append({"role": message.role.value, "content": content})

        data = {
            "model": self.config.model,
            "messages": chat,
            "stream": False,
            "keep_alive": self.config.keep_alive,
            "options": {
                "temperature": temperature if temperature is not None else self.config.temperature,
                "num_predict": max_tokens if max_tokens is not None else self.config.max_tokens,
            },
        }
        if require_json:
            data["format"] = "json"

        try:
            response = requests.post(self.api_url, json=data, timeout=self.config.timeout)
        except requests.exceptions.Timeout as e:
            raise LLMTimeoutError(f"Ollama request timed out: {e}")
        except requests.exceptions.RequestException as e:
            raise LLMError(f"Ollama API request failed: {e}")

        if response.status_code == 404:
            raise LLMError(
                f"Ollama API 404: Model '{self.config.model}' not found or endpoint incorrect."
            )
        if response.status_code >= 400:
            raise LLMError(f"Ollama API error {response.status_code}: {response.text[:500]}")

        try:
            result = response.json()
            content = result["message"]["content"]
        except (ValueError, KeyError, TypeError) as e:
            raise LLMResponseError(f"Unexpected Ollama payload: {e}")

        return LLMResponse(
            content=content.strip(),
            model=result.get("model", self.config.model),
            input_tokens=result.get("prompt_eval_count", 0),
            output_tokens=result.get("eval_count", 0),
            raw=result,
        )
