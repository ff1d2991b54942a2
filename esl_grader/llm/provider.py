"""Chat-completion providers used to grade essays.

A provider turns a system/user prompt pair into one completion string.
Transient failures (rate limits, timeouts) are retried with capped
exponential backoff; anything else propagates on the first attempt.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import List, Dict, Optional, Type

from ..models import Message, MessageRole, LLMResponse
from ..config import LLMProviderConfig, LLMConfig
from ..utils.logging import get_logger, log_llm_call

logger = get_logger(__name__)

DEFAULT_RETRY = {"max_retries": 5, "base_delay": 2.0, "max_delay": 60.0}


class LLMError(Exception):
    """A provider could not produce a completion."""
    pass


class LLMRateLimitError(LLMError):
    """The provider asked us to slow down (HTTP 429). Retried."""
    pass


class LLMTimeoutError(LLMError):
    """The request did not finish in time. Retried."""
    pass


class LLMResponseError(LLMError):
    """The provider answered, but not with a usable completion."""
    pass


class LLMProvider(ABC):
    """Base class for completion backends.

    Subclasses implement ``provider_name`` and ``_call_api``; this class
    owns retries, call logging and token accounting. A single instance is
    shared by the batch workers, so the usage counters are lock-guarded.
    """

    def __init__(self, config: LLMProviderConfig, retry_config: Optional[Dict] = None):
        self.config = config
        self.retry_config = dict(retry_config or DEFAULT_RETRY)
        self._usage_lock = threading.Lock()
        self._input_tokens = 0
        self._output_tokens = 0
        self._calls = 0

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short name used in logs and the registry."""
        pass

    @abstractmethod
    def _call_api(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        require_json: bool = False
    ) -> LLMResponse:
        """Send one request to the backend.

        ``temperature`` and ``max_tokens`` fall back to the provider config
        when None. With ``require_json`` the backend's JSON mode is enabled.

        Raises:
            LLMRateLimitError: The backend throttled the request.
            LLMTimeoutError: The request timed out.
            LLMResponseError: The payload had no usable completion.
            LLMError: Any other failure.
        """
        pass

    def call(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        require_json: bool = False
    ) -> str:
        """Complete a system/user prompt pair and return the text."""
        messages = [
            Message(role=MessageRole.SYSTEM, content=system_prompt),
            Message(role=MessageRole.USER, content=user_prompt)
        ]
        return self._call_with_retry(messages, temperature, max_tokens, require_json).content

    def get_usage_stats(self) -> Dict[str, int]:
        """Token and call totals for successful completions so far."""
        with self._usage_lock:
            return {
                "total_input_tokens": self._input_tokens,
                "total_output_tokens": self._output_tokens,
                "total_tokens": self._input_tokens + self._output_tokens,
                "total_calls": self._calls
            }

    def _call_with_retry(
        self,
        messages: List[Message],
        temperature: Optional[float],
        max_tokens: Optional[int],
        require_json: bool
    ) -> LLMResponse:
        attempts = max(1, int(self.retry_config["max_retries"]))
        last_error: Optional[LLMError] = None

        for attempt in range(attempts):
            started = time.time()
            try:
                response = self._call_api(messages, temperature, max_tokens, require_json)
            except (LLMRateLimitError, LLMTimeoutError) as e:
                last_error = e
                if attempt + 1 < attempts:
                    self._back_off(e, attempt, attempts)
                continue
            except LLMError as e:
                self._log_failure(started, str(e))
                raise

            self._record_usage(response)
            log_llm_call(
                logger=logger,
                provider=self.provider_name,
                model=response.model or self.config.model,
                input_tokens=response.input_tokens,
                output_tokens=response.output_tokens,
                duration_ms=self._elapsed_ms(started),
                success=True
            )
            return response

        self._log_failure(started, f"Gave up after {attempts} attempts: {last_error}")
        raise last_error

    def _retry_delay(self, attempt: int) -> float:
        delay = self.retry_config["base_delay"] * (2 ** attempt)
        return min(delay, self.retry_config["max_delay"])

    def _back_off(self, error: LLMError, attempt: int, attempts: int) -> None:
        delay = self._retry_delay(attempt)
        reason = "Rate limited" if isinstance(error, LLMRateLimitError) else "Timed out"
        logger.warning(
            f"{reason}; retry {attempt + 2}/{attempts} in {delay}s",
            extra_data={"provider": self.provider_name, "delay": delay}
        )
        time.sleep(delay)

    def _record_usage(self, response: LLMResponse) -> None:
        with self._usage_lock:
            self._input_tokens += response.input_tokens
            self._output_tokens += response.output_tokens
            self._calls += 1

    def _log_failure(self, started: float, error: str) -> None:
        log_llm_call(
            logger=logger,
            provider=self.provider_name,
            model=self.config.model,
            input_tokens=0,
            output_tokens=0,
            duration_ms=self._elapsed_ms(started),
            success=False,
            error=error
        )

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.time() - started) * 1000)


_provider_registry: Dict[str, Type[LLMProvider]] = {}


def register_provider(name: str):
    """Class decorator adding a provider under ``name``."""
    def decorator(cls: Type[LLMProvider]):
        _provider_registry[name] = cls
        return cls
    return decorator


def get_provider(name: str, config: LLMProviderConfig, retry_config: Optional[Dict] = None) -> LLMProvider:
    """Instantiate the provider registered as ``name``.

    Raises:
        ValueError: If no provider has that name.
    """
    try:
        provider_cls = _provider_registry[name]
    except KeyError:
        available = ", ".join(sorted(_provider_registry))
        raise ValueError(f"Unknown LLM provider: {name}. Available: {available}") from None
    return provider_cls(config, retry_config)


def create_provider_from_config(llm_config: LLMConfig, provider_name: Optional[str] = None) -> LLMProvider:
    """Build the grading provider from the ``llm`` config section.

    ``provider_name`` overrides ``llm.provider`` (the CLI's ``--provider``).
    """
    provider_name = provider_name or llm_config.provider
    retry_config = {
        "max_retries": llm_config.max_retries,
        "base_delay": llm_config.base_delay,
        "max_delay": llm_config.max_delay
    }
    provider = get_provider(provider_name, llm_config.get_provider_config(provider_name), retry_config)
    logger.info(f"Using '{provider_name}' provider for grading")
    return provider
