"""Configuration management for the essay grader."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any

from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LLMProviderConfig:
    """Configuration for a specific LLM provider."""
    api_key: str = ""
    base_url: str = ""
    model: str = ""
    max_tokens: int = 4096
    temperature: float = 0.2
    timeout: int = 120
    keep_alive: str = "10m"  # Ollama only


@dataclass
class LLMConfig:
    """Configuration for LLM providers."""
    provider: str = "openai"
    providers: Dict[str, LLMProviderConfig] = field(default_factory=dict)
    max_retries: int = 5
    base_delay: float = 2.0
    max_delay: float = 60.0

    def get_provider_config(self, provider_name: str) -> LLMProviderConfig:
        """Get configuration for a specific provider."""
        if provider_name not in self.providers:
            raise ValueError(f"Unknown LLM provider: {provider_name}")
        return self.providers[provider_name]


@dataclass
class GradingConfig:
    """Configuration for grading runs."""
    rubric_path: str = "data/rubric.json"
    profiles_path: str = "data/class-profiles.json"
    temperature: float = 0.2  # LLM sampling temperature, not the grade adjustment
    max_tokens: int = 4096
    batch_workers: int = 4


@dataclass
class Config:
    """Main configuration container."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    grading: GradingConfig = field(default_factory=GradingConfig)
    log_level: str = "INFO"
    log_json: bool = False


def _resolve_env_vars(value: Any) -> Any:
    """Resolve environment variables in string values."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_var = value[2:-1]
        resolved = os.environ.get(env_var, "")
        if not resolved:
            logger.warning(f"Environment variable {env_var} not set")
        return resolved
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(v) for v in value]
    return value


def _parse_llm_provider_config(data: Dict) -> LLMProviderConfig:
    """Parse LLM provider configuration."""
    return LLMProviderConfig(
        api_key=_resolve_env_vars(data.get("api_key", "")),
        base_url=_resolve_env_vars(data.get("base_url", "")),
        model=data.get("model", ""),
        max_tokens=data.get("max_tokens", 4096),
        temperature=data.get("temperature", 0.2),
        timeout=data.get("timeout", 120),
        keep_alive=data.get("keep_alive", "10m"),
    )


def _parse_llm_config(data: Dict) -> LLMConfig:
    """Parse LLM configuration section."""
    providers = {}
    for name, provider_data in data.get("providers", {}).items():
        providers[name] = _parse_llm_provider_config(provider_data)

    retry_config = data.get("retry", {})

    return LLMConfig(
        provider=data.get("provider", "openai"),
        providers=providers,
        max_retries=retry_config.get("max_attempts", 5),
        base_delay=retry_config.get("base_delay", 2.0),
        max_delay=retry_config.get("max_delay", 60.0),
    )


def load_config(config_path: str = "config.json") -> Config:
    """Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Parsed configuration object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config file is invalid.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            "Please copy config.json.sample to config.json and configure it."
        )

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    config = Config()

    if "llm" in data:
        config.llm = _parse_llm_config(data["llm"])

    if "grading" in data:
        grading_data = data["grading"]
        config.grading = GradingConfig(
            rubric_path=grading_data.get("rubric_path", "data/rubric.json"),
            profiles_path=grading_data.get("profiles_path", "data/class-profiles.json"),
            temperature=grading_data.get("temperature", 0.2),
            max_tokens=grading_data.get("max_tokens", 4096),
            batch_workers=grading_data.get("batch_workers", 4),
        )
        if config.grading.batch_workers < 1:
            logger.warning(
                f"Invalid batch_workers {config.grading.batch_workers}, using 1"
            )
            config.grading.batch_workers = 1

    config.log_level = data.get("log_level", "INFO")
    config.log_json = data.get("log_json", False)

    logger.info(f"Loaded configuration from {config_path}")
    return config


def create_default_config() -> Dict:
    """Create a default configuration dictionary."""
    return {
        "llm": {
            "provider": "openai",
            "providers": {
                "openai": {
                    "api_key": "${OPENAI_API_KEY}",
                    "base_url": "https://api.openai.com/v1",
                    "model": "gpt-4o-mini",
                    "max_tokens": 4096,
                    "temperature": 0.2,
                    "timeout": 120
                },
                "ollama": {
                    "base_url": "http://localhost:11434",
                    "model": "llama3",
                    "max_tokens": 4096,
                    "temperature": 0.2,
                    "keep_alive": "10m"
                }
            },
            "retry": {
                "max_attempts": 5,
                "base_delay": 2,
                "max_delay": 60
            }
        },
        "grading": {
            "rubric_path": "data/rubric.json",
            "profiles_path": "data/class-profiles.json",
            "temperature": 0.2,
            "max_tokens": 4096,
            "batch_workers": 4
        },
        "log_level": "INFO"
    }
