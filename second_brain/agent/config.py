"""Language model configuration with environment variable loading.

Pydantic-based configuration shared by the completion relay and the
Agno summarizer. Supports OpenAI and OpenAI-compatible APIs via custom
base URL.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://api.openai.com/v1"


def _max_tokens_from_env() -> int | None:
    value = os.getenv("LLM_MAX_TOKENS", "").strip()
    return int(value) if value else None


class LLMConfig(BaseModel):
    """Configuration for the language model backend.

    Attributes:
        api_key: API key for model access.
        base_url: API base URL, the chat completions path is appended to it.
        model_name: Model identifier to use.
        temperature: Sampling temperature (0.0 = deterministic, 2.0 = creative).
        max_tokens: Cap on generated tokens; None leaves it to the backend.
        timeout: Seconds to wait on the backend before giving up.
    """

    # Environment-provided defaults go through the validators too
    model_config = ConfigDict(validate_default=True)

    api_key: str = Field(
        default_factory=lambda: os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY", ""),
        description="API key for LLM provider",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or DEFAULT_BASE_URL,
        description="API base URL",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"),
        description="Model to use",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for response generation",
    )
    max_tokens: int | None = Field(
        default_factory=_max_tokens_from_env,
        ge=1,
        le=128000,
        description="Maximum tokens in generated response",
    )
    timeout: float = Field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT", "120")),
        gt=0,
        description="Backend request timeout in seconds",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(
                "API key required. Set LLM_API_KEY or OPENAI_API_KEY in .env"
            )
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"


def get_llm_config() -> LLMConfig:
    """Create language model configuration from environment.

    Returns:
        Configured LLMConfig instance.

    Raises:
        ValueError: If no API key is set.
    """
    return LLMConfig()
