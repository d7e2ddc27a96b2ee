"""Runtime configuration.

Settings are read from the environment ONCE, at process start, and the
resulting object is passed into the pipeline. Nothing under llm/ reads
os.environ directly.

  DEEPSEEK_API_KEY          → bearer token (required before any call)
  DEEPSEEK_API_URL          → chat-completions URL or /v1 base URL
  DEEPSEEK_MODEL            → model identifier
  ANALYZER_TOKEN_LIMIT      → estimated prompt-token ceiling
  ANALYZER_TEMPERATURE      → sampling temperature
  ANALYZER_MAX_RETRIES      → end-to-end attempts per inquiry
  ANALYZER_RETRY_BACKOFF    → seconds per attempt number between retries
  ANALYZER_REQUEST_TIMEOUT  → seconds before a stalled call is abandoned
"""

import os

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from inquiry_analyzer.errors import ConfigurationError

DEFAULT_API_URL = "https://api.deepseek.com/v1/chat/completions"
DEFAULT_MODEL = "deepseek-chat"

# Provider limit is ~131K; keep some headroom
DEFAULT_TOKEN_LIMIT = 128_000

_CHAT_COMPLETIONS_SUFFIX = "/chat/completions"


class Settings(BaseModel):
    """Immutable process-wide configuration."""

    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    token_limit: int = Field(default=DEFAULT_TOKEN_LIMIT, gt=0)
    temperature: float = 0.7
    max_retries: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)
    request_timeout: float = Field(default=120.0, gt=0)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed or
                is out of range.
        """
        try:
            return cls(
                api_key=os.getenv("DEEPSEEK_API_KEY", "").strip(),
                api_url=os.getenv("DEEPSEEK_API_URL", DEFAULT_API_URL).strip() or DEFAULT_API_URL,
                model=os.getenv("DEEPSEEK_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL,
                token_limit=_env_number("ANALYZER_TOKEN_LIMIT", DEFAULT_TOKEN_LIMIT, int),
                temperature=_env_number("ANALYZER_TEMPERATURE", 0.7, float),
                max_retries=_env_number("ANALYZER_MAX_RETRIES", 3, int),
                retry_backoff_seconds=_env_number("ANALYZER_RETRY_BACKOFF", 1.0, float),
                request_timeout=_env_number("ANALYZER_REQUEST_TIMEOUT", 120.0, float),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid analyzer configuration: {e}") from e

    @property
    def base_url(self) -> str:
        """OpenAI-compatible base URL (the client appends /chat/completions)."""
        url = self.api_url.rstrip("/")
        if url.endswith(_CHAT_COMPLETIONS_SUFFIX):
            url = url[: -len(_CHAT_COMPLETIONS_SUFFIX)]
        return url

    def require_api_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError(
                "DeepSeek API key is not configured. Set DEEPSEEK_API_KEY in the environment.",
                remediation="Set DEEPSEEK_API_KEY (for example in a .env file) and restart.",
            )


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
