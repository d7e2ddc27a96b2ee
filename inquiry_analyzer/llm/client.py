"""LLM client for the analysis pipeline.

One chat-completion call per attempt against an OpenAI-compatible endpoint
(DeepSeek by default) through LangChain's ChatOpenAI:

  POST {base_url}/chat/completions
  {model, messages: [system, user], temperature, response_format: json_object}

The SDK's own retries are disabled. The orchestrator in invoker.py owns the
retry policy, and it needs every failure to arrive here exactly once,
already classified.

Classification, first match wins:
  1. 401 or "unauthorized" in the message         → AuthError (fatal)
  2. 402 or "insufficient balance" in the message → BillingError (fatal)
  3. 429                                          → RateLimitError
  4. connection refused / unreachable / timeout   → TransportError
  5. any other non-2xx                            → ApiError
  6. 2xx with empty content                       → EmptyReplyError
  7. anything else raised while reading the reply → ApiError
"""

import time
from typing import Optional

import httpx
import openai
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from inquiry_analyzer.config import Settings
from inquiry_analyzer.errors import (
    ApiError,
    AuthError,
    BillingError,
    EmptyReplyError,
    LLMError,
    RateLimitError,
    TransportError,
)
from inquiry_analyzer.utils.logging import log, get_logger

MODULE = "llm.client"
logger = get_logger()

JSON_RESPONSE_FORMAT = {"type": "json_object"}


def get_llm(settings: Settings) -> ChatOpenAI:
    """Build the chat model client for `settings`."""
    client = ChatOpenAI(
        base_url=settings.base_url,
        api_key=settings.api_key,
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.request_timeout,
        max_retries=0,
    )
    log.debug(logger, MODULE, "llm_init", "LLM client created",
              base_url=settings.base_url, model=settings.model,
              temperature=settings.temperature)
    return client


def classify_error(exc: Exception) -> LLMError:
    """Map a provider SDK / HTTP exception onto the pipeline taxonomy."""
    status_code: Optional[int] = getattr(exc, "status_code", None)
    message = getattr(exc, "message", None) or str(exc)
    lowered = message.lower()

    if status_code == 401 or "unauthorized" in lowered:
        return AuthError(f"DeepSeek API key is invalid or expired: {message}", status_code=status_code)

    if status_code == 402 or "insufficient balance" in lowered:
        return BillingError(f"DeepSeek account balance is insufficient: {message}", status_code=status_code)

    if status_code == 429:
        return RateLimitError(f"DeepSeek API rate limit hit: {message}", status_code=429)

    if isinstance(exc, (openai.APIConnectionError, httpx.TransportError)):
        return TransportError(f"Could not connect to the DeepSeek API: {message}")

    return ApiError(
        f"DeepSeek API error: {status_code} - {message}",
        status_code=status_code,
        provider_message=message,
    )


class LLMClient:
    """Sends one system+user exchange and returns the raw reply text."""

    def __init__(self, settings: Settings, llm: Optional[ChatOpenAI] = None):
        self.settings = settings
        self._llm = llm

    @property
    def llm(self) -> ChatOpenAI:
        if self._llm is None:
            self._llm = get_llm(self.settings)
        return self._llm

    async def send(self, system_prompt: str, user_prompt: str, **log_context) -> str:
        """Issue one chat completion.

        Returns:
            Raw reply text (may contain fences, prose, or broken JSON)

        Raises:
            LLMError: A classified transport/HTTP failure, or EmptyReplyError
        """
        _t0 = time.monotonic()
        try:
            response = await self.llm.ainvoke(
                [
                    SystemMessage(content=system_prompt),
                    HumanMessage(content=user_prompt),
                ],
                response_format=JSON_RESPONSE_FORMAT,
            )
        except (openai.OpenAIError, httpx.HTTPError) as e:
            error = classify_error(e)
            log.warning(logger, MODULE, "llm_call_failed",
                        "LLM call failed", error=str(e),
                        error_type=type(error).__name__,
                        status_code=error.status_code, **log_context)
            raise error from e
        except Exception as e:
            # langchain-openai raises ValueError/TypeError for 2xx bodies it cannot read
            log.warning(logger, MODULE, "llm_call_failed",
                        "LLM reply could not be read", error=str(e),
                        error_type=type(e).__name__, **log_context)
            raise ApiError(
                f"DeepSeek API returned an unusable reply: {type(e).__name__}: {e}",
                provider_message=str(e),
            ) from e

        latency_ms = int((time.monotonic() - _t0) * 1000)
        content = response.content if isinstance(response.content, str) else ""
        raw = content.strip()

        log.debug(logger, MODULE, "llm_response", "LLM call complete",
                  latency_ms=latency_ms, raw_length=len(raw), **log_context)

        if not raw:
            raise EmptyReplyError("DeepSeek returned an empty response")
        return raw
