"""Inquiry analysis with budget check, parsing, validation, and retry.

This module is the single entry point the application calls:

  analysis = await analyze(message, client_name, locale, settings=settings)

Lifecycle of one call:

  0. CONFIG:  no API key → ConfigurationError, nothing else runs
  1. BUDGET:  estimate prompt tokens, reject oversized input up front
  2. ATTEMPT (n = 1..max_retries), strictly sequential:
       prompt (with corrective feedback if n > 1) → LLM → sanitize/parse/
       repair → structural validation → AnalysisOutput
  3. DECIDE per attempt outcome:
       Success          → return immediately
       FatalFailure     → re-raise (auth/billing), no more attempts
       RetryableFailure → sleep n * backoff seconds, try again, or raise
                          AnalysisFailedError once attempts run out

Each attempt produces a fresh AttemptOutcome. The history is an immutable
tuple; the "last error" fed into the next prompt is read from it rather
than from a shared mutable slot. No partial results carry over.
"""

import asyncio
import uuid
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError

from inquiry_analyzer.config import Settings
from inquiry_analyzer.errors import (
    AnalysisFailedError,
    AnalyzerError,
    AuthError,
    BillingError,
    InvalidInputError,
    SchemaValidationError,
)
from inquiry_analyzer.llm.budget import check_budget
from inquiry_analyzer.llm.client import LLMClient
from inquiry_analyzer.llm.parser import parse_analysis
from inquiry_analyzer.llm.validators import raise_for_invalid, validate_analysis
from inquiry_analyzer.prompts.analysis import build_system_prompt, build_user_prompt
from inquiry_analyzer.schemas.api import InquiryRequest
from inquiry_analyzer.schemas.llm_outputs import AnalysisOutput
from inquiry_analyzer.schemas.pipeline import (
    AttemptOutcome,
    FatalFailure,
    RetryableFailure,
    Success,
)
from inquiry_analyzer.utils.logging import log, get_logger

MODULE = "llm.invoker"
logger = get_logger()

FATAL_ERRORS = (AuthError, BillingError)

Sleep = Callable[[float], Awaitable[None]]


async def run_attempt(
    request: InquiryRequest,
    attempt: int,
    last_error: Optional[str],
    *,
    client: LLMClient,
    request_id: str = "",
) -> AttemptOutcome:
    """Run one end-to-end attempt and classify what happened.

    Never raises for pipeline errors; they come back as outcomes.
    """
    system_prompt = build_system_prompt()
    user_prompt = build_user_prompt(request, attempt, last_error)

    try:
        raw = await client.send(system_prompt, user_prompt,
                                request_id=request_id, attempt=attempt)
        parsed = parse_analysis(raw, request_id=request_id, attempt=attempt)

        result = validate_analysis(parsed)
        if not result.valid:
            log.warning(logger, MODULE, "validation_failed",
                        f"Structural validation failed: {result.error_message}",
                        request_id=request_id, attempt=attempt,
                        missing_fields=sorted(result.missing_fields) or None,
                        structural_error=result.structural_error)
        raise_for_invalid(result)

        try:
            analysis = AnalysisOutput.model_validate(parsed)
        except ValidationError as e:
            raise SchemaValidationError(f"Analysis does not match the expected shape: {e}") from e

        return Success(attempt=attempt, analysis=analysis)

    except FATAL_ERRORS as e:
        return FatalFailure(attempt=attempt, error=e)
    except AnalyzerError as e:
        return RetryableFailure(attempt=attempt, error=e)


async def run_attempts(
    request: InquiryRequest,
    *,
    client: LLMClient,
    max_retries: int = 3,
    backoff_seconds: float = 1.0,
    sleep: Sleep = asyncio.sleep,
    request_id: str = "",
) -> AnalysisOutput:
    """Drive up to `max_retries` attempts with linear backoff.

    Raises:
        AuthError / BillingError: Immediately, from the attempt that hit them
        AnalysisFailedError: When every attempt failed with a retryable error
    """
    outcomes: tuple[AttemptOutcome, ...] = ()

    for attempt in range(1, max_retries + 1):
        last_error = outcomes[-1].reason if outcomes else None

        log.info(logger, MODULE, "attempt_start",
                 f"Attempt {attempt}/{max_retries}",
                 request_id=request_id, attempt=attempt)

        outcome = await run_attempt(request, attempt, last_error,
                                    client=client, request_id=request_id)
        outcomes = (*outcomes, outcome)

        if isinstance(outcome, Success):
            log.info(logger, MODULE, "analyze_done",
                     "Analysis complete, structure validated",
                     request_id=request_id, attempts=attempt)
            return outcome.analysis

        if isinstance(outcome, FatalFailure):
            log.error(logger, MODULE, "analyze_failed",
                      "Non-retryable provider error",
                      error=outcome.reason, error_type=type(outcome.error).__name__,
                      request_id=request_id, attempt=attempt)
            raise outcome.error

        log.warning(logger, MODULE, "attempt_failed",
                    f"Attempt {attempt}/{max_retries} failed",
                    error=outcome.reason, error_type=type(outcome.error).__name__,
                    request_id=request_id, attempt=attempt)

        if attempt < max_retries:
            delay = attempt * backoff_seconds
            log.info(logger, MODULE, "retry_backoff",
                     f"Retrying in {delay:g}s", request_id=request_id,
                     attempt=attempt, delay_s=delay)
            await sleep(delay)

    last = outcomes[-1]
    log.error(logger, MODULE, "analyze_failed",
              f"Analysis failed after {len(outcomes)} attempts",
              error=last.reason, error_type=type(last.error).__name__,
              request_id=request_id, attempts=len(outcomes))
    raise AnalysisFailedError(len(outcomes), last.reason, outcomes) from last.error


async def analyze(
    message: str,
    client_name: Optional[str] = None,
    locale: Optional[str] = None,
    *,
    settings: Settings,
    client: Optional[LLMClient] = None,
    sleep: Sleep = asyncio.sleep,
) -> AnalysisOutput:
    """Turn a client inquiry into a validated project assessment.

    Args:
        message: The inquiry text
        client_name: Optional client name
        locale: Optional client country/locale; output is localized for it
        settings: Process configuration (built once at startup)
        client: LLM client override (defaults to one built from settings)
        sleep: Backoff sleep override

    Returns:
        Validated AnalysisOutput

    Raises:
        ConfigurationError: API key missing
        InvalidInputError: Message is blank or not text
        BudgetExceededError: Prompt estimated over the token limit
        AuthError / BillingError: Account-level provider failure
        AnalysisFailedError: All attempts failed
    """
    settings.require_api_key()

    try:
        request = InquiryRequest(message=message, client_name=client_name, locale=locale)
    except ValidationError as e:
        reason = "; ".join(err["msg"] for err in e.errors())
        raise InvalidInputError(f"Invalid inquiry: {reason}") from e

    request_id = uuid.uuid4().hex[:8]

    log.info(logger, MODULE, "analyze_start", "Analyzing inquiry",
             request_id=request_id, message_length=len(request.message),
             locale=request.locale)

    check_budget(build_system_prompt(), build_user_prompt(request),
                 settings.token_limit, request_id=request_id)

    return await run_attempts(
        request,
        client=client or LLMClient(settings),
        max_retries=settings.max_retries,
        backoff_seconds=settings.retry_backoff_seconds,
        sleep=sleep,
        request_id=request_id,
    )
