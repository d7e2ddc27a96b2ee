"""Tests for the attempt loop and the analyze() entry point."""

import json

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage

from conftest import ScriptedClient
from inquiry_analyzer.config import Settings
from inquiry_analyzer.errors import (
    AnalysisFailedError,
    ApiError,
    AuthError,
    BillingError,
    BudgetExceededError,
    ConfigurationError,
    InvalidInputError,
    MalformedResponseError,
    RateLimitError,
    StructuralError,
    TransportError,
)
from inquiry_analyzer.llm.client import LLMClient
from inquiry_analyzer.llm.invoker import analyze, run_attempt, run_attempts
from inquiry_analyzer.schemas import (
    AnalysisOutput,
    FatalFailure,
    InquiryRequest,
    RetryableFailure,
    Success,
)

REQUEST = InquiryRequest(message="We need an online shop for handmade furniture.")


class BillingChat:
    """ChatOpenAI stand-in that always answers HTTP 402."""

    def __init__(self):
        self.calls = 0

    async def ainvoke(self, messages, **kwargs):
        self.calls += 1
        request = httpx.Request("POST", "https://api.deepseek.com/v1/chat/completions")
        response = httpx.Response(402, request=request)
        raise openai.APIStatusError("Insufficient Balance", response=response, body=None)


class UnreadableThenOkChat:
    """ChatOpenAI stand-in whose first reply langchain cannot read."""

    def __init__(self, reply):
        self.reply = reply
        self.calls = 0

    async def ainvoke(self, messages, **kwargs):
        self.calls += 1
        if self.calls == 1:
            raise ValueError("{'message': 'upstream busy'}")
        return AIMessage(content=self.reply)


# =============================================================================
# SINGLE ATTEMPT
# =============================================================================

@pytest.mark.asyncio
async def test_attempt_success(valid_reply):
    outcome = await run_attempt(REQUEST, 1, None, client=ScriptedClient(valid_reply))
    assert isinstance(outcome, Success)
    assert isinstance(outcome.analysis, AnalysisOutput)
    assert outcome.attempt == 1


@pytest.mark.asyncio
async def test_attempt_malformed_is_retryable():
    outcome = await run_attempt(REQUEST, 1, None, client=ScriptedClient("Sorry, no."))
    assert isinstance(outcome, RetryableFailure)
    assert isinstance(outcome.error, MalformedResponseError)


@pytest.mark.asyncio
async def test_attempt_structural_defect_is_retryable(valid_analysis):
    valid_analysis["teamMembers"]["roles"] = [{"role": "dev"}]
    outcome = await run_attempt(REQUEST, 1, None, client=ScriptedClient(json.dumps(valid_analysis)))
    assert isinstance(outcome, RetryableFailure)
    assert isinstance(outcome.error, StructuralError)
    assert outcome.reason == "role 0 missing responsibilities sequence"


@pytest.mark.asyncio
async def test_attempt_auth_is_fatal():
    outcome = await run_attempt(REQUEST, 1, None, client=ScriptedClient(AuthError("bad key", status_code=401)))
    assert isinstance(outcome, FatalFailure)


@pytest.mark.asyncio
async def test_attempt_sends_corrective_feedback(valid_reply):
    client = ScriptedClient(valid_reply)
    await run_attempt(REQUEST, 2, "Missing required fields: pricing", client=client)
    assert "Missing required fields: pricing" in client.calls[0]["user"]
    assert client.calls[0]["attempt"] == 2


# =============================================================================
# ATTEMPT LOOP
# =============================================================================

@pytest.mark.asyncio
async def test_success_on_first_attempt(valid_reply, sleep):
    client = ScriptedClient(valid_reply)
    analysis = await run_attempts(REQUEST, client=client, sleep=sleep)
    assert analysis.summary.startswith("A booking platform")
    assert len(client.calls) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_transport_errors_then_success(valid_reply, sleep):
    client = ScriptedClient(
        TransportError("connection refused"),
        TransportError("connection refused"),
        valid_reply,
    )
    analysis = await run_attempts(REQUEST, client=client, sleep=sleep)

    assert isinstance(analysis, AnalysisOutput)
    assert len(client.calls) == 3
    assert sleep.delays == [1, 2]


@pytest.mark.asyncio
async def test_billing_error_single_attempt_no_backoff(settings, sleep):
    chat = BillingChat()
    client = LLMClient(settings, llm=chat)

    with pytest.raises(BillingError):
        await run_attempts(REQUEST, client=client, sleep=sleep)

    assert chat.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_auth_error_is_reraised_unchanged(sleep):
    error = AuthError("bad key", status_code=401)
    client = ScriptedClient(TransportError("down"), error)

    with pytest.raises(AuthError) as exc_info:
        await run_attempts(REQUEST, client=client, sleep=sleep)

    assert exc_info.value is error
    assert len(client.calls) == 2
    assert sleep.delays == [1]


@pytest.mark.asyncio
async def test_exhausted_raises_aggregate(sleep):
    client = ScriptedClient("not json")

    with pytest.raises(AnalysisFailedError) as exc_info:
        await run_attempts(REQUEST, client=client, sleep=sleep)

    err = exc_info.value
    assert err.attempts == 3
    assert "after 3 attempts" in str(err)
    assert "Could not parse" in err.last_error
    assert len(err.outcomes) == 3
    assert all(isinstance(o, RetryableFailure) for o in err.outcomes)
    assert isinstance(err.__cause__, MalformedResponseError)
    assert sleep.delays == [1, 2]


@pytest.mark.asyncio
async def test_rate_limit_surfaces_after_retries(sleep):
    client = ScriptedClient(RateLimitError("slow down", status_code=429))

    with pytest.raises(AnalysisFailedError) as exc_info:
        await run_attempts(REQUEST, client=client, sleep=sleep)

    assert isinstance(exc_info.value.last_exception, RateLimitError)
    assert len(client.calls) == 3


@pytest.mark.asyncio
async def test_retry_prompt_names_previous_failure(valid_analysis, valid_reply, sleep):
    incomplete = dict(valid_analysis)
    del incomplete["pricing"]
    client = ScriptedClient(json.dumps(incomplete), valid_reply)

    await run_attempts(REQUEST, client=client, sleep=sleep)

    assert "previous attempt failed" not in client.calls[0]["user"]
    assert "Missing required fields: pricing" in client.calls[1]["user"]


@pytest.mark.asyncio
async def test_backoff_scales_with_setting(valid_reply, sleep):
    client = ScriptedClient(TransportError("down"), TransportError("down"), valid_reply)
    await run_attempts(REQUEST, client=client, backoff_seconds=0.5, sleep=sleep)
    assert sleep.delays == [0.5, 1.0]


# =============================================================================
# ENTRY POINT
# =============================================================================

@pytest.mark.asyncio
async def test_analyze_requires_api_key(valid_reply, sleep):
    client = ScriptedClient(valid_reply)
    with pytest.raises(ConfigurationError):
        await analyze("Need an app", settings=Settings(api_key=""), client=client, sleep=sleep)
    assert client.calls == []


@pytest.mark.asyncio
async def test_analyze_budget_checked_before_call(valid_reply, sleep):
    client = ScriptedClient(valid_reply)
    settings = Settings(api_key="sk-test", token_limit=100)

    with pytest.raises(BudgetExceededError):
        await analyze("Need an app", settings=settings, client=client, sleep=sleep)
    assert client.calls == []


@pytest.mark.asyncio
async def test_analyze_end_to_end(settings, valid_analysis, sleep):
    fenced = "Here you go:\n```json\n" + json.dumps(valid_analysis, indent=2) + "\n```"
    client = ScriptedClient(fenced)

    analysis = await analyze("Need an app", "Acme", "Germany",
                             settings=settings, client=client, sleep=sleep)

    assert analysis.to_wire()["pricing"] == valid_analysis["pricing"]
    assert "CLIENT LOCALE: Germany" in client.calls[0]["user"]
    assert client.calls[0]["request_id"]


@pytest.mark.asyncio
async def test_analyze_uses_configured_max_retries(sleep):
    client = ScriptedClient(TransportError("down"))
    settings = Settings(api_key="sk-test", max_retries=2)

    with pytest.raises(AnalysisFailedError) as exc_info:
        await analyze("Need an app", settings=settings, client=client, sleep=sleep)

    assert exc_info.value.attempts == 2
    assert sleep.delays == [1]


@pytest.mark.asyncio
async def test_unreadable_reply_is_retried(settings, valid_reply, sleep):
    chat = UnreadableThenOkChat(valid_reply)
    client = LLMClient(settings, llm=chat)

    result = await run_attempts(REQUEST, client=client, sleep=sleep)

    assert isinstance(result, AnalysisOutput)
    assert chat.calls == 2
    assert sleep.delays == [1]


@pytest.mark.asyncio
async def test_unreadable_reply_every_time_raises_aggregate(settings, sleep):
    client = ScriptedClient(ApiError("DeepSeek API returned an unusable reply", provider_message="x"))

    with pytest.raises(AnalysisFailedError) as exc_info:
        await run_attempts(REQUEST, client=client, sleep=sleep)

    assert isinstance(exc_info.value.last_exception, ApiError)
    assert len(client.calls) == 3


@pytest.mark.parametrize("message", ["", "   ", "\n\t"])
@pytest.mark.asyncio
async def test_analyze_blank_message_is_invalid_input(settings, valid_reply, sleep, message):
    client = ScriptedClient(valid_reply)

    with pytest.raises(InvalidInputError) as exc_info:
        await analyze(message, settings=settings, client=client, sleep=sleep)

    assert not exc_info.value.retryable
    assert "must not be empty" in str(exc_info.value)
    assert client.calls == []
