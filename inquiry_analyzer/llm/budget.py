"""Pre-flight token budget check.

Runs once per inquiry, BEFORE any network call. A prompt that is too big
either gets rejected by the provider or produces a truncated reply, so we
reject it locally and tell the caller by how much it is over.

The estimate is a coarse heuristic, not a tokenizer:

  tokens ≈ ceil(len(text) * 0.5)

Half a token per character sits between English (~4 chars/token) and CJK
text (~1.5 chars/token), erring on the side of over-counting.
"""

import math

from inquiry_analyzer.errors import BudgetExceededError
from inquiry_analyzer.schemas.pipeline import TokenBudget
from inquiry_analyzer.utils.logging import log, get_logger

MODULE = "llm.budget"
logger = get_logger()

TOKENS_PER_CHAR = 0.5
WARNING_RATIO = 0.8


def estimate_tokens(text: str) -> int:
    """Estimate the token count of `text`. Empty text → 0."""
    return math.ceil(len(text or "") * TOKENS_PER_CHAR)


def format_count(tokens: int) -> str:
    """Compact token count: 1500 → "1.5K", 999 → "999"."""
    if tokens >= 1000:
        return f"{tokens / 1000:.1f}K"
    return str(tokens)


def check_budget(system_prompt: str, user_prompt: str, limit: int, **log_context) -> TokenBudget:
    """Estimate prompt size and enforce the limit.

    Args:
        system_prompt: System message content
        user_prompt: User message content (first attempt)
        limit: Maximum estimated tokens allowed
        **log_context: Extra fields for log lines (e.g. request_id)

    Returns:
        The computed TokenBudget

    Raises:
        BudgetExceededError: If the estimated total is over `limit`
    """
    system_tokens = estimate_tokens(system_prompt)
    user_tokens = estimate_tokens(user_prompt)
    total = system_tokens + user_tokens
    budget = TokenBudget(
        system_tokens=system_tokens,
        user_tokens=user_tokens,
        total=total,
        limit=limit,
    )

    log.info(logger, MODULE, "token_estimate",
             f"Token estimate: system {format_count(system_tokens)} + "
             f"user {format_count(user_tokens)} = {format_count(total)}",
             system_tokens=system_tokens, user_tokens=user_tokens,
             total=total, limit=limit, **log_context)

    if total > limit:
        over_limit = total - limit
        over_percent = round(over_limit / limit * 100, 1)
        log.warning(logger, MODULE, "budget_exceeded",
                    "Prompt exceeds token limit, not calling model",
                    total=total, limit=limit, over_limit=over_limit, **log_context)
        raise BudgetExceededError(
            "Inquiry content is too large to analyze\n\n"
            f"Current content: ~{format_count(total)} tokens\n"
            f"API limit: {format_count(limit)} tokens\n"
            f"Over limit by: {format_count(over_limit)} tokens ({over_percent:.1f}%)\n\n"
            "Suggestions:\n"
            "1. Extract the key information (requirements, feature descriptions) and resubmit\n"
            "2. Split a large document into several smaller parts and analyze them separately\n"
            "3. For PDFs, copy only the text of the relevant pages",
            total=total,
            limit=limit,
            over_limit=over_limit,
            over_percent=over_percent,
        )

    if total > limit * WARNING_RATIO:
        log.warning(logger, MODULE, "budget_near_limit",
                    f"Token estimate is close to the limit ({budget.usage_percent:.1f}%), "
                    "analysis quality may suffer",
                    total=total, limit=limit, **log_context)

    return budget
