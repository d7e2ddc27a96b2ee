"""LLM analysis package.

This package turns a client inquiry into a validated project assessment:

  from inquiry_analyzer.llm import analyze

  analysis = await analyze(
      message="We need a booking app for three clinics...",
      locale="Germany",
      settings=settings,
  )

Architecture:
  budget.py     → token estimate + pre-flight size check
  client.py     → chat-completion call + error classification
  parser.py     → sanitize, parse and repair raw model JSON
  validators.py → structural checks (required keys, nested shapes)
  invoker.py    → attempt loop: prompt → call → parse → validate → retry

The invoker implements defense-in-depth:
  1. BUDGET: refuse oversized prompts before paying for a call
  2. PROMPT: tell the LLM exactly what shape to produce
  3. PARSE: strip fences/prose, fix newlines in strings, repair truncation
  4. VALIDATE: required fields and team/role shapes
  5. RETRY: on failure, retry with the failure described in the prompt
"""

# Budget
from inquiry_analyzer.llm.budget import (
    estimate_tokens,
    format_count,
    check_budget,
)

# Client
from inquiry_analyzer.llm.client import (
    LLMClient,
    get_llm,
    classify_error,
)

# Parsing
from inquiry_analyzer.llm.parser import (
    sanitize,
    repair,
    parse_analysis,
    normalize_string_newlines,
)

# Validators
from inquiry_analyzer.llm.validators import (
    validate_analysis,
    raise_for_invalid,
)

# Invocation
from inquiry_analyzer.llm.invoker import (
    analyze,
    run_attempt,
    run_attempts,
)

__all__ = [
    # Budget
    "estimate_tokens",
    "format_count",
    "check_budget",
    # Client
    "LLMClient",
    "get_llm",
    "classify_error",
    # Parser
    "sanitize",
    "repair",
    "parse_analysis",
    "normalize_string_newlines",
    # Validators
    "validate_analysis",
    "raise_for_invalid",
    # Invoker
    "analyze",
    "run_attempt",
    "run_attempts",
]
