"""JSON extraction and repair for LLM replies.

Long, prose-heavy JSON from a model breaks in predictable ways. Parsing
goes through three stages:

  1. SANITIZE  sanitize(raw)        → text closer to valid JSON
       - trim, strip ```json fences
       - keep the span from the first { to the last }
       - drop /* */ and // comments, drop trailing commas
       - rewrite raw line breaks inside string values to spaces
  2. PARSE     json.loads
  3. REPAIR    repair(text, error)  → only if PARSE failed
       - strategy 1: cut after the last }    (trailing partial field)
       - strategy 2: close a dangling string, then ] and } deficits
       - both fail: re-raise the ORIGINAL parse error

parse_analysis() runs the three stages and raises MalformedResponseError
when nothing yields a JSON object.
"""

import enum
import json
import re
from typing import Any, Optional

from inquiry_analyzer.errors import MalformedResponseError
from inquiry_analyzer.utils.logging import log, get_logger

MODULE = "llm.parser"
logger = get_logger()

EXCERPT_CHARS = 1000

_FENCE_START = re.compile(r"^```[\w-]*[ \t]*\r?\n?")
_FENCE_END = re.compile(r"\r?\n?```\s*$")
_OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)

# String literals are matched first so comment/comma patterns never fire inside them
_STRING_LITERAL = r'"(?:\\.|[^"\\])*"'
_COMMENTS = re.compile(_STRING_LITERAL + r"|/\*.*?\*/|//[^\n]*", re.DOTALL)
_TRAILING_COMMA = re.compile(_STRING_LITERAL + r"|,(\s*[}\]])", re.DOTALL)
_UNESCAPED_QUOTE = re.compile(r'(?<!\\)"')


# =============================================================================
# SANITIZE
# =============================================================================

class ScanState(enum.Enum):
    OUTSIDE = "outside"
    INSIDE_STRING = "inside_string"
    ESCAPED = "escaped"


def normalize_string_newlines(text: str) -> str:
    """Replace raw control characters inside JSON string literals with spaces.

    Finite-state scan:
      OUTSIDE        --"-->  INSIDE_STRING
      INSIDE_STRING  --"-->  OUTSIDE
      INSIDE_STRING  --\\-->  ESCAPED
      ESCAPED        --any-> INSIDE_STRING

    Inside a string, LF/CR (and any other char below 0x20) becomes a single
    space. Everything else, and everything outside strings, is copied as is.
    """
    state = ScanState.OUTSIDE
    out = []

    for char in text:
        if state is ScanState.OUTSIDE:
            if char == '"':
                state = ScanState.INSIDE_STRING
            out.append(char)
            continue

        if char < " ":
            out.append(" ")
        else:
            out.append(char)

        if state is ScanState.ESCAPED:
            state = ScanState.INSIDE_STRING
        elif char == "\\":
            state = ScanState.ESCAPED
        elif char == '"':
            state = ScanState.OUTSIDE

    return "".join(out)


def strip_fences(text: str) -> str:
    """Remove a leading ```lang fence line and a trailing ``` fence."""
    text = _FENCE_START.sub("", text.strip(), count=1)
    text = _FENCE_END.sub("", text, count=1)
    return text.strip()


def extract_object_span(text: str) -> str:
    """Keep the first { through the last }, dropping prose around them.

    A reply cut off before any } keeps everything from the first {, so the
    repair cascade can still close it.
    """
    match = _OBJECT_SPAN.search(text)
    if match:
        return match.group(0)
    start = text.find("{")
    return text[start:] if start != -1 else text


def strip_comments(text: str) -> str:
    return _COMMENTS.sub(lambda m: m.group(0) if m.group(0).startswith('"') else "", text)


def strip_trailing_commas(text: str) -> str:
    def _replace(m: re.Match) -> str:
        if m.group(1) is None:
            return m.group(0)
        return m.group(1)

    # ",,]" needs more than one pass
    previous = None
    while previous != text:
        previous = text
        text = _TRAILING_COMMA.sub(_replace, text)
    return text


def sanitize(raw: str) -> str:
    """Normalize raw model output into syntactically plausible JSON text.

    The result is not guaranteed to parse. sanitize() is idempotent.
    """
    text = strip_fences(raw)
    text = extract_object_span(text)
    text = strip_comments(text)
    text = strip_trailing_commas(text)
    return normalize_string_newlines(text)


# =============================================================================
# REPAIR
# =============================================================================

def _loads_object(text: str) -> Optional[dict]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def truncate_to_last_brace(text: str) -> Optional[dict]:
    """Strategy 1: parse everything up to and including the last }."""
    last_brace = text.rfind("}")
    if last_brace <= 0:
        return None
    return _loads_object(text[: last_brace + 1])


def balance_and_close(text: str) -> Optional[dict]:
    """Strategy 2: close a dangling string, then missing ] and } in that order."""
    fixed = text
    if len(_UNESCAPED_QUOTE.findall(fixed)) % 2 != 0:
        fixed += '"'

    missing_brackets = fixed.count("[") - fixed.count("]")
    missing_braces = fixed.count("{") - fixed.count("}")
    fixed += "]" * max(missing_brackets, 0)
    fixed += "}" * max(missing_braces, 0)

    return _loads_object(fixed)


REPAIR_STRATEGIES = (
    ("truncate_to_last_brace", truncate_to_last_brace),
    ("balance_and_close", balance_and_close),
)


def repair(text: str, error: json.JSONDecodeError, **log_context) -> dict:
    """Try each repair strategy once, in order; first object wins.

    Raises:
        json.JSONDecodeError: `error` (the original parse failure) when
            every strategy fails, so callers see the root cause
    """
    for name, strategy in REPAIR_STRATEGIES:
        result = strategy(text)
        if result is not None:
            log.info(logger, MODULE, "repair_done",
                     f"Repaired model JSON with {name}",
                     strategy=name, **log_context)
            return result
        log.debug(logger, MODULE, "repair_strategy_failed",
                  f"Repair strategy {name} did not produce an object",
                  strategy=name, **log_context)

    raise error


# =============================================================================
# ENTRY POINT
# =============================================================================

def parse_analysis(raw: str, **log_context) -> dict[str, Any]:
    """Sanitize, parse and (if needed) repair a model reply.

    Args:
        raw: Raw reply text from the LLM
        **log_context: Extra fields for log lines (e.g. request_id, attempt)

    Returns:
        The parsed JSON object

    Raises:
        MalformedResponseError: If no JSON object can be recovered
    """
    cleaned = sanitize(raw)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        log.warning(logger, MODULE, "parse_failed",
                    "Direct JSON parse failed, trying repairs",
                    error=str(e), raw_length=len(raw),
                    head=raw[:EXCERPT_CHARS], tail=raw[-EXCERPT_CHARS:],
                    **log_context)
        try:
            return repair(cleaned, e, **log_context)
        except json.JSONDecodeError as original:
            log.warning(logger, MODULE, "repair_failed",
                        "All repair strategies failed", error=str(original),
                        **log_context)
            raise MalformedResponseError(
                f"Could not parse the model's JSON output: {original}",
                raw_output=raw,
            ) from original

    if not isinstance(parsed, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(parsed).__name__}",
            raw_output=raw,
        )
    return parsed
