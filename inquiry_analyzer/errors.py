"""Error taxonomy for the analysis pipeline.

Every failure a caller can see is an AnalyzerError subclass with a
descriptive message. The `retryable` flag is what the orchestrator
consults when deciding between another attempt and giving up:

  ConfigurationError     → fix the deployment (never retried)
  InvalidInputError      → the inquiry itself is unusable (never retried)
  BudgetExceededError    → shrink the input (never retried)
  AuthError/BillingError → account-level problem (never retried)
  RateLimitError         → retried, surfaced once attempts run out
  TransportError         → network-level, retried
  ApiError               → other non-2xx from the provider, retried
  EmptyReplyError        → provider answered with no content, retried
  MalformedResponseError → JSON unusable after sanitize + repair, retried
  SchemaValidationError  → JSON incomplete, retried with corrective feedback
  AnalysisFailedError    → aggregate raised after the last attempt
"""

from typing import Optional


class AnalyzerError(Exception):
    """Base class for all pipeline errors."""

    retryable: bool = True
    remediation: Optional[str] = None

    def __init__(self, message: str, remediation: Optional[str] = None):
        super().__init__(message)
        if remediation is not None:
            self.remediation = remediation


class ConfigurationError(AnalyzerError):
    """Missing or invalid deployment configuration."""

    retryable = False


class InvalidInputError(AnalyzerError):
    """The inquiry cannot be analyzed as given (e.g. blank message)."""

    retryable = False


class BudgetExceededError(AnalyzerError):
    """Prompt is estimated to exceed the model's token limit."""

    retryable = False

    def __init__(self, message: str, *, total: int, limit: int, over_limit: int, over_percent: float):
        super().__init__(message)
        self.total = total
        self.limit = limit
        self.over_limit = over_limit
        self.over_percent = over_percent


# =============================================================================
# TRANSPORT / PROVIDER ERRORS
# =============================================================================

class LLMError(AnalyzerError):
    """Raised by the LLM client for a failed chat-completion call."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        remediation: Optional[str] = None,
    ):
        super().__init__(message, remediation=remediation)
        self.status_code = status_code


class AuthError(LLMError):
    retryable = False
    remediation = "The API key is invalid or expired. Check DEEPSEEK_API_KEY."


class BillingError(LLMError):
    retryable = False
    remediation = (
        "The provider account balance is insufficient. "
        "Top up at https://platform.deepseek.com/ and retry."
    )


class RateLimitError(LLMError):
    remediation = "The provider is rate limiting requests. Wait a moment and try again."


class TransportError(LLMError):
    remediation = "Could not reach the LLM API. Check the network connection and DEEPSEEK_API_URL."


class ApiError(LLMError):
    """Any other non-2xx response, carrying the provider's own message."""

    def __init__(self, message: str, status_code: Optional[int] = None, provider_message: str = ""):
        super().__init__(message, status_code=status_code)
        self.provider_message = provider_message


class EmptyReplyError(LLMError):
    pass


# =============================================================================
# OUTPUT ERRORS
# =============================================================================

class MalformedResponseError(AnalyzerError):
    """Model output could not be turned into a JSON object."""

    def __init__(self, message: str, raw_output: str = ""):
        super().__init__(message)
        self.raw_output = raw_output


class SchemaValidationError(AnalyzerError):
    """Parsed object is missing required fields."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class StructuralError(SchemaValidationError):
    """A nested shape (teamMembers.roles, role responsibilities) is wrong."""


class AnalysisFailedError(AnalyzerError):
    """All attempts were used up without a valid analysis."""

    retryable = False

    def __init__(self, attempts: int, last_error: str, outcomes: tuple = ()):
        super().__init__(f"Analysis failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
        self.outcomes = outcomes

    @property
    def last_exception(self) -> Optional[Exception]:
        if not self.outcomes:
            return None
        return self.outcomes[-1].error
