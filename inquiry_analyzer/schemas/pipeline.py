"""Value objects passed between pipeline stages.

  TokenBudget       → result of the pre-flight size check
  ValidationResult  → result of structural validation
  AttemptOutcome    → what one end-to-end attempt produced:
                        Success | RetryableFailure | FatalFailure

Attempt outcomes are created fresh per attempt and collected into an
immutable tuple by the orchestrator; they are never persisted.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from inquiry_analyzer.schemas.llm_outputs import REQUIRED_FIELDS, AnalysisOutput


class TokenBudget(BaseModel):
    model_config = ConfigDict(frozen=True)

    system_tokens: int
    user_tokens: int
    total: int
    limit: int

    @property
    def usage_percent(self) -> float:
        return self.total / self.limit * 100


class ValidationResult(BaseModel):
    valid: bool
    missing_fields: set[str] = Field(default_factory=set)
    structural_error: Optional[str] = None

    @property
    def error_message(self) -> str:
        """Human-readable summary, suitable for corrective retry feedback."""
        parts = []
        if self.missing_fields:
            ordered = [f for f in REQUIRED_FIELDS if f in self.missing_fields]
            parts.append(f"Missing required fields: {', '.join(ordered)}")
        if self.structural_error:
            parts.append(self.structural_error)
        return "; ".join(parts)


# =============================================================================
# ATTEMPT OUTCOMES
# =============================================================================

class AttemptOutcome(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    attempt: int


class Success(AttemptOutcome):
    kind: Literal["success"] = "success"
    analysis: AnalysisOutput


class RetryableFailure(AttemptOutcome):
    kind: Literal["retryable"] = "retryable"
    error: Exception

    @property
    def reason(self) -> str:
        return str(self.error)


class FatalFailure(AttemptOutcome):
    kind: Literal["fatal"] = "fatal"
    error: Exception

    @property
    def reason(self) -> str:
        return str(self.error)
