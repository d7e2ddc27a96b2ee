"""Pydantic schemas for structured data validation.

This package contains:
- api.py: the inquiry input and REST request/response bodies
- llm_outputs.py: the structured analysis the model must produce
- pipeline.py: values passed between pipeline stages

Model output is checked structurally and then loaded into AnalysisOutput
BEFORE it reaches any caller.
"""

from inquiry_analyzer.schemas.llm_outputs import (
    REQUIRED_FIELDS,
    TeamRole,
    TeamMembers,
    AnalysisOutput,
)

from inquiry_analyzer.schemas.pipeline import (
    TokenBudget,
    ValidationResult,
    AttemptOutcome,
    Success,
    RetryableFailure,
    FatalFailure,
)

from inquiry_analyzer.schemas.api import (
    DEFAULT_CLIENT_NAME,
    InquiryRequest,
    AnalysisResponse,
    ErrorResponse,
)

__all__ = [
    # LLM outputs
    "REQUIRED_FIELDS",
    "TeamRole",
    "TeamMembers",
    "AnalysisOutput",
    # Pipeline
    "TokenBudget",
    "ValidationResult",
    "AttemptOutcome",
    "Success",
    "RetryableFailure",
    "FatalFailure",
    # API
    "DEFAULT_CLIENT_NAME",
    "InquiryRequest",
    "AnalysisResponse",
    "ErrorResponse",
]
