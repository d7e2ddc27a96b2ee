"""Inquiry analysis endpoint.

Thin wrapper over llm.invoker.analyze(): validates the body, runs the
pipeline, and maps pipeline errors to HTTP statuses with a descriptive
message. Storage of results is the caller's business.
"""

from datetime import datetime, timezone
from functools import lru_cache

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from inquiry_analyzer.config import Settings
from inquiry_analyzer.errors import (
    AnalysisFailedError,
    AnalyzerError,
    AuthError,
    BillingError,
    BudgetExceededError,
    ConfigurationError,
    InvalidInputError,
    RateLimitError,
)
from inquiry_analyzer.llm.invoker import analyze
from inquiry_analyzer.schemas import (
    DEFAULT_CLIENT_NAME,
    AnalysisResponse,
    ErrorResponse,
    InquiryRequest,
)
from inquiry_analyzer.utils.logging import log, get_logger

MODULE = "api.analyze"
logger = get_logger()

router = APIRouter()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first use."""
    return Settings.from_env()


def _error_status(error: AnalyzerError) -> tuple[int, str]:
    """HTTP status and short error kind for a pipeline error."""
    if isinstance(error, ConfigurationError):
        return 500, "configuration_error"
    if isinstance(error, InvalidInputError):
        return 400, "invalid_input"
    if isinstance(error, BudgetExceededError):
        return 413, "budget_exceeded"
    if isinstance(error, BillingError):
        return 402, "billing_error"
    if isinstance(error, AuthError):
        return 502, "auth_error"
    if isinstance(error, AnalysisFailedError) and isinstance(error.last_exception, RateLimitError):
        return 429, "rate_limited"
    return 502, "analysis_failed"


def _error_response(error: AnalyzerError) -> JSONResponse:
    status, kind = _error_status(error)
    remediation = error.remediation
    if isinstance(error, AnalysisFailedError) and error.last_exception is not None:
        remediation = getattr(error.last_exception, "remediation", None)
    body = ErrorResponse(error=kind, message=str(error), remediation=remediation)
    return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))


@router.post("", response_model=AnalysisResponse, response_model_by_alias=True)
async def analyze_inquiry(body: InquiryRequest, settings: Settings = Depends(get_settings)):
    """Analyze a client inquiry and return the structured assessment."""
    try:
        analysis = await analyze(
            body.message,
            body.client_name,
            body.locale,
            settings=settings,
        )
    except AnalyzerError as e:
        log.error(logger, MODULE, "analyze_failed", "Inquiry analysis failed",
                  error=str(e), error_type=type(e).__name__)
        return _error_response(e)

    return AnalysisResponse(
        client_name=body.client_name or DEFAULT_CLIENT_NAME,
        message=body.message,
        analysis=analysis.to_wire(),
        created_at=datetime.now(timezone.utc),
    )
