"""Pydantic schemas for the analysis input and the REST API."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CLIENT_NAME = "Unnamed client"


class InquiryRequest(BaseModel):
    """A client inquiry to analyze. Also the body of POST /analyze."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str = Field(..., description="Free-form inquiry text from the client")
    client_name: Optional[str] = Field(None, alias="clientName")
    locale: Optional[str] = Field(
        None,
        description="Client's country or locale; output is written for it",
    )

    @field_validator("message")
    @classmethod
    def message_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Inquiry message must not be empty")
        return v

    @field_validator("client_name", "locale")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class AnalysisResponse(BaseModel):
    """Response for a completed analysis."""

    model_config = ConfigDict(populate_by_name=True)

    client_name: str = Field(..., alias="clientName")
    message: str
    analysis: dict[str, Any]
    created_at: datetime = Field(..., alias="createdAt")


class ErrorResponse(BaseModel):
    error: str
    message: str
    remediation: Optional[str] = None
