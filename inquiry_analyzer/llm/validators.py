"""Structural validation for parsed analysis objects.

These checks run on the raw parsed dict BEFORE it is loaded into
AnalysisOutput. They check SHAPE only, never content:

- All required top-level keys are present (all missing keys are reported)
- teamMembers.roles is a list
- Every role has a non-empty responsibilities list

Each nested shape has its own function returning an error string (or
None) so defects are collected into one ValidationResult instead of
raising on the first one. raise_for_invalid() is what the orchestrator
calls to turn a failed result into an exception.
"""

from typing import Any, Optional

from inquiry_analyzer.errors import SchemaValidationError, StructuralError
from inquiry_analyzer.schemas.llm_outputs import REQUIRED_FIELDS
from inquiry_analyzer.schemas.pipeline import ValidationResult
from inquiry_analyzer.utils.logging import log, get_logger

MODULE = "llm.validators"
logger = get_logger()


def validate_role(role: Any, index: int) -> Optional[str]:
    """Check one teamMembers.roles entry."""
    responsibilities = role.get("responsibilities") if isinstance(role, dict) else None
    if not isinstance(responsibilities, list) or not responsibilities:
        return f"role {index} missing responsibilities sequence"
    return None


def validate_team_members(team_members: Any) -> Optional[str]:
    """Check teamMembers.roles and each role in it. First defect wins."""
    roles = team_members.get("roles") if isinstance(team_members, dict) else None
    if not isinstance(roles, list):
        return "teamMembers.roles must be a sequence"

    for i, role in enumerate(roles):
        error = validate_role(role, i)
        if error:
            return error
    return None


def validate_pricing(pricing: Any) -> None:
    """Log pricing shape oddities.

    Pricing is free-form as far as the pipeline is concerned, so nothing
    here fails validation. The warnings show when a model drifts from the
    requested breakdown/costTable layout.
    """
    if not isinstance(pricing, dict):
        log.warning(logger, MODULE, "pricing_not_object",
                    "pricing is not an object", pricing_type=type(pricing).__name__)
        return
    if "breakdown" in pricing and not isinstance(pricing["breakdown"], dict):
        log.warning(logger, MODULE, "pricing_breakdown_shape",
                    "pricing.breakdown is not an object")
    if "costTable" in pricing and not isinstance(pricing["costTable"], list):
        log.warning(logger, MODULE, "pricing_cost_table_shape",
                    "pricing.costTable is not a list")


def validate_analysis(data: Any) -> ValidationResult:
    """Validate the structure of a parsed analysis.

    A key that is absent or null counts as missing.

    Args:
        data: Parsed JSON (expected to be a dict)

    Returns:
        ValidationResult with every missing field and the first
        structural defect, if any
    """
    if not isinstance(data, dict):
        return ValidationResult(
            valid=False,
            missing_fields=set(REQUIRED_FIELDS),
            structural_error=f"analysis must be an object, got {type(data).__name__}",
        )

    missing = {field for field in REQUIRED_FIELDS if data.get(field) is None}

    structural_error = None
    if "teamMembers" not in missing:
        structural_error = validate_team_members(data["teamMembers"])
    if "pricing" not in missing:
        validate_pricing(data["pricing"])

    return ValidationResult(
        valid=not missing and structural_error is None,
        missing_fields=missing,
        structural_error=structural_error,
    )


def raise_for_invalid(result: ValidationResult) -> None:
    """Raise StructuralError / SchemaValidationError for a failed result."""
    if result.valid:
        return
    if result.structural_error:
        raise StructuralError(result.error_message, result=result)
    raise SchemaValidationError(result.error_message, result=result)
