"""Pydantic schema for the structured analysis returned by the model.

The model is asked for camelCase keys; attributes here are snake_case with
the camelCase key as alias. Dump with `by_alias=True` to get the wire shape.

Only STRUCTURE is enforced. Field contents are whatever the model wrote:
counts may be "2 people" or 2, feasibility may be prose or an object.
Unknown keys are kept (extra="allow") so nothing the model adds is lost.

The structural checks in llm/validators.py run BEFORE model_validate, so by
the time data reaches these models the nested shapes are known to be sound.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# Top-level keys that must be present (risks is optional)
REQUIRED_FIELDS = (
    "summary",
    "requirements",
    "feasibility",
    "techStack",
    "timeline",
    "teamMembers",
    "pricing",
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# =============================================================================
# TEAM
# =============================================================================

class TeamRole(_CamelModel):
    """One role in the proposed team."""
    role: Any = None
    count: Any = None
    skills: Any = None
    responsibilities: list[Any] = Field(
        ...,
        min_length=1,
        description="Detailed duties; each item is expected to be a long, concrete paragraph",
    )
    level: Any = None
    workload: Any = None
    key_deliverables: Any = Field(default=None, alias="keyDeliverables")


class TeamMembers(_CamelModel):
    roles: list[TeamRole]
    total_count: Any = Field(default=None, alias="totalCount")
    team_structure: Any = Field(default=None, alias="teamStructure")
    key_requirements: Any = Field(default=None, alias="keyRequirements")


# =============================================================================
# ANALYSIS
# =============================================================================

class AnalysisOutput(_CamelModel):
    """The full project assessment (summary, feasibility, team, pricing...)."""
    summary: Any
    requirements: Any
    feasibility: Any
    tech_stack: Any = Field(..., alias="techStack")
    timeline: Any
    team_members: TeamMembers = Field(..., alias="teamMembers")
    pricing: Any
    risks: Optional[Any] = None

    def to_wire(self) -> dict:
        """Dump with the camelCase keys the model produced."""
        return self.model_dump(by_alias=True, exclude_none=True)
