#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: Scope-to-SOW Server
# CUI Category: PROPIN
# Distribution: D
# POC: Scope-to-SOW System Administrator
"""SOW input schema — pydantic model for generate_sow arguments.

Validation runs before any rendering. Every offending field is collected so
the caller sees all problems in one response, not just the first.

Field rules:
    project_name     required string, length >= 1
    goal             required string, length >= 1
    deliverables     required string, length >= 1 (one item per line)
    client           optional string
    timeline_weeks   optional integer in [1, 104]
    constraints      optional string
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    ValidationError,
    field_validator,
)

TIMELINE_MIN_WEEKS = 1
TIMELINE_MAX_WEEKS = 104


class SowInput(BaseModel):
    """Validated generate_sow arguments."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    # Required
    project_name: StrictStr = Field(
        min_length=1, description="Project name shown in the SOW title")
    goal: StrictStr = Field(
        min_length=1, description="One-sentence project goal")
    deliverables: StrictStr = Field(
        min_length=1, description="Deliverables, one per line")

    # Optional
    client: Optional[StrictStr] = Field(
        default=None, description="Client or customer name (optional)")
    timeline_weeks: Optional[int] = Field(
        default=None, ge=TIMELINE_MIN_WEEKS, le=TIMELINE_MAX_WEEKS,
        description="Target timeline in weeks (optional)")
    constraints: Optional[StrictStr] = Field(
        default=None, description="Constraints, notes or assumptions (optional)")

    @field_validator("timeline_weeks", mode="before")
    @classmethod
    def reject_bool_and_text(cls, v):
        # 4.0 is left to int coercion; 3.5 fails there
        if isinstance(v, (bool, str, bytes)):
            raise ValueError("must be an integer")
        return v


# JSON Schema advertised in tools/list for generate_sow
GENERATE_SOW_INPUT_SCHEMA = SowInput.model_json_schema()


@dataclass(frozen=True)
class FieldError:
    """A single field that failed validation."""
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class SowValidationError(ValueError):
    """Raised when generate_sow arguments fail shape or bound checks."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        detail = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(f"Invalid SOW input: {detail}")

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "SowValidationError":
        errors = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err["loc"]) or "arguments"
            errors.append(FieldError(field, err["msg"]))
        return cls(errors)

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        return {"errors": [e.to_dict() for e in self.errors]}


def validate_sow_input(arguments: Optional[Mapping[str, Any]]) -> SowInput:
    """Validate raw tool arguments and return a SowInput.

    Args:
        arguments: Mapping of tool arguments. None is treated as empty.

    Returns:
        SowInput with timeline_weeks coerced to int when present.

    Raises:
        SowValidationError: listing every offending field.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise SowValidationError([FieldError("arguments", "must be an object")])

    try:
        return SowInput.model_validate(dict(arguments))
    except ValidationError as e:
        raise SowValidationError.from_pydantic(e) from e
