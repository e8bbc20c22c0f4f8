"""Pydantic models for request / response validation.

Attributes are snake_case in Python; the wire format uses camelCase aliases
and both spellings are accepted on input.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Urgency = Literal["low", "moderate", "high", "critical"]
Impact = Literal["low", "moderate", "high"]

URGENCY_LEVELS: tuple[str, ...] = ("low", "moderate", "high", "critical")
IMPACT_LEVELS: tuple[str, ...] = ("low", "moderate", "high")


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class PatientProfile(_Record):
    age: int = Field(gt=0)
    has_high_bp: bool = Field(default=False, alias="hasHighBP")
    has_diabetes: bool = False
    medications: str = ""


class ImagePayload(_Record):
    mime_type: str
    encoded_data: str


class AssessmentRequest(_Record):
    image: str  # data URI or bare base64
    patient: PatientProfile


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

class PrecautionGroup(_Record):
    title: str
    items: list[str] = []


class RiskFactor(_Record):
    label: str
    impact: Impact
    description: str = ""


class AssessmentResult(_Record):
    wound_type: str
    severity: int = Field(ge=0, le=100)
    severity_label: str
    recovery_min: int = Field(ge=1)
    recovery_max: int = Field(ge=1)
    hospital_recommended: bool
    urgency: Urgency
    ai_summary: str = ""
    precautions: list[PrecautionGroup] = []
    risk_factors: list[RiskFactor] = []
    used_fallback: bool = False

    @model_validator(mode="after")
    def _check_recovery_range(self) -> "AssessmentResult":
        if self.recovery_max < self.recovery_min:
            raise ValueError("recovery_max must be >= recovery_min")
        return self


# ---------------------------------------------------------------------------
# Service status
# ---------------------------------------------------------------------------

class HealthResponse(_Record):
    status: str
    model: str
    credential_configured: bool
    demo_mode: bool
