"""Response sanitizer — coerce an untrusted model answer into an AssessmentResult.

Each field is checked on its own; a bad value is replaced by its default and
logged, never rejected wholesale. Nested precaution and risk-factor entries
are repaired where possible and dropped otherwise.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from app.schemas.assessment import (
    IMPACT_LEVELS,
    URGENCY_LEVELS,
    AssessmentResult,
    PrecautionGroup,
    RiskFactor,
)

logger = logging.getLogger(__name__)

DEFAULT_WOUND_TYPE = "Undetermined Wound"
DEFAULT_SEVERITY = 50
DEFAULT_SEVERITY_LABEL = "Moderate"
DEFAULT_RECOVERY_MIN = 7
DEFAULT_RECOVERY_MAX = 14
DEFAULT_URGENCY = "moderate"
DEFAULT_IMPACT = "moderate"


def _defaulted(field: str, value: Any, default: Any) -> Any:
    logger.info("Field %s failed validation (%.80r); using default %r.", field, value, default)
    return default


def _is_number(value: Any) -> bool:
    """Finite int or float; ints too large for a float do not count."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _severity(value: Any) -> int:
    if _is_number(value) and 0 <= value <= 100:
        return _round_half_up(value)
    return _defaulted("severity", value, DEFAULT_SEVERITY)


def _recovery_days(field: str, value: Any, default: int) -> int:
    if _is_number(value) and value > 0:
        days = _round_half_up(value)
        if days >= 1:
            return days
    return _defaulted(field, value, default)


def _urgency(value: Any) -> str:
    if isinstance(value, str) and value in URGENCY_LEVELS:
        return value
    return _defaulted("urgency", value, DEFAULT_URGENCY)


def _precautions(value: Any) -> list[PrecautionGroup]:
    if not isinstance(value, list):
        return _defaulted("precautions", value, [])
    groups: list[PrecautionGroup] = []
    for entry in value:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("title"), str):
            logger.info("Dropping malformed precaution group: %.120r", entry)
            continue
        raw_items = entry.get("items")
        items = [item for item in raw_items if isinstance(item, str)] if isinstance(raw_items, list) else []
        groups.append(PrecautionGroup(title=entry["title"], items=items))
    return groups


def _risk_factors(value: Any) -> list[RiskFactor]:
    if not isinstance(value, list):
        return _defaulted("riskFactors", value, [])
    factors: list[RiskFactor] = []
    for entry in value:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("label"), str):
            logger.info("Dropping malformed risk factor: %.120r", entry)
            continue
        impact = entry.get("impact")
        if not (isinstance(impact, str) and impact in IMPACT_LEVELS):
            impact = _defaulted("riskFactors.impact", impact, DEFAULT_IMPACT)
        description = entry.get("description")
        factors.append(
            RiskFactor(
                label=entry["label"],
                impact=impact,
                description=description if isinstance(description, str) else "",
            )
        )
    return factors


def sanitize(raw: Any) -> AssessmentResult:
    """Build a valid AssessmentResult from ``raw``. Never raises.

    A non-mapping ``raw`` is treated as an empty object, so every field takes
    its default. ``used_fallback`` is always ``False`` on this path.
    """
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    wound_type = data.get("woundType")
    if not (isinstance(wound_type, str) and wound_type.strip()):
        wound_type = _defaulted("woundType", wound_type, DEFAULT_WOUND_TYPE)

    severity_label = data.get("severityLabel")
    if not isinstance(severity_label, str):
        severity_label = _defaulted("severityLabel", severity_label, DEFAULT_SEVERITY_LABEL)

    ai_summary = data.get("aiSummary")
    if not isinstance(ai_summary, str):
        ai_summary = _defaulted("aiSummary", ai_summary, "")

    recovery_min = _recovery_days("recoveryMin", data.get("recoveryMin"), DEFAULT_RECOVERY_MIN)
    recovery_max = _recovery_days("recoveryMax", data.get("recoveryMax"), DEFAULT_RECOVERY_MAX)
    if recovery_max < recovery_min:
        logger.info(
            "recoveryMax %d below recoveryMin %d; raising to match.", recovery_max, recovery_min,
        )
        recovery_max = recovery_min

    return AssessmentResult(
        wound_type=wound_type,
        severity=_severity(data.get("severity")),
        severity_label=severity_label,
        recovery_min=recovery_min,
        recovery_max=recovery_max,
        hospital_recommended=bool(data.get("hospitalRecommended")),
        urgency=_urgency(data.get("urgency")),
        ai_summary=ai_summary,
        precautions=_precautions(data.get("precautions")),
        risk_factors=_risk_factors(data.get("riskFactors")),
        used_fallback=False,
    )
