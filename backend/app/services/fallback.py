"""Rule-based scoring used when no trustworthy model answer is available.

``score`` is the failure-path estimator: a pure function of the patient
profile and the failure reason. ``score_demo`` is the offline demonstration
mode; it draws a wound archetype at random and must never be presented as a
real image assessment.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from app.schemas.assessment import AssessmentResult, PatientProfile, PrecautionGroup, RiskFactor

FALLBACK_WOUND_TYPE = "Wound (Image Analysis Unavailable)"
BASE_SEVERITY = 40
BASE_RECOVERY_MIN = 5
BASE_RECOVERY_MAX = 14
MAX_SEVERITY = 98

GENERAL_PRECAUTIONS: tuple[PrecautionGroup, ...] = (
    PrecautionGroup(
        title="General Wound Care",
        items=[
            "Wash hands thoroughly before touching the wound",
            "Clean the wound gently with clean water or saline solution",
            "Apply a sterile dressing and change it daily",
            "Keep the wound area elevated when possible to reduce swelling",
        ],
    ),
    PrecautionGroup(
        title="Warning Signs — Seek Care Immediately",
        items=[
            "Increasing redness, warmth, or swelling around the wound",
            "Pus or unusual discharge from the wound",
            "Fever above 38°C (100.4°F)",
            "Red streaks spreading from the wound area",
        ],
    ),
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Shared derivations
# ---------------------------------------------------------------------------

def risk_multiplier(profile: PatientProfile) -> float:
    """1.0 plus the age, diabetes and blood-pressure loadings."""
    if profile.age > 60:
        age_factor = 0.25
    elif profile.age > 45:
        age_factor = 0.1
    else:
        age_factor = 0.0
    diabetes_factor = 0.3 if profile.has_diabetes else 0.0
    bp_factor = 0.15 if profile.has_high_bp else 0.0
    return 1 + age_factor + diabetes_factor + bp_factor


def adjusted_severity(base: int, multiplier: float) -> int:
    return min(MAX_SEVERITY, _round_half_up(base * multiplier))


def urgency_for(severity: int, default: str = "low") -> str:
    if severity > 85:
        return "critical"
    if severity > 65:
        return "high"
    if severity > 40:
        return "moderate"
    return default


def severity_label_for(severity: int) -> str:
    if severity > 80:
        return "Severe"
    if severity > 60:
        return "Moderate"
    if severity > 40:
        return "Mild-Moderate"
    return "Mild"


def profile_risk_factors(profile: PatientProfile) -> list[RiskFactor]:
    """Age, blood pressure and diabetes factors, plus medications when given."""
    if profile.age > 60:
        age = RiskFactor(
            label="Age (>60)",
            impact="high",
            description="Advanced age significantly slows wound healing and increases infection risk.",
        )
    elif profile.age > 45:
        age = RiskFactor(
            label="Age (45-60)",
            impact="moderate",
            description="Middle age may moderately affect healing speed.",
        )
    else:
        age = RiskFactor(
            label="Age",
            impact="low",
            description="Younger age supports faster wound healing.",
        )
    factors = [age]

    if profile.has_high_bp:
        factors.append(RiskFactor(
            label="Blood Pressure",
            impact="high",
            description="High blood pressure impairs circulation and delays wound healing.",
        ))
    else:
        factors.append(RiskFactor(
            label="Blood Pressure",
            impact="low",
            description="Normal blood pressure supports healthy circulation for healing.",
        ))

    if profile.has_diabetes:
        factors.append(RiskFactor(
            label="Diabetes",
            impact="high",
            description="Diabetes significantly increases infection risk and slows tissue repair.",
        ))
    else:
        factors.append(RiskFactor(
            label="Diabetes",
            impact="low",
            description="No diabetes — lower risk of complications.",
        ))

    if profile.medications.strip():
        factors.append(RiskFactor(
            label="Medications",
            impact="moderate",
            description=f"Current medications ({profile.medications}) may interact with wound healing.",
        ))
    return factors


# ---------------------------------------------------------------------------
# Failure-path estimator
# ---------------------------------------------------------------------------

def fallback_summary(reason: str) -> str:
    return (
        f"AI image analysis could not complete ({reason}). Results below are estimated "
        "from your health profile only. For accurate wound analysis, please ensure a "
        "stable internet connection and try again."
    )


def score(profile: PatientProfile, reason: str) -> AssessmentResult:
    """Deterministic estimate from the health profile alone."""
    multiplier = risk_multiplier(profile)
    severity = adjusted_severity(BASE_SEVERITY, multiplier)
    return AssessmentResult(
        wound_type=FALLBACK_WOUND_TYPE,
        severity=severity,
        severity_label=severity_label_for(severity),
        recovery_min=_round_half_up(BASE_RECOVERY_MIN * multiplier),
        recovery_max=_round_half_up(BASE_RECOVERY_MAX * multiplier),
        hospital_recommended=severity > 60 or (profile.has_diabetes and severity > 40),
        urgency=urgency_for(severity),
        ai_summary=fallback_summary(reason),
        precautions=list(GENERAL_PRECAUTIONS),
        risk_factors=profile_risk_factors(profile),
        used_fallback=True,
    )


# ---------------------------------------------------------------------------
# Demonstration mode
# ---------------------------------------------------------------------------

DEMO_SUMMARY = (
    "Demo mode: no image analysis was performed. This result is a randomly selected "
    "example wound adjusted for your health profile and must not be used for care decisions."
)


@dataclass(frozen=True)
class WoundArchetype:
    wound_type: str
    base_severity: int
    recovery_min: int
    recovery_max: int
    hospital: bool
    urgency: str
    precautions: tuple[PrecautionGroup, ...]


def _group(title: str, *items: str) -> PrecautionGroup:
    return PrecautionGroup(title=title, items=list(items))


DEMO_ARCHETYPES: tuple[WoundArchetype, ...] = (
    WoundArchetype(
        "Moderate Burn", 68, 12, 16, True, "high",
        (
            _group(
                "Immediate Care",
                "Cool the burn under running water for at least 20 minutes",
                "Do not apply ice directly to the burn",
                "Remove jewelry or tight clothing near the burn area",
                "Cover with a sterile, non-adhesive bandage",
            ),
            _group(
                "Ongoing Treatment",
                "Apply prescribed burn ointment as directed",
                "Change dressings daily or as instructed",
                "Keep the area elevated when possible",
                "Take pain medication as recommended",
            ),
            _group(
                "Warning Signs",
                "Increased redness, swelling, or pus",
                "Fever above 100.4°F (38°C)",
                "Persistent or worsening pain",
                "Foul smell from the wound",
            ),
        ),
    ),
    WoundArchetype(
        "Deep Laceration", 74, 10, 21, True, "high",
        (
            _group(
                "Immediate Care",
                "Apply firm, direct pressure with a clean cloth",
                "Do not remove embedded objects",
                "Keep the wound elevated above heart level",
                "Seek medical attention for stitches if deeper than 1/4 inch",
            ),
            _group(
                "Wound Management",
                "Keep stitches or wound closure strips dry for 24-48 hours",
                "Clean gently with mild soap after 48 hours",
                "Apply antibiotic ointment as prescribed",
                "Do not pick at scabs or stitches",
            ),
            _group(
                "Warning Signs",
                "Excessive bleeding that won't stop",
                "Numbness or tingling beyond the wound",
                "Red streaks extending from the wound",
                "Signs of infection (warmth, swelling, pus)",
            ),
        ),
    ),
    WoundArchetype(
        "Minor Cut", 22, 3, 7, False, "low",
        (
            _group(
                "Home Care",
                "Wash hands before treating the wound",
                "Clean the cut with clean water",
                "Apply gentle pressure to stop bleeding",
                "Apply an adhesive bandage or sterile gauze",
            ),
            _group(
                "Healing Tips",
                "Change the bandage daily",
                "Keep the wound clean and dry",
                "Apply over-the-counter antibiotic ointment",
                "Avoid picking at the scab",
            ),
        ),
    ),
    WoundArchetype(
        "Infected Wound", 78, 14, 28, True, "critical",
        (
            _group(
                "Urgent Steps",
                "Seek medical attention immediately",
                "Do not attempt to drain the infection yourself",
                "Keep the area clean and covered",
                "Complete the full course of prescribed antibiotics",
            ),
            _group(
                "Monitoring",
                "Track the size of redness with a marker",
                "Monitor body temperature regularly",
                "Watch for spreading redness or red streaks",
                "Note any increase in discharge or odor",
            ),
            _group(
                "Prevention",
                "Always clean wounds promptly",
                "Use sterile bandages and change regularly",
                "Keep tetanus vaccination up to date",
                "Maintain good hand hygiene",
            ),
        ),
    ),
    WoundArchetype(
        "Abrasion", 30, 5, 10, False, "low",
        (
            _group(
                "Cleaning",
                "Rinse thoroughly with clean water",
                "Gently remove debris with tweezers if needed",
                "Pat dry with a clean cloth",
                "Apply antiseptic solution",
            ),
            _group(
                "Protection",
                "Cover with a non-stick sterile bandage",
                "Apply petroleum jelly to keep moist",
                "Change dressing daily or when soiled",
                "Avoid exposing to dirt or contaminants",
            ),
        ),
    ),
    WoundArchetype(
        "Diabetic Ulcer", 82, 30, 60, True, "critical",
        (
            _group(
                "Medical Care",
                "Consult a wound care specialist immediately",
                "Offload pressure from the affected area",
                "Maintain strict blood sugar control",
                "Follow prescribed wound care regimen exactly",
            ),
            _group(
                "Daily Management",
                "Inspect feet daily for changes",
                "Keep the ulcer clean and properly dressed",
                "Never walk barefoot",
                "Wear properly fitted diabetic footwear",
            ),
            _group(
                "Lifestyle",
                "Monitor blood glucose levels frequently",
                "Maintain a balanced diet",
                "Avoid smoking as it impairs healing",
                "Keep follow-up appointments",
            ),
        ),
    ),
)


def score_archetype(profile: PatientProfile, archetype: WoundArchetype) -> AssessmentResult:
    """Adjust one archetype for the patient's risk profile."""
    multiplier = risk_multiplier(profile)
    severity = adjusted_severity(archetype.base_severity, multiplier)
    return AssessmentResult(
        wound_type=archetype.wound_type,
        severity=severity,
        severity_label=severity_label_for(severity),
        recovery_min=_round_half_up(archetype.recovery_min * multiplier),
        recovery_max=_round_half_up(archetype.recovery_max * multiplier),
        hospital_recommended=(
            archetype.hospital or severity > 60 or (profile.has_diabetes and severity > 40)
        ),
        urgency=urgency_for(severity, default=archetype.urgency),
        ai_summary=DEMO_SUMMARY,
        precautions=list(archetype.precautions),
        risk_factors=profile_risk_factors(profile),
        used_fallback=True,
    )


def score_demo(profile: PatientProfile, rng: random.Random | None = None) -> AssessmentResult:
    """Demo-only result from a randomly drawn archetype.

    Pass a seeded ``random.Random`` to pin the archetype.
    """
    rng = rng or random.Random()
    archetype = rng.choice(DEMO_ARCHETYPES)
    return score_archetype(profile, archetype)
