"""API routes — REST endpoints for the WoundWise assessment backend."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from app.config import settings
from app.schemas.assessment import AssessmentRequest, AssessmentResult, PatientProfile

logger = logging.getLogger(__name__)
router = APIRouter()

# ---------------------------------------------------------------------------
# Global agent reference — set from main.py at startup
# ---------------------------------------------------------------------------
_agent: Any = None


def set_agent(agent: Any) -> None:
    global _agent
    _agent = agent


def get_agent() -> Any:
    if _agent is None:
        raise HTTPException(status_code=503, detail="Assessment agent not initialized.")
    return _agent


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_upload(file: UploadFile) -> bytes:
    """Read an uploaded image, enforcing the configured size limit."""
    data = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"Image exceeds {settings.MAX_UPLOAD_BYTES} bytes.",
        )
    return data


def _max_encoded_length() -> int:
    """Base64 length of a MAX_UPLOAD_BYTES image, plus room for a data-URI header."""
    return settings.MAX_UPLOAD_BYTES * 4 // 3 + 256


def _run(source: str | bytes, profile: PatientProfile) -> AssessmentResult:
    agent = get_agent()
    if settings.DEMO_MODE:
        return agent.demo(profile)
    return agent.assess(source, profile)


# ---------------------------------------------------------------------------
# Assessment endpoints
# ---------------------------------------------------------------------------

@router.post("/assessments", response_model=AssessmentResult)
def create_assessment(
    image: UploadFile = File(...),
    age: int = Form(..., gt=0),
    has_high_bp: bool = Form(False),
    has_diabetes: bool = Form(False),
    medications: str = Form(""),
) -> AssessmentResult:
    profile = PatientProfile(
        age=age,
        has_high_bp=has_high_bp,
        has_diabetes=has_diabetes,
        medications=medications,
    )
    data = _read_upload(image)
    logger.info("Received upload %s (%d bytes).", image.filename or "upload", len(data))
    return _run(data, profile)


@router.post("/assessments/json", response_model=AssessmentResult)
def create_assessment_json(body: AssessmentRequest) -> AssessmentResult:
    if not body.image.strip():
        raise HTTPException(status_code=400, detail="Image data is empty.")
    if len(body.image) > _max_encoded_length():
        raise HTTPException(
            status_code=413,
            detail=f"Image exceeds {settings.MAX_UPLOAD_BYTES} bytes.",
        )
    return _run(body.image, body.patient)


@router.post("/assessments/demo", response_model=AssessmentResult)
def create_demo_assessment(profile: PatientProfile) -> AssessmentResult:
    return get_agent().demo(profile)
