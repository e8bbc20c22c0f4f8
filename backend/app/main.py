"""FastAPI application entry point for WoundWise."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.agents.assessment_agent import AssessmentAgent
from app.api.routes import router, set_agent
from app.config import settings
from app.models.gemini import GeminiWrapper
from app.schemas.assessment import HealthResponse

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Agent construction
# ---------------------------------------------------------------------------

_gemini: GeminiWrapper | None = None


def build_agent() -> AssessmentAgent:
    """Create the classification client from settings and wrap it in the agent."""
    global _gemini

    _gemini = GeminiWrapper(
        settings.GEMINI_MODEL,
        settings.GEMINI_API_KEY,
        api_base=settings.GEMINI_API_BASE,
        timeout=settings.REQUEST_TIMEOUT,
        temperature=settings.TEMPERATURE,
        top_p=settings.TOP_P,
        max_output_tokens=settings.MAX_OUTPUT_TOKENS,
    )
    if not _gemini.has_credential:
        logger.warning(
            "WOUNDWISE_GEMINI_API_KEY is not set; every assessment will use the fallback estimate."
        )
    logger.info("Assessment agent ready (model=%s, demo=%s).", settings.GEMINI_MODEL, settings.DEMO_MODE)
    return AssessmentAgent(_gemini)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    logger.info("Starting WoundWise API.")
    set_agent(build_agent())

    yield

    # Shutdown
    logger.info("Shutting down WoundWise API.")
    set_agent(None)


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="WoundWise API",
    version="0.1.0",
    description="Preliminary wound triage from a photo and a short health questionnaire.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api/v1")


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        model=settings.GEMINI_MODEL,
        credential_configured=bool(settings.GEMINI_API_KEY.strip()),
        demo_mode=settings.DEMO_MODE,
    )
