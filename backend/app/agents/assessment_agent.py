"""AssessmentAgent — runs one wound assessment end to end.

Steps:
1. Prepare the image (resize + re-encode)
2. Compose the instruction text
3. Single request to the classification endpoint
4. Strip markdown fencing and parse JSON
5. Sanitize into an AssessmentResult

Any failure along the way is converted into a profile-only fallback result;
``assess`` never raises.
"""

from __future__ import annotations

import logging
import random
from typing import Callable

from app.errors import AssessmentError, ImageProcessingError
from app.models.gemini import GeminiWrapper, build_instruction, parse_assessment_json
from app.schemas.assessment import AssessmentResult, ImagePayload, PatientProfile
from app.services import fallback, image
from app.services.sanitizer import sanitize

logger = logging.getLogger(__name__)


class AssessmentAgent:
    """Stateless orchestrator; safe to share across requests."""

    def __init__(
        self,
        gemini: GeminiWrapper,
        *,
        preprocess: Callable[[str | bytes], ImagePayload] = image.prepare,
    ) -> None:
        self.gemini = gemini
        self.preprocess = preprocess

    def assess(self, source: str | bytes, profile: PatientProfile) -> AssessmentResult:
        logger.info("Starting assessment (age=%d, diabetes=%s, high_bp=%s).",
                    profile.age, profile.has_diabetes, profile.has_high_bp)
        try:
            return self._run(source, profile)
        except AssessmentError as exc:
            return self._fallback(profile, exc.reason)
        except Exception:
            logger.exception("Unexpected failure during assessment.")
            return self._fallback(profile, "unexpected error")

    def _run(self, source: str | bytes, profile: PatientProfile) -> AssessmentResult:
        # Step 1: image
        logger.info("Step 1: Preparing image.")
        try:
            payload = self.preprocess(source)
        except ImageProcessingError:
            raise
        except Exception as exc:
            logger.error("Image preparation failed: %s", exc)
            raise ImageProcessingError() from exc

        # Step 2: instruction
        logger.info("Step 2: Composing instruction.")
        instruction = build_instruction(profile)

        # Step 3: classification request
        logger.info("Step 3: Requesting classification from %s.", self.gemini.model_name)
        text = self.gemini.generate(payload, instruction)

        # Step 4: parse
        logger.info("Step 4: Parsing model output.")
        parsed = parse_assessment_json(text)

        # Step 5: sanitize
        logger.info("Step 5: Sanitizing model output.")
        result = sanitize(parsed)
        logger.info(
            "Assessment complete — wound=%s, severity=%d, urgency=%s",
            result.wound_type, result.severity, result.urgency,
        )
        return result

    def _fallback(self, profile: PatientProfile, reason: str) -> AssessmentResult:
        logger.warning("Falling back to profile-only estimate: %s", reason)
        return fallback.score(profile, reason)

    def demo(self, profile: PatientProfile, rng: random.Random | None = None) -> AssessmentResult:
        """Offline demonstration result; no image analysis takes place."""
        logger.info("Demo assessment requested; no model call is made.")
        return fallback.score_demo(profile, rng)
