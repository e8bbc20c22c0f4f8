"""Gemini wrapper — wound classification prompt, request envelope, response parsing."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import requests

from app.errors import (
    EmptyContentError,
    HttpStatusError,
    MissingCredentialError,
    NetworkError,
    ResponseEnvelopeError,
    ResponseParseError,
)
from app.schemas.assessment import ImagePayload, PatientProfile

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

WOUND_CATEGORIES: list[tuple[str, str]] = [
    ("Minor Cut/Laceration", "clean skin break, low bleeding"),
    ("Deep Laceration", "wide/deep cut needing stitches"),
    ("Abrasion/Scrape", "skin scraped off, raw surface"),
    ("Burn (Minor/Moderate/Severe)", "redness, blistering, or charring"),
    ("Infected Wound", "pus, redness spreading, warmth, odour signs"),
    ("Bruise/Contusion", "discolouration without skin break"),
    ("Diabetic Ulcer", "chronic open wound, feet area"),
    ("Pressure Ulcer/Bedsore", "fixed pressure point wound"),
    ("Puncture Wound", "small deep hole"),
    ("Cellulitis", "diffuse skin redness/swelling"),
]

_OUTPUT_SCHEMA = """\
{
  "woundType": "specific wound classification based on the image",
  "severity": integer_0_to_100,
  "severityLabel": "Mild or Mild-Moderate or Moderate or Severe",
  "recoveryMin": integer_days,
  "recoveryMax": integer_days,
  "hospitalRecommended": true_or_false,
  "urgency": "low or moderate or high or critical",
  "aiSummary": "2-3 sentence clinical summary describing exactly what you see in the image and the key clinical concerns",
  "precautions": [
    {"title": "group name", "items": ["instruction 1", "instruction 2", "instruction 3"]}
  ],
  "riskFactors": [
    {"label": "factor name", "impact": "low or moderate or high", "description": "1-2 sentence explanation"}
  ]
}"""


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def build_instruction(profile: PatientProfile) -> str:
    """Build the instruction text sent alongside the wound photo.

    Pure and deterministic: the same profile always yields the same text.
    """
    parts = [
        "You are a clinical wound assessment AI. Carefully examine the wound in the image. "
        "Based on what you see AND the patient health data below, return a JSON assessment.",
        "",
        "Patient Data:",
        f"- Age: {profile.age}",
        f"- High Blood Pressure: {_yes_no(profile.has_high_bp)}",
        f"- Diabetes: {_yes_no(profile.has_diabetes)}",
        f"- Medications: {profile.medications.strip() or 'None'}",
        "",
        "IMPORTANT: Base your wound classification entirely on what is VISUALLY visible in the image. "
        "Different images must produce different results. The wound in the image determines "
        "woundType, severity, and recommendations.",
        "",
        "Return ONLY a single valid JSON object (no markdown fences, no explanation text). "
        "Use this exact structure:",
        _OUTPUT_SCHEMA,
        "",
        "Wound classification guidance (match to what you see):",
    ]
    parts.extend(f"- {name}: {signs}" for name, signs in WOUND_CATEGORIES)
    parts.extend([
        "",
        "Severity thresholds: 1-30=Mild, 31-50=Mild-Moderate, 51-70=Moderate, 71-100=Severe",
        "Adjust severity upward if patient has diabetes (+15%), high BP (+10%), or age>60 (+15%).",
        "hospitalRecommended = true if severity>60 or urgency is high/critical.",
        "Include 2-4 precaution groups and 3-5 risk factors.",
    ])
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# JSON parsing helpers
# ---------------------------------------------------------------------------

_FENCE_OPEN = re.compile(r"^```[\w-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


def strip_code_fence(text: str) -> str:
    """Remove a leading ```lang and trailing ``` wrapper, if present.

    Best-effort only: models vary their wrapping and anything beyond a plain
    outer fence is left for the JSON parser to reject.
    """
    cleaned = _FENCE_OPEN.sub("", text.strip())
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_assessment_json(text: str) -> dict[str, Any]:
    """Parse candidate text into a JSON object. Raises ResponseParseError on failure."""
    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except ValueError as exc:  # JSONDecodeError, or an over-long integer literal
        logger.warning(
            "Failed to parse assessment JSON: %s — raw text: %.300s", exc, text,
        )
        raise ResponseParseError() from exc
    if not isinstance(data, dict):
        logger.warning("Assessment JSON is a %s, not an object: %.300s", type(data).__name__, text)
        raise ResponseParseError("AI returned unexpected JSON shape")
    return data


def extract_candidate_text(envelope: Any) -> str:
    """Return the first text part of the first candidate.

    Raises ResponseEnvelopeError when there are no candidates and
    EmptyContentError when the first candidate carries no text.
    """
    candidates = envelope.get("candidates") if isinstance(envelope, dict) else None
    if not candidates or not isinstance(candidates, list):
        feedback = envelope.get("promptFeedback") if isinstance(envelope, dict) else None
        logger.error("No candidates in response. promptFeedback: %s", feedback)
        raise ResponseEnvelopeError("no response from AI (possible safety filter)")

    first = candidates[0]
    text: Any = None
    if isinstance(first, dict):
        content = first.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if isinstance(parts, list) and parts and isinstance(parts[0], dict):
            text = parts[0].get("text")
    if not isinstance(text, str) or not text:
        logger.error("Empty text in response candidate.")
        raise EmptyContentError()
    return text


# ---------------------------------------------------------------------------
# Wrapper
# ---------------------------------------------------------------------------

_SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GeminiWrapper:
    """Thin wrapper around the Gemini ``generateContent`` REST endpoint.

    Sends exactly one request per call; there is no retry loop.
    """

    def __init__(
        self,
        model_name: str,
        api_key: str,
        *,
        api_base: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        temperature: float = 0.1,
        top_p: float = 0.95,
        max_output_tokens: int = 2048,
    ) -> None:
        self.model_name = model_name
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.temperature = temperature
        self.top_p = top_p
        self.max_output_tokens = max_output_tokens

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model_name}:generateContent"

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def build_request(self, payload: ImagePayload, instruction: str) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {
                            "inline_data": {
                                "mime_type": payload.mime_type,
                                "data": payload.encoded_data,
                            },
                        },
                        {"text": instruction},
                    ],
                }
            ],
            "generationConfig": {
                "temperature": self.temperature,
                "topP": self.top_p,
                "maxOutputTokens": self.max_output_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_NONE"}
                for category in _SAFETY_CATEGORIES
            ],
        }

    def generate(self, payload: ImagePayload, instruction: str) -> str:
        """Submit image + instruction and return the first candidate's text."""
        if not self.has_credential:
            logger.error("Gemini API key is missing; no request sent.")
            raise MissingCredentialError()

        body = self.build_request(payload, instruction)
        try:
            response = requests.post(
                self.endpoint,
                json=body,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Network error calling Gemini API: %s", exc)
            raise NetworkError() from exc

        if not response.ok:
            logger.error("Gemini API HTTP %d: %.500s", response.status_code, response.text)
            raise HttpStatusError(response.status_code)

        try:
            envelope = response.json()
        except ValueError as exc:
            logger.error("Failed to parse API response as JSON: %s", exc)
            raise ResponseEnvelopeError() from exc

        logger.debug("Gemini raw response: %.500s", json.dumps(envelope))
        text = extract_candidate_text(envelope)
        logger.debug("Raw text from Gemini: %.600s", text)
        return text
