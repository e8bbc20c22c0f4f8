"""Failure taxonomy for the assessment pipeline.

Every error carries a short human-readable ``reason``. The agent folds that
reason into the fallback result's summary, so callers never see these raised.
"""

from __future__ import annotations


class AssessmentError(Exception):
    """Base class for failures that route an assessment to the fallback scorer."""

    default_reason = "assessment error"

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class ImageProcessingError(AssessmentError):
    default_reason = "image processing error"


class NetworkError(AssessmentError):
    default_reason = "network error — check internet connection"


class MissingCredentialError(NetworkError):
    default_reason = "network error — API key not configured"


class HttpStatusError(AssessmentError):
    def __init__(self, status_code: int, reason: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(reason or f"API error {status_code}")


class ResponseEnvelopeError(AssessmentError):
    default_reason = "invalid API response"


class EmptyContentError(AssessmentError):
    default_reason = "empty AI response"


class ResponseParseError(AssessmentError):
    default_reason = "AI returned non-JSON response"
