"""Tests for the Gemini wrapper: instruction text, envelope handling, JSON parsing."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.errors import (
    EmptyContentError,
    HttpStatusError,
    MissingCredentialError,
    NetworkError,
    ResponseEnvelopeError,
    ResponseParseError,
)
from app.models.gemini import (
    WOUND_CATEGORIES,
    GeminiWrapper,
    build_instruction,
    extract_candidate_text,
    parse_assessment_json,
    strip_code_fence,
)
from app.schemas.assessment import ImagePayload, PatientProfile

PAYLOAD = ImagePayload(mime_type="image/jpeg", encoded_data="QUJD")


def _envelope(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _response(status=200, body=None, json_error=False):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.text = json.dumps(body) if body is not None else "error body"
    if json_error:
        resp.json.side_effect = ValueError("Expecting value")
    else:
        resp.json.return_value = body
    return resp


class TestBuildInstruction:

    def test_embeds_patient_data(self, elderly_profile):
        text = build_instruction(elderly_profile)
        assert "- Age: 70" in text
        assert "- High Blood Pressure: Yes" in text
        assert "- Diabetes: Yes" in text
        assert "- Medications: None" in text

    def test_medications_text_included(self):
        text = build_instruction(PatientProfile(age=40, medications="  metformin  "))
        assert "- Medications: metformin" in text
        assert "- Diabetes: No" in text

    def test_is_deterministic(self, elderly_profile):
        assert build_instruction(elderly_profile) == build_instruction(elderly_profile)

    def test_lists_wound_taxonomy(self, young_profile):
        text = build_instruction(young_profile)
        for name, _ in WOUND_CATEGORIES:
            assert name in text
        for expected in ("Cellulitis", "Pressure Ulcer", "Puncture Wound", "Bruise"):
            assert expected in text

    def test_states_schema_and_rules(self, young_profile):
        text = build_instruction(young_profile)
        for field in ("woundType", "severity", "severityLabel", "recoveryMin", "recoveryMax",
                      "hospitalRecommended", "urgency", "aiSummary", "precautions", "riskFactors"):
            assert f'"{field}"' in text
        assert "1-30=Mild, 31-50=Mild-Moderate, 51-70=Moderate, 71-100=Severe" in text
        assert "hospitalRecommended = true if severity>60 or urgency is high/critical" in text
        assert "no markdown fences" in text


class TestJsonParsing:

    def test_fenced_and_plain_parse_identically(self):
        body = '{"woundType": "Abrasion", "severity": 25}'
        fenced = f"```json\n{body}\n```"
        assert parse_assessment_json(fenced) == parse_assessment_json(body)

    @pytest.mark.parametrize("wrapped", [
        '```\n{"a": 1}\n```',
        '```JSON {"a": 1} ```',
        '  ```json\n{"a": 1}\n```  \n',
        '{"a": 1}',
    ])
    def test_strip_code_fence_variants(self, wrapped):
        assert json.loads(strip_code_fence(wrapped)) == {"a": 1}

    def test_non_json_raises(self):
        with pytest.raises(ResponseParseError) as exc_info:
            parse_assessment_json("I cannot assess this image.")
        assert exc_info.value.reason == "AI returned non-JSON response"

    def test_non_object_json_raises(self):
        with pytest.raises(ResponseParseError):
            parse_assessment_json("[1, 2, 3]")

    def test_overlong_integer_literal_raises_parse_error(self):
        with pytest.raises(ResponseParseError) as exc_info:
            parse_assessment_json('{"severity": ' + "9" * 5000 + "}")
        assert exc_info.value.reason == "AI returned non-JSON response"


class TestExtractCandidateText:

    def test_first_candidate_first_part(self):
        envelope = {"candidates": [
            {"content": {"parts": [{"text": "one"}, {"text": "two"}]}},
            {"content": {"parts": [{"text": "three"}]}},
        ]}
        assert extract_candidate_text(envelope) == "one"

    @pytest.mark.parametrize("envelope", [
        {},
        {"candidates": []},
        {"promptFeedback": {"blockReason": "SAFETY"}},
        [],
    ])
    def test_no_candidates(self, envelope):
        with pytest.raises(ResponseEnvelopeError) as exc_info:
            extract_candidate_text(envelope)
        assert "no response from AI" in exc_info.value.reason

    @pytest.mark.parametrize("candidate", [
        {},
        {"content": {}},
        {"content": {"parts": []}},
        {"content": {"parts": [{"text": ""}]}},
        {"content": {"parts": [{"inlineData": {}}]}},
    ])
    def test_empty_text(self, candidate):
        with pytest.raises(EmptyContentError):
            extract_candidate_text({"candidates": [candidate]})


class TestGeminiWrapper:

    def _wrapper(self, api_key="test-key"):
        return GeminiWrapper("gemini-test", api_key, api_base="https://example.test/v1beta/")

    def test_request_body(self):
        body = self._wrapper().build_request(PAYLOAD, "instruction")

        parts = body["contents"][0]["parts"]
        assert parts[0] == {"inline_data": {"mime_type": "image/jpeg", "data": "QUJD"}}
        assert parts[1] == {"text": "instruction"}
        assert body["generationConfig"] == {"temperature": 0.1, "topP": 0.95, "maxOutputTokens": 2048}
        assert len(body["safetySettings"]) == 4
        assert {s["threshold"] for s in body["safetySettings"]} == {"BLOCK_NONE"}

    @patch("app.models.gemini.requests.post")
    def test_generate_returns_text(self, mock_post):
        mock_post.return_value = _response(body=_envelope('{"severity": 30}'))

        text = self._wrapper().generate(PAYLOAD, "instruction")

        assert text == '{"severity": 30}'
        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        assert args[0] == "https://example.test/v1beta/models/gemini-test:generateContent"
        assert kwargs["headers"] == {"x-goog-api-key": "test-key"}
        assert "test-key" not in args[0]
        assert kwargs["timeout"] == 60.0

    @pytest.mark.parametrize("api_key", ["", "   "])
    @patch("app.models.gemini.requests.post")
    def test_missing_credential_sends_nothing(self, mock_post, api_key):
        with pytest.raises(MissingCredentialError) as exc_info:
            self._wrapper(api_key).generate(PAYLOAD, "instruction")
        assert isinstance(exc_info.value, NetworkError)
        mock_post.assert_not_called()

    @pytest.mark.parametrize("exc", [
        requests.ConnectionError("unreachable"),
        requests.Timeout("timed out"),
    ])
    @patch("app.models.gemini.requests.post")
    def test_network_failure(self, mock_post, exc):
        mock_post.side_effect = exc
        with pytest.raises(NetworkError) as exc_info:
            self._wrapper().generate(PAYLOAD, "instruction")
        assert exc_info.value.reason.startswith("network error")

    @patch("app.models.gemini.requests.post")
    def test_http_error_status(self, mock_post):
        mock_post.return_value = _response(status=429)
        with pytest.raises(HttpStatusError) as exc_info:
            self._wrapper().generate(PAYLOAD, "instruction")
        assert exc_info.value.status_code == 429
        assert exc_info.value.reason == "API error 429"

    @patch("app.models.gemini.requests.post")
    def test_unparseable_body(self, mock_post):
        mock_post.return_value = _response(json_error=True)
        with pytest.raises(ResponseEnvelopeError) as exc_info:
            self._wrapper().generate(PAYLOAD, "instruction")
        assert exc_info.value.reason == "invalid API response"

    @patch("app.models.gemini.requests.post")
    def test_safety_block(self, mock_post):
        mock_post.return_value = _response(body={"promptFeedback": {"blockReason": "SAFETY"}})
        with pytest.raises(ResponseEnvelopeError):
            self._wrapper().generate(PAYLOAD, "instruction")
