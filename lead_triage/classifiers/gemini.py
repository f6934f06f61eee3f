"""
Gemini AI classifier implementations.
"""

import json

from google import genai
from google.genai import types

from lead_triage.config import settings
from lead_triage.core.logging import get_logger
from lead_triage.core.models import RawItem, TriageVerdict, ExtractionResult
from lead_triage.classifiers.base import BaseTriageClassifier, BaseExtractionClassifier
from lead_triage.classifiers.schemas import TriageResponse, ExtractionResponse
from lead_triage.classifiers.prompts import triage as triage_prompts
from lead_triage.classifiers.prompts import extraction as extraction_prompts

log = get_logger(__name__)


def build_client(
    api_key: str | None = None,
    timeout_seconds: float | None = None,
) -> genai.Client:
    """
    Create a Gemini client with a per-request timeout.

    Raises:
        ValueError: if no API key is configured
    """
    api_key = api_key or settings.gemini_api_key
    if not api_key:
        raise ValueError("GEMINI_API_KEY is required")

    timeout = timeout_seconds or settings.classifier_timeout_seconds
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(timeout * 1000)),
    )


def parse_response(response_text: str | None) -> dict:
    """
    Parse JSON from a Gemini response.

    Raises:
        ValueError: if the text is empty or not a JSON object
    """
    text = (response_text or "").strip()

    # Remove markdown code blocks if present
    if text.startswith("```"):
        lines = text.split("\n")
        lines = lines[1:]  # Remove opening ```
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]  # Remove closing ```
        text = "\n".join(lines)

    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected JSON object, got {type(data).__name__}")
    return data


class GeminiTriageClassifier(BaseTriageClassifier):
    """Gemini-based triage: is this email a reservation lead?"""

    # Older prompts wrapped the verdict in a function-style envelope
    ENVELOPE = "triage_email_lead"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: genai.Client | None = None,
    ):
        self.model_name = model or settings.triage_model
        self.client = client or build_client(api_key)

    def classify(self, item: RawItem) -> TriageVerdict:
        """
        Classify an email using Gemini AI.

        Args:
            item: Email to triage

        Returns:
            TriageVerdict; the FAILURE verdict if anything goes wrong
        """
        system_prompt = triage_prompts.SYSTEM_PROMPT.format(
            email_json=json.dumps(item.to_dict(), indent=2),
        )

        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=triage_prompts.USER_PROMPT,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    response_mime_type="application/json",
                    response_schema=TriageResponse,
                ),
            )
            data = parse_response(response.text)
            data = data.get(self.ENVELOPE, data)
            parsed = TriageResponse.model_validate(data)
            verdict = TriageVerdict.from_dict(parsed.model_dump(mode="json"))

            log.info(
                "email_triaged",
                email_id=item.email_id,
                is_lead=verdict.is_reservation_lead,
                intent=verdict.initial_intent_type.value,
            )
            return verdict

        except Exception as e:
            log.error("triage_classifier_error", email_id=item.email_id, error=str(e))
            return TriageVerdict.failure()


class GeminiExtractionClassifier(BaseExtractionClassifier):
    """Gemini-based deep extraction of reservation details."""

    ENVELOPE = "extract_reservation_details"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: genai.Client | None = None,
    ):
        self.model_name = model or settings.extractor_model
        self.client = client or build_client(api_key)

    def classify(self, text: str) -> ExtractionResult:
        """
        Extract reservation details from an email body.

        Args:
            text: Raw email body text

        Returns:
            ExtractionResult; the failure sentinel if anything goes wrong
        """
        system_prompt = extraction_prompts.SYSTEM_PROMPT.format(raw_text=text)

        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=extraction_prompts.USER_PROMPT,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    response_mime_type="application/json",
                    response_schema=ExtractionResponse,
                ),
            )
            data = parse_response(response.text)
            data = data.get(self.ENVELOPE, data)
            parsed = ExtractionResponse.model_validate(data)
            result = ExtractionResult.from_dict(parsed.model_dump(mode="json"))

            log.info(
                "email_extracted",
                intent=result.intent.value,
                confidence=result.confidence_score,
            )
            return result

        except Exception as e:
            log.error("extraction_classifier_error", error=str(e))
            return ExtractionResult.failure()
