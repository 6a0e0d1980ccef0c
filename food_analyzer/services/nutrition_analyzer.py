import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

from ..errors import (
    FoodAnalysisError,
    InternalFailure,
    InvalidNutritionData,
    InvalidRequest,
    MalformedUpstreamResponse,
    UpstreamRejected,
    UpstreamUnavailable,
)
from ..models.food_analysis_schema import (
    AnalysisMetadata,
    AnalyzeFoodRequest,
    AnalyzeFoodResponse,
    NutritionData,
)
from ..settings import settings
from .consistency import check_consistency
from .nutrition_schema import NUTRITION_RESPONSE_SCHEMA

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 0.60

PROMPT = f"""
You are a food recognition and nutrition estimation engine used by a mobile nutrition app.

Analyze the photo and follow these rules:
- Identify only food items that are clearly visible. Never guess hidden ingredients.
- Give each item a confidence score between 0 and 1.
- Omit any item with confidence below {MIN_CONFIDENCE:.2f}.
- Estimate calories, protein_g, carbs_g and fat_g for the visible serving using general
  nutrition knowledge and visual portion cues: plate and utensil size, hands, packaging,
  and comparison with standard reference portions.
- Keep calories consistent with the macros (protein 4 kcal/g, carbs 4 kcal/g, fat 9 kcal/g).
- Describe each serving in serving_size with an explicit weight or volume,
  e.g. "1 cup (240 ml)" or "1 breast (150 g)".
- Order items by visual prominence: largest or most central first.
- If no food is visible, return an empty items array.
- Return ONLY valid JSON. No markdown, no code fences, no explanations.

Format:
{{
  "items": [
    {{
      "label": "Grilled chicken breast",
      "confidence": 0.92,
      "calories": 248,
      "protein_g": 46.5,
      "carbs_g": 0.0,
      "fat_g": 5.4,
      "serving_size": "1 breast (150 g)"
    }}
  ]
}}
""".strip()

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

DEFAULT_MIME_TYPE = "image/jpeg"


class NutritionAnalyzerService:
    @staticmethod
    def _get_client() -> genai.Client:
        if not settings.gemini_api_key:
            raise InternalFailure("GEMINI_API_KEY is not configured")

        try:
            return genai.Client(
                api_key=settings.gemini_api_key,
                # HttpOptions.timeout is in milliseconds
                http_options=types.HttpOptions(timeout=int(settings.gemini_timeout_seconds * 1000)),
            )
        except Exception as exc:
            logger.exception("Gemini client init failed: %s", exc)
            raise InternalFailure("Failed to initialize Gemini client") from exc

    @staticmethod
    def _decode_image(payload: AnalyzeFoodRequest) -> tuple[bytes, str]:
        image = (payload.base64Image or "").strip()
        mime_type = DEFAULT_MIME_TYPE

        # accept data URLs as produced by browsers and mobile pickers
        if image.startswith("data:") and "," in image:
            header, image = image.split(",", 1)
            declared = header[len("data:"):].split(";", 1)[0].strip().lower()
            if declared:
                if not declared.startswith("image/"):
                    raise InvalidRequest(f"Unsupported data URL type '{declared}'")
                mime_type = declared
        image = "".join(image.split())

        if not image:
            raise InvalidRequest()

        try:
            data = base64.b64decode(image, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidRequest("base64Image is not valid base64")

        return data, mime_type

    @staticmethod
    def _build_config() -> types.GenerateContentConfig:
        safety_settings = None
        if settings.gemini_relax_safety:
            safety_settings = [
                types.SafetySetting(category=category, threshold="BLOCK_NONE") for category in SAFETY_CATEGORIES
            ]

        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=NUTRITION_RESPONSE_SCHEMA,
            temperature=settings.gemini_temperature,
            top_p=settings.gemini_top_p,
            top_k=settings.gemini_top_k,
            safety_settings=safety_settings,
        )

    @classmethod
    async def _generate(cls, image: bytes, mime_type: str) -> types.GenerateContentResponse:
        client = cls._get_client()
        contents = [PROMPT, types.Part.from_bytes(data=image, mime_type=mime_type)]
        config = cls._build_config()

        attempts = settings.gemini_max_retries + 1
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                return await client.aio.models.generate_content(
                    model=settings.gemini_model,
                    contents=contents,
                    config=config,
                )
            except genai_errors.APIError as exc:
                logger.error("Gemini rejected the request (%s): %s", exc.code, exc.message)
                raise UpstreamRejected(exc.code, exc.message)
            except httpx.TransportError as exc:
                last_error = exc
                logger.warning("Gemini request attempt %d/%d failed: %r", attempt, attempts, exc)

        logger.error("Giving up on Gemini after %d attempts", attempts)
        raise UpstreamUnavailable(details=str(last_error))

    @staticmethod
    def _extract_text(response: types.GenerateContentResponse) -> str:
        try:
            text = response.candidates[0].content.parts[0].text
        except (AttributeError, IndexError, TypeError):
            logger.exception("Gemini response has no text output: %s", response)
            feedback = None
            if getattr(response, "prompt_feedback", None) is not None:
                feedback = response.prompt_feedback.model_dump(mode="json", exclude_none=True)
            raise MalformedUpstreamResponse("Gemini response did not contain text output", details=feedback)

        if not isinstance(text, str):
            logger.error("Gemini response text is missing: %s", response)
            raise MalformedUpstreamResponse("Gemini response did not contain text output")
        return text

    @staticmethod
    def _clean_json(text: str) -> str:
        cleaned = text.strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.replace("```json", "")
            cleaned = cleaned.replace("```", "").strip()
        return cleaned

    @staticmethod
    def _parse_response(raw_text: str) -> Any:
        attempts = [raw_text, NutritionAnalyzerService._clean_json(raw_text)]
        last_error: Exception | None = None
        for attempt in attempts:
            try:
                return json.loads(attempt)
            except json.JSONDecodeError as exc:
                last_error = exc
        logger.error("Gemini returned invalid JSON: %s\nRAW:\n%s", last_error, raw_text)
        raise MalformedUpstreamResponse("Gemini returned invalid JSON", details=str(last_error))

    @staticmethod
    def _map_to_data(parsed: Any) -> NutritionData:
        if not isinstance(parsed, dict) or not isinstance(parsed.get("items"), list):
            logger.error("Gemini JSON has no 'items' array: %s", parsed)
            raise InvalidNutritionData("Gemini response is missing the 'items' array")

        try:
            return NutritionData.model_validate(parsed)
        except ValidationError as exc:
            logger.exception("Food item validation failed: %s", exc)
            raise InvalidNutritionData(details=exc.errors(include_url=False, include_context=False))

    @classmethod
    async def _analyze(cls, payload: AnalyzeFoodRequest) -> AnalyzeFoodResponse:
        image, mime_type = cls._decode_image(payload)

        response = await cls._generate(image, mime_type)

        raw_text = cls._extract_text(response)
        parsed = cls._parse_response(raw_text)
        data = cls._map_to_data(parsed)

        mismatches = check_consistency(data.items)

        logger.info(
            "Gemini detected %d food item(s) with %s, %d calorie mismatch(es): %s",
            len(data.items),
            settings.gemini_model,
            len(mismatches),
            ", ".join(warning.label for warning in mismatches) or "none",
        )
        return AnalyzeFoodResponse(
            data=data,
            metadata=AnalysisMetadata(
                model=settings.gemini_model,
                timestamp=datetime.now(timezone.utc).isoformat(),
                items_detected=len(data.items),
            ),
        )

    @classmethod
    async def analyze(cls, payload: AnalyzeFoodRequest) -> AnalyzeFoodResponse:
        try:
            return await cls._analyze(payload)
        except FoodAnalysisError:
            raise
        except Exception as exc:
            logger.exception("Food analysis failed unexpectedly: %s", exc)
            raise InternalFailure(details=str(exc)) from exc
