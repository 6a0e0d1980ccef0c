import base64
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from google.genai import types

from food_analyzer.main import app
from food_analyzer.settings import settings

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF fake plate\xff\xd9"
JPEG_BASE64 = base64.b64encode(JPEG_BYTES).decode()

CHICKEN = {
    "label": "Grilled chicken breast",
    "confidence": 0.93,
    "calories": 248,
    "protein_g": 46.5,
    "carbs_g": 0.0,
    "fat_g": 5.4,
    "serving_size": "1 breast (150 g)",
}

EGG = {
    "label": "Boiled egg",
    "confidence": 0.81,
    "calories": 90,
    "protein_g": 6.3,
    "carbs_g": 0.4,
    "fat_g": 7.0,
    "serving_size": "1 large egg (50 g)",
}


def gemini_response(payload, raw=False):
    """Build the typed response generate_content returns."""
    text = payload if raw else json.dumps(payload)
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=[types.Part(text=text)]),
                finish_reason="STOP",
            )
        ],
        model_version="gemini-test",
    )


class FakeGemini:
    """Stands in for genai.Client and serves queued outcomes in order."""

    def __init__(self):
        self.outcomes = []
        self.client = MagicMock()
        self.generate = AsyncMock(side_effect=self._next)
        self.client.aio.models.generate_content = self.generate
        self.client_factory = MagicMock(return_value=self.client)

    async def _next(self, **kwargs):
        if not self.outcomes:
            raise AssertionError("unexpected Gemini call")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def respond(self, response):
        self.outcomes.append(response)

    def respond_with_items(self, items):
        self.respond(gemini_response({"items": items}))

    def fail(self, exc):
        self.outcomes.append(exc)

    def fail_transport(self, exc_type=httpx.ConnectError, message="connection refused"):
        self.fail(exc_type(message))

    @property
    def call_count(self):
        return self.generate.await_count

    def sent(self, index=0):
        return self.generate.await_args_list[index].kwargs


@pytest.fixture(autouse=True)
def gemini_settings(monkeypatch):
    """Deterministic settings regardless of the developer's .env."""
    monkeypatch.setattr(settings, "gemini_api_key", "test-key")
    monkeypatch.setattr(settings, "gemini_model", "gemini-test")
    monkeypatch.setattr(settings, "gemini_timeout_seconds", 30.0)
    monkeypatch.setattr(settings, "gemini_max_retries", 1)
    monkeypatch.setattr(settings, "gemini_relax_safety", False)


@pytest.fixture
def gemini(monkeypatch):
    fake = FakeGemini()
    monkeypatch.setattr("food_analyzer.services.nutrition_analyzer.genai.Client", fake.client_factory)
    return fake


@pytest.fixture
def client():
    return TestClient(app)
