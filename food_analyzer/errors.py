from typing import Any

from fastapi import HTTPException


class FoodAnalysisError(HTTPException):
    """Base class for failures rendered as ``{success: false, error, details}``."""

    status_code = 500
    error = "Food analysis failed"

    def __init__(self, error: str | None = None, details: Any = None) -> None:
        self.error = error or self.error
        self.details = details
        super().__init__(status_code=self.status_code, detail=self.error)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class MethodNotAllowed(FoodAnalysisError):
    status_code = 405
    error = "Only POST allowed"


class InvalidRequest(FoodAnalysisError):
    status_code = 400
    error = "base64Image missing"


class UpstreamRejected(FoodAnalysisError):
    error = "Gemini API request failed"

    def __init__(self, upstream_status: int, message: str | None = None) -> None:
        self.upstream_status = upstream_status
        super().__init__(
            error=f"Gemini API request failed with status {upstream_status}",
            details=message,
        )


class UpstreamUnavailable(FoodAnalysisError):
    error = "Failed to contact Gemini API"


class MalformedUpstreamResponse(FoodAnalysisError):
    error = "Malformed Gemini API response"


class InvalidNutritionData(FoodAnalysisError):
    error = "Invalid nutrition data returned by Gemini"


class InternalFailure(FoodAnalysisError):
    error = "Internal server error"
