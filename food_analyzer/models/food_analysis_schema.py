from typing import Any, List, Optional

from pydantic import BaseModel, Field


class AnalyzeFoodRequest(BaseModel):
    base64Image: Optional[str] = Field(
        default=None, description="Base64-encoded JPEG photo, with or without a data: URL prefix"
    )


class FoodItem(BaseModel):
    label: str
    # the 0.60 floor is asked of the model, not enforced here
    confidence: float = Field(..., ge=0.0, le=1.0)
    calories: float = Field(..., ge=0.0)
    protein_g: float = Field(..., ge=0.0)
    carbs_g: float = Field(..., ge=0.0)
    fat_g: float = Field(..., ge=0.0)
    serving_size: str = Field(..., description="Human-readable serving with weight or volume, e.g. '150 g'")


class NutritionData(BaseModel):
    items: List[FoodItem]


class AnalysisMetadata(BaseModel):
    model: str
    timestamp: str = Field(..., description="ISO-8601 completion time (UTC)")
    items_detected: int


class AnalyzeFoodResponse(BaseModel):
    success: bool = True
    data: NutritionData
    metadata: AnalysisMetadata


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[Any] = None


class ConsistencyWarning(BaseModel):
    label: str
    declared_calories: float
    derived_calories: float
    difference: float
