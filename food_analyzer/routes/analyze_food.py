from fastapi import APIRouter

from ..models.food_analysis_schema import AnalyzeFoodRequest, AnalyzeFoodResponse, ErrorResponse
from ..services.nutrition_analyzer import NutritionAnalyzerService

ANALYZE_FOOD_PATH = "/api/analyze-food"

router = APIRouter(tags=["analysis"])


@router.post(
    ANALYZE_FOOD_PATH,
    response_model=AnalyzeFoodResponse,
    responses={
        400: {"model": ErrorResponse},
        405: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def analyze_food(payload: AnalyzeFoodRequest) -> AnalyzeFoodResponse:
    return await NutritionAnalyzerService.analyze(payload)
