import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import FoodAnalysisError, InvalidRequest, MethodNotAllowed
from .routes.analyze_food import ANALYZE_FOOD_PATH, router as analyze_food_router
from .settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="AI Food Nutrition Analyzer",
    version="0.3.0",
    description="Estimates food items and nutrition macros from a photo using Gemini Vision.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FoodAnalysisError)
async def food_analysis_error_handler(request: Request, exc: FoodAnalysisError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_body()))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405 and request.url.path == ANALYZE_FOOD_PATH:
        body = MethodNotAllowed().to_body()
    elif exc.status_code == 405:
        body = {"success": False, "error": "Method not allowed"}
    else:
        body = {"success": False, "error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = InvalidRequest(details=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.to_body())


@app.get("/health")
async def health():
    return {"status": "ok", "service": "food-analyzer"}


app.include_router(analyze_food_router)
