from fastapi import APIRouter

from stock_insight.api.v1.endpoints.analysis import router as analysis_router
from stock_insight.api.v1.endpoints.health import router as health_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(analysis_router, tags=["stock-analysis"])
