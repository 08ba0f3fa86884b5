# home_value_service/api/v1/api.py

from fastapi import APIRouter
from home_value_service.api.v1.endpoints import health, home_values

# This is the main router for the v1 API.
api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(home_values.router)
