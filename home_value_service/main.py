# home_value_service/main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from home_value_service.api.v1.api import api_router
from home_value_service.core.config import settings
from home_value_service.core.limiter import limiter
from home_value_service.middleware import (
    AppError,
    app_error_handler,
    database_error_handler,
    validation_error_handler,
)

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Home value service starting up...")
    if settings.STORAGE_BACKEND == "local":
        Path(settings.LOCAL_UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
        logger.info(f"Serving uploaded images from {settings.LOCAL_UPLOAD_DIR}")
    yield
    logger.info("Home value service shutting down...")


app = FastAPI(
    title="Home Value Service",
    version="1.0.0",
    description="""
        **Home value requests for the marketplace.**

        * Buyers submit an address and photos for valuation
        * Experts claim a request (first claim wins)
        * Owner and assigned expert exchange messages with read tracking

        All endpoints except health checks require a JWT via the
        `Authorization: Bearer <token>` header.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(SQLAlchemyError, database_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(api_router, prefix="/api/v1")

if settings.STORAGE_BACKEND == "local":
    # Directory may not exist yet at import time; lifespan creates it.
    app.mount(
        settings.PUBLIC_UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.LOCAL_UPLOAD_DIR, check_dir=False),
        name="uploads",
    )


@app.get("/")
def read_root():
    return {"status": "Home Value Service is running"}
