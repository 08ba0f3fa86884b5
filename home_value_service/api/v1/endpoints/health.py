# home_value_service/api/v1/endpoints/health.py
"""
Health check endpoints for monitoring system status.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from home_value_service.db.session import get_db
from home_value_service.middleware.error_handler import AppError, ErrorCategory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check():
    """Basic health check - API is responding."""
    return {"status": "healthy", "service": "home-value-service"}


@router.get("/db")
def database_health(db: Session = Depends(get_db)):
    """Check database connectivity."""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "component": "database"}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        raise AppError(
            "Database unhealthy", category=ErrorCategory.DATABASE, status_code=503
        )
