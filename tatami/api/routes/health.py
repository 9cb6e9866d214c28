from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tatami.core.config import get_settings
from tatami.core.database import get_db

router = APIRouter(tags=["health"])


def _check_database(db: Session) -> bool:
    try:
        db.scalar(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return False


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    settings = get_settings()
    database_ok = _check_database(db)
    health_status = {
        "status": "healthy" if database_ok else "degraded",
        "timestamp": datetime.now(UTC).isoformat(),
        "services": {"database": "healthy" if database_ok else "unhealthy"},
        "environment": settings.environment,
    }
    return JSONResponse(content=health_status, status_code=200 if database_ok else 503)


@router.get("/health/live")
def liveness():
    return {"status": "alive", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/health/ready")
def readiness(db: Session = Depends(get_db)):
    if not _check_database(db):
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "timestamp": datetime.now(UTC).isoformat(),
                "services": {"database": "not_ready"},
            },
        )
    return {"status": "ready", "timestamp": datetime.now(UTC).isoformat(), "services": {"database": "ready"}}
