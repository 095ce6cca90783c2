"""Health check endpoints.

/health is a liveness check and never touches the database.
/health/ready additionally runs a trivial query so deploys can wait for
the database before routing traffic.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sitebuilder.api.deps import get_db
from sitebuilder.errors import ApiError, ApiErrorCode
from sitebuilder.logging import get_logger
from sitebuilder.responses import success_response

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    return success_response({"status": "ok"})


@router.get("/health/ready")
def readiness_check(db: Annotated[Session, Depends(get_db)]) -> dict:
    """Readiness check: 200 once the database answers, 503 otherwise."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("health.database_unavailable", error_type=type(e).__name__)
        raise ApiError(ApiErrorCode.E_DB_UNAVAILABLE, "Database unavailable") from e
    return success_response({"status": "ok", "database": "ok"})
