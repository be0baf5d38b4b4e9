import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text
from datetime import datetime

from app.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def health_check(session: Session = Depends(get_session)):
    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "database": "failed",
                "timestamp": datetime.utcnow().isoformat(),
            },
        )

    return {
        "status": "ok",
        "database": "ok",
        "timestamp": datetime.utcnow().isoformat()
    }
