from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from marketplace.db import engine
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")

    return {"status": "ok" if db_ok else "degraded", "db": db_ok}
