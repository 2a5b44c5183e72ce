from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leadcrm.models.db import get_db

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health_root(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        database = "unavailable"
    return {"status": "ok", "database": database, "ts": datetime.now(timezone.utc).isoformat()}
