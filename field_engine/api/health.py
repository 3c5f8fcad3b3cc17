from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from field_engine.core.config import settings
from field_engine.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {
        "status": "ok",
        "env": settings.APP_ENV,
        "database": db.get_bind().dialect.name,
    }
