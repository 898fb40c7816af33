from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session
from duty_rotation.config import settings
from duty_rotation.database import get_db
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/utils", tags=["utils"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """Проверка доступности сервиса и базы данных"""
    database_ok = True
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"База данных недоступна: {e}")
        database_ok = False
    
    return {
        "status": "ok" if database_ok else "degraded",
        "app": settings.app_name,
        "database": database_ok,
        "holiday_table_version": settings.holiday_table_version
    }
