from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from duty_rotation.config import settings
import jwt
import logging

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Создать JWT токен; sub - идентификатор сотрудника"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Проверить токен и вернуть payload или None"""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError as e:
        logger.debug(f"Отклонен токен: {e}")
        return None
