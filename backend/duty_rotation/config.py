from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Union
import secrets


class Settings(BaseSettings):
    """Конфигурация приложения из переменных окружения"""
    
    # Приложение
    app_name: str = "Duty Rotation"
    debug: bool = False
    log_level: str = "INFO"
    
    # База данных
    database_url: str = "sqlite:///./data/duty_rotation.db"
    
    # CORS
    cors_origins: Union[str, List[str]] = "http://localhost:3000,http://localhost:5173"
    
    # Авторизация
    secret_key: str = secrets.token_urlsafe(32)  # Генерируется случайно, если не указан в .env
    access_token_expire_minutes: int = 1440  # 24 часа
    
    # Ротация
    default_min_personnel: int = 2
    max_generation_days: int = 366
    scope_lock_timeout_seconds: float = 10.0
    balance_tolerance: float = 0.2  # ±20% от средней нагрузки
    include_service_chief_in_rotation: bool = False
    
    # Праздничный календарь
    holiday_country: str = "MA"
    holiday_table_version: str = "2026.1"
    
    # Статусы отсутствий, при которых сотрудник не назначается
    blocking_unavailability_statuses: Union[str, List[str]] = "approved,pending"
    
    @field_validator('cors_origins', 'blocking_unavailability_statuses')
    @classmethod
    def parse_comma_separated(cls, v):
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
