from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from duty_rotation.config import settings
from duty_rotation.database import engine, Base
from duty_rotation.api.routes import api_router
import duty_rotation.models  # noqa: F401
import logging

# Настройка логирования
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Подготовка схемы БД и сводка конфигурации ротации при запуске"""
    Base.metadata.create_all(bind=engine)
    logger.info(f"Запуск приложения {settings.app_name} (debug={settings.debug})")
    logger.info(
        f"Праздничный календарь: {settings.holiday_country}, версия {settings.holiday_table_version}; "
        f"минимум дежурных по умолчанию: {settings.default_min_personnel}; "
        f"блокировка области: {settings.scope_lock_timeout_seconds} с"
    )
    yield
    engine.dispose()
    logger.info("Остановка приложения, соединения с БД закрыты")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    version="1.0.0",
    lifespan=lifespan
)

# Настройка CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins if isinstance(settings.cors_origins, list) else [settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
def root():
    """Корневой endpoint"""
    return {
        "message": "Duty Rotation API",
        "version": "1.0.0",
        "docs": "/docs",
        "holiday_calendar": f"{settings.holiday_country}:{settings.holiday_table_version}"
    }
