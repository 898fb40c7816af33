from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from duty_rotation.config import settings
import os

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(database_url: str) -> Engine:
    """
    Движок БД для ротации

    Генерация идет в пуле потоков, поэтому SQLite открывается без
    check_same_thread. Память SQLite живет в одном соединении (StaticPool).
    Для серверных БД соединения проверяются перед выдачей из пула.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    connect_args = {"check_same_thread": False}
    if database_url in IN_MEMORY_URLS:
        return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)

    # Создаем директорию для файла базы данных, если её нет
    db_dir = os.path.dirname(database_url.replace("sqlite:///", ""))
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir, exist_ok=True)
    return create_engine(database_url, connect_args=connect_args)


engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency для получения сессии базы данных"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
