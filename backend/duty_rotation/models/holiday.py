from sqlalchemy import Column, Integer, String, Date, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from duty_rotation.database import Base


class Holiday(Base):
    """Версионированная таблица праздничных дней (дата, название)"""
    __tablename__ = "holidays"
    
    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    name = Column(String, nullable=False)
    country = Column(String, nullable=False, default="MA", index=True)
    version = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    __table_args__ = (
        UniqueConstraint("date", "country", "version", name="uq_holiday_date_country_version"),
    )
