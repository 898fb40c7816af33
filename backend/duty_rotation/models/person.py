from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from duty_rotation.database import Base
import enum


class PersonRole(str, enum.Enum):
    """Роль сотрудника в оргструктуре"""
    ADMIN = "admin"
    SECTOR_CHIEF = "sector_chief"
    SECTOR_ENGINEER = "sector_engineer"
    SERVICE_CHIEF = "service_chief"
    SERVICE_COLLABORATOR = "service_collaborator"


class Person(Base):
    """Сотрудник: площадка обязательна, сектор и служба зависят от роли"""
    __tablename__ = "people"
    
    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(SQLEnum(PersonRole), nullable=False, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    sector_id = Column(Integer, ForeignKey("sectors.id"), nullable=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True, index=True)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    # Relationships
    unavailabilities = relationship("Unavailability", back_populates="person", cascade="all, delete-orphan")
    
    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
