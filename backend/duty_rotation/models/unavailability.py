from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from duty_rotation.database import Base
import enum


class UnavailabilityStatus(str, enum.Enum):
    """Статус заявки на отсутствие"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class Unavailability(Base):
    """Период отсутствия сотрудника (отпуск, больничный, освобождение от дежурства)"""
    __tablename__ = "unavailabilities"
    
    id = Column(Integer, primary_key=True, index=True)
    person_id = Column(Integer, ForeignKey("people.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # включительно
    reason = Column(String, nullable=True)  # annual_leave, sick_leave, training, mission, ...
    status = Column(SQLEnum(UnavailabilityStatus), nullable=False, default=UnavailabilityStatus.PENDING)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    # Relationships
    person = relationship("Person", back_populates="unavailabilities")
