from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from duty_rotation.database import Base
import enum


class ShiftKind(str, enum.Enum):
    """Тип дежурства"""
    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    DAY = "day"
    NIGHT = "night"


class DutyAssignment(Base):
    """Назначение на дежурство: блок дат в рамках одной области ротации"""
    __tablename__ = "duty_assignments"
    
    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False)
    sector_id = Column(Integer, ForeignKey("sectors.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True, index=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    shift_kind = Column(SQLEnum(ShiftKind), nullable=False, default=ShiftKind.WEEKEND)
    holiday_name = Column(String, nullable=True)
    required_personnel = Column(Integer, nullable=False, default=2)
    understaffed = Column(Boolean, default=False)
    generated_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    # Relationships
    duty_people = relationship(
        "DutyAssignmentPerson",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="DutyAssignmentPerson.id",
    )
    
    __table_args__ = (
        UniqueConstraint("sector_id", "service_id", "start_date", "shift_kind", name="uq_duty_assignment_scope_date"),
    )
    
    @property
    def person_ids(self):
        return [dp.person_id for dp in self.duty_people]


class DutyAssignmentPerson(Base):
    """Промежуточная таблица между назначением и сотрудниками"""
    __tablename__ = "duty_assignment_people"
    
    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("duty_assignments.id", ondelete="CASCADE"), nullable=False)
    person_id = Column(Integer, ForeignKey("people.id"), nullable=False, index=True)
    replaces_person_id = Column(Integer, ForeignKey("people.id"), nullable=True)  # кого заменяет
    note = Column(String, nullable=True)  # причина замены
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    # Relationships
    assignment = relationship("DutyAssignment", back_populates="duty_people")
    
    __table_args__ = (
        UniqueConstraint("assignment_id", "person_id", name="uq_duty_assignment_person"),
    )
