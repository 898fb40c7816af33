from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from duty_rotation.database import Base


class RotationQueue(Base):
    """Очередь ротации для пары (сектор, служба); служба пустая для ротации инженеров"""
    __tablename__ = "rotation_queues"
    
    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False)
    sector_id = Column(Integer, ForeignKey("sectors.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    # Relationships
    entries = relationship(
        "RotationQueueEntry",
        back_populates="queue",
        cascade="all, delete-orphan",
        order_by="RotationQueueEntry.position",
    )
    
    __table_args__ = (
        UniqueConstraint("sector_id", "service_id", name="uq_rotation_queue_scope"),
    )


class RotationQueueEntry(Base):
    """Позиция сотрудника в очереди ротации"""
    __tablename__ = "rotation_queue_entries"
    
    id = Column(Integer, primary_key=True, index=True)
    queue_id = Column(Integer, ForeignKey("rotation_queues.id", ondelete="CASCADE"), nullable=False)
    person_id = Column(Integer, ForeignKey("people.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    
    # Relationships
    queue = relationship("RotationQueue", back_populates="entries")
    
    __table_args__ = (
        UniqueConstraint("queue_id", "person_id", name="uq_rotation_queue_person"),
    )
