"""Classes offered by the center. Owned by the class registry; the engine only reads them."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, Text, Uuid

from tutorcenter.db.session import Base


class CenterClass(Base):
    """Class master (e.g. "IELTS 6.5 - K12"). Model named CenterClass to avoid Python 'class' keyword."""

    __tablename__ = "classes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    # Free-text weekly schedule, e.g. "Thứ 2, 4, 6 (18h-19h30)"
    schedule = Column(Text, nullable=True)
    room = Column(String(100), nullable=True)
    teacher_name = Column(String(255), nullable=True)
    total_sessions = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
