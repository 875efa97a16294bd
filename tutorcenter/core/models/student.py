"""Students and their session balance. Balance fields are written only by the reconciler."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from tutorcenter.db.session import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    student_code = Column(String(50), nullable=True, index=True)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    # active, debt, fully-consumed, reserved, dropped, trial
    status = Column(String(20), nullable=False, default="active")

    sessions_registered = Column(Integer, nullable=False, default=0)
    sessions_attended = Column(Integer, nullable=False, default=0)
    sessions_remaining = Column(Integer, nullable=False, default=0)
    debt_sessions = Column(Integer, nullable=True)
    debt_start_date = Column(DateTime(timezone=True), nullable=True)
    # Attendance summary ids already folded into sessions_attended (oldest first, bounded)
    processed_attendance_ids = Column(JSON, nullable=False, default=list)
    last_attendance_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    center_class = relationship("CenterClass", foreign_keys=[class_id])
