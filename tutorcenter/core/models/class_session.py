"""Concrete dated meetings of a class. Regular rows come from the schedule expander; make-ups are appended."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import relationship

from tutorcenter.core.enums import SessionStatus
from tutorcenter.db.session import Base


STATUS_SCHEDULED = SessionStatus.SCHEDULED.value
STATUS_COMPLETED = SessionStatus.COMPLETED.value
STATUS_MAKEUP = SessionStatus.MAKEUP.value
STATUS_CANCELLED = SessionStatus.CANCELLED.value


class ClassSession(Base):
    """One row per meeting. At most one regular (non make-up) row per class and date."""

    __tablename__ = "class_sessions"
    __table_args__ = (
        Index(
            "uq_class_sessions_regular_date",
            "class_id",
            "session_date",
            unique=True,
            postgresql_where=text("NOT is_makeup"),
            sqlite_where=text("is_makeup = 0"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    session_number = Column(Integer, nullable=False)
    session_date = Column(Date, nullable=False)
    day_of_week = Column(String(20), nullable=False)  # "Thứ 2" .. "Chủ nhật"
    time_window = Column(String(11), nullable=True)  # HH:MM-HH:MM
    room = Column(String(100), nullable=True)
    teacher_name = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_SCHEDULED)
    is_makeup = Column(Boolean, nullable=False, default=False)
    attendance_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("attendance_summaries.id", ondelete="SET NULL"),
        nullable=True,
    )
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    center_class = relationship("CenterClass", foreign_keys=[class_id])
