"""Attendance summary and details. One summary per class/date; one detail per student in it."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from tutorcenter.db.session import Base


class AttendanceSummary(Base):
    """One row per (class_id, attendance_date). Re-saving updates this row in place."""

    __tablename__ = "attendance_summaries"
    __table_args__ = (
        UniqueConstraint("class_id", "attendance_date", name="uq_attendance_summary_class_date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    attendance_date = Column(Date, nullable=False)
    # Soft reference; sessions can be regenerated without touching attendance history
    session_id = Column(Uuid(as_uuid=True), nullable=True)
    session_number = Column(Integer, nullable=True)
    total_students = Column(Integer, nullable=False, default=0)
    present_count = Column(Integer, nullable=False, default=0)
    absent_count = Column(Integer, nullable=False, default=0)
    reserved_count = Column(Integer, nullable=False, default=0)
    made_up_count = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="taken")  # taken, not-taken, holiday
    created_by = Column(Uuid(as_uuid=True), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    center_class = relationship("CenterClass", foreign_keys=[class_id])


class AttendanceDetail(Base):
    """One row per student per summary. Replaced wholesale whenever the summary is re-saved."""

    __tablename__ = "attendance_details"
    __table_args__ = (
        UniqueConstraint("summary_id", "student_id", name="uq_attendance_detail_student"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    summary_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("attendance_summaries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False)  # on-time, late, absent, reserved, made-up
    note = Column(Text, nullable=True)
    homework_completion = Column(Integer, nullable=True)  # percent
    test_name = Column(String(255), nullable=True)
    score = Column(Float, nullable=True)
    bonus_points = Column(Integer, nullable=True)
    punctuality = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    summary = relationship("AttendanceSummary", foreign_keys=[summary_id])
    student = relationship("Student", foreign_keys=[student_id])
