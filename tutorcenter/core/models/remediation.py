"""Make-up obligations raised from absences, with an append-only status history."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from tutorcenter.db.session import Base


SYSTEM_ACTOR = "system"


class RemediationObligation(Base):
    __tablename__ = "remediation_obligations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    absence_date = Column(Date, nullable=False)
    kind = Column(String(20), nullable=False, default="absence")  # absence, struggling
    status = Column(String(20), nullable=False, default="pending")  # pending, scheduled, done
    attendance_detail_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("attendance_details.id", ondelete="SET NULL"),
        nullable=True,
    )
    scheduled_date = Column(Date, nullable=True)
    scheduled_time = Column(String(11), nullable=True)
    tutor_name = Column(String(255), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", foreign_keys=[student_id])


class RemediationStatusHistory(Base):
    """One row per obligation status transition. Rows are never updated."""

    __tablename__ = "remediation_status_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    obligation_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("remediation_obligations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(String(20), nullable=False)
    changed_by = Column(String(100), nullable=False, default=SYSTEM_ACTOR)
    reason = Column(Text, nullable=True)
    changed_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    obligation = relationship("RemediationObligation", backref="status_history", foreign_keys=[obligation_id])
