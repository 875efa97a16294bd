"""Center-wide closures. Attendance callers consult this before saving."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, String, Uuid

from tutorcenter.db.session import Base


class Holiday(Base):
    __tablename__ = "holidays"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
