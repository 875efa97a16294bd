from tutorcenter.core.models.center_class import CenterClass
from tutorcenter.core.models.student import Student
from tutorcenter.core.models.attendance import AttendanceDetail, AttendanceSummary
from tutorcenter.core.models.class_session import ClassSession
from tutorcenter.core.models.remediation import RemediationObligation, RemediationStatusHistory
from tutorcenter.core.models.holiday import Holiday

__all__ = [
    "AttendanceDetail",
    "AttendanceSummary",
    "CenterClass",
    "ClassSession",
    "Holiday",
    "RemediationObligation",
    "RemediationStatusHistory",
    "Student",
]
