from enum import Enum


class AttendanceMark(str, Enum):
    UNSET = ""
    ON_TIME = "on-time"
    LATE = "late"
    ABSENT = "absent"
    RESERVED = "reserved"
    MADE_UP = "made-up"


# Marks that consume a purchased session
PRESENT_MARKS = (AttendanceMark.ON_TIME.value, AttendanceMark.LATE.value)


class SessionStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    MAKEUP = "makeup"
    CANCELLED = "cancelled"


class SummaryStatus(str, Enum):
    TAKEN = "taken"
    NOT_TAKEN = "not-taken"
    HOLIDAY = "holiday"


class StudentStatus(str, Enum):
    ACTIVE = "active"
    DEBT = "debt"
    FULLY_CONSUMED = "fully-consumed"
    RESERVED = "reserved"
    DROPPED = "dropped"
    TRIAL = "trial"


# Paused or terminal states the reconciler never overrides
FROZEN_STUDENT_STATUSES = (
    StudentStatus.RESERVED.value,
    StudentStatus.DROPPED.value,
    StudentStatus.TRIAL.value,
)


class RemediationKind(str, Enum):
    ABSENCE = "absence"
    STRUGGLING = "struggling"


class RemediationStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    DONE = "done"


class Punctuality(str, Enum):
    ON_TIME = "on-time"
    LATE = "late"
