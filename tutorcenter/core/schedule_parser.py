"""
Weekly schedule parsing.
Turns the free-text schedule typed on a class ("Thứ 2, 4, 6 (18h-19h30)", "T3, T5 18:00-19:30",
"CN 9h-11h") into a set of weekday indices and an optional time window.

Weekday indices are Sunday-based: 0=Sunday .. 6=Saturday. The center numbers weekdays
the Vietnamese way, so the tokens 2..7 mean Monday..Saturday and "CN" / "Chủ nhật" is Sunday.

Parsing is lenient: nothing here raises. Unrecognised text yields an empty weekday set,
which callers read as "no constraint".
"""

import re
import unicodedata
from datetime import date, time
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field


DAY_NAMES = ["Chủ nhật", "Thứ 2", "Thứ 3", "Thứ 4", "Thứ 5", "Thứ 6", "Thứ 7"]
DAY_ABBREVIATIONS = ["CN", "T2", "T3", "T4", "T5", "T6", "T7"]

# Matched against lower-cased text with diacritics stripped ("thứ hai" -> "thu hai")
_VIETNAMESE_NAMES = {
    "chu nhat": 0,
    "thu hai": 1,
    "thu ba": 2,
    "thu tu": 3,
    "thu nam": 4,
    "thu sau": 5,
    "thu bay": 6,
}
_ENGLISH_NAMES = {
    "sunday": 0, "sun": 0,
    "monday": 1, "mon": 1,
    "tuesday": 2, "tues": 2, "tue": 2,
    "wednesday": 3, "wed": 3,
    "thursday": 4, "thurs": 4, "thur": 4,
    "friday": 5, "fri": 5,
    "saturday": 6, "sat": 6,
}

_NAME_RE = re.compile(
    r"\b(" + "|".join(sorted(list(_VIETNAMESE_NAMES) + list(_ENGLISH_NAMES), key=len, reverse=True)) + r")\b"
)
_SUNDAY_TOKEN_RE = re.compile(r"\bcn\b")
_T_TOKEN_RE = re.compile(r"\bt\.?\s?([2-7])\b")
_DIGIT_TOKEN_RE = re.compile(r"\b([2-7])\b")
_TIME_RE = re.compile(
    r"(\d{1,2})\s*[h:]\s*(\d{2})?\s*[-–~]\s*(\d{1,2})\s*(?:[h:]\s*(\d{2})?)?"
)
# A lone clock time ("7:30", "18h"). Not followed by a letter, so "2 hoc" stays a weekday token
_CLOCK_RE = re.compile(r"\b\d{1,2}\s*(?:h\s*\d{0,2}|:\s*\d{2})(?![a-z])")


class ScheduleSpec(BaseModel):
    """Normalized weekly schedule: Sunday-based weekday indices plus an optional time window."""

    weekdays: List[int] = Field(default_factory=list)
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    class Config:
        frozen = True

    @property
    def is_empty(self) -> bool:
        return not self.weekdays

    @property
    def time_window(self) -> Optional[str]:
        """HH:MM-HH:MM, or None when the text carried no recognizable time."""
        if self.start_time is None or self.end_time is None:
            return None
        return f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"

    def includes(self, day: date) -> bool:
        return sunday_based_weekday(day) in self.weekdays


def sunday_based_weekday(day: date) -> int:
    """date.weekday() is Monday=0; schedules use Sunday=0."""
    return (day.weekday() + 1) % 7


def weekday_label(index: int) -> str:
    return DAY_NAMES[index % 7]


def format_weekdays(weekdays: Iterable[int]) -> str:
    """Canonical short form: "T2, T4, T6" with Sunday ("CN") last."""
    ordered = sorted(set(weekdays), key=lambda d: 7 if d == 0 else d)
    return ", ".join(DAY_ABBREVIATIONS[d] for d in ordered)


def _fold(text: str) -> str:
    """Lower-case and strip Vietnamese diacritics so accented and plain spellings match alike."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return stripped.replace("đ", "d")


def _parse_time_window(folded: str):
    match = _TIME_RE.search(folded)
    if not match:
        return None, None, None
    start_h, start_m, end_h, end_m = match.groups()
    start_h, end_h = int(start_h), int(end_h)
    start_m, end_m = int(start_m or 0), int(end_m or 0)
    if start_h > 23 or end_h > 23 or start_m > 59 or end_m > 59:
        return None, None, None
    return time(start_h, start_m), time(end_h, end_m), match.span()


def parse_schedule(text: Optional[str]) -> ScheduleSpec:
    """
    Parse a free-text weekly schedule.

    Examples:
        "Thứ 2, 4, 6 (18h-19h30)" -> weekdays [1, 3, 5], 18:00-19:30
        "T3, T5 18:00-19:30"      -> weekdays [2, 4], 18:00-19:30
        "Chủ nhật 9h-11h"         -> weekdays [0], 09:00-11:00
        "to be decided"           -> weekdays [], no time
    """
    if not text or not str(text).strip():
        return ScheduleSpec()

    folded = _fold(str(text))
    start, end, span = _parse_time_window(folded)
    if span is not None:
        # Keep time digits ("7h30-9h") from being read as weekday tokens
        folded = folded[: span[0]] + " " + folded[span[1]:]
    folded = _CLOCK_RE.sub(" ", folded)

    days = set()
    for match in _NAME_RE.finditer(folded):
        token = match.group(1)
        days.add(_VIETNAMESE_NAMES.get(token, _ENGLISH_NAMES.get(token)))
    if _SUNDAY_TOKEN_RE.search(folded):
        days.add(0)
    for match in _T_TOKEN_RE.finditer(folded):
        days.add(int(match.group(1)) - 1)
    for match in _DIGIT_TOKEN_RE.finditer(folded):
        days.add(int(match.group(1)) - 1)

    return ScheduleSpec(weekdays=sorted(days), start_time=start, end_time=end)
