"""
Attendance status derivation.

Pure functions: given the day's status, clock events, any approved leave and
the shift, decide the attendance status and the hours worked.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from backoffice.core.config import settings
from backoffice.models.attendance import AttendanceStatus
from backoffice.models.holiday import HolidayType
from backoffice.services.day_status import DayStatus


@dataclass(frozen=True)
class ShiftConfig:
    start: time
    hours: float
    late_threshold_minutes: int = 0
    grace_period_minutes: int = 0

    @classmethod
    def from_settings(cls, start: Optional[time] = None, hours: Optional[float] = None) -> "ShiftConfig":
        return cls(
            start=start or settings.shift.start,
            hours=hours if hours is not None else settings.shift.hours,
            late_threshold_minutes=settings.shift.late_threshold_minutes,
            grace_period_minutes=settings.shift.grace_period_minutes,
        )

    @classmethod
    def for_employee(cls, employee) -> "ShiftConfig":
        return cls.from_settings(employee.shift_start, employee.shift_hours)

    def late_after(self, clock_in: datetime) -> datetime:
        allowed = self.late_threshold_minutes + self.grace_period_minutes
        return datetime.combine(clock_in.date(), self.start, tzinfo=clock_in.tzinfo) + timedelta(minutes=allowed)


@dataclass(frozen=True)
class AttendanceOutcome:
    status: AttendanceStatus
    total_hours: float


def hours_between(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds() / 3600)


def is_late(clock_in: datetime, shift: ShiftConfig) -> bool:
    return clock_in > shift.late_after(clock_in)


def derive_attendance_status(
    day_status: DayStatus,
    clock_in: Optional[datetime] = None,
    clock_out: Optional[datetime] = None,
    approved_leave=None,
    shift: Optional[ShiftConfig] = None,
    holiday_type: HolidayType = HolidayType.GOVT,
    now: Optional[datetime] = None,
) -> AttendanceOutcome:
    """
    Rules in priority order:

    1. holiday      -> Govt Holiday / Off Day, no hours
    2. weekly off   -> Weekly Off, no hours
    3. approved leave covering the day -> Leave, no hours
    4. clocked in   -> Late or Present, hours up to clock-out (or ``now`` for an open session)
    5. otherwise    -> Absent
    """
    if day_status == DayStatus.HOLIDAY:
        if HolidayType(holiday_type) == HolidayType.COMPANY:
            return AttendanceOutcome(AttendanceStatus.OFF_DAY, 0.0)
        return AttendanceOutcome(AttendanceStatus.GOVT_HOLIDAY, 0.0)

    if day_status == DayStatus.WEEKLY_OFF:
        return AttendanceOutcome(AttendanceStatus.WEEKLY_OFF, 0.0)

    if approved_leave is not None:
        return AttendanceOutcome(AttendanceStatus.LEAVE, 0.0)

    if clock_in is not None:
        shift = shift or ShiftConfig.from_settings()
        end = clock_out or now or datetime.now(tz=clock_in.tzinfo)
        status = AttendanceStatus.LATE if is_late(clock_in, shift) else AttendanceStatus.PRESENT
        return AttendanceOutcome(status, hours_between(clock_in, end))

    return AttendanceOutcome(AttendanceStatus.ABSENT, 0.0)


def auto_clock_out_time(record_date, clock_in: datetime, at: Optional[time] = None) -> datetime:
    """Closing timestamp for a session left open past its day; never before the clock-in."""
    at = at or settings.auto_clock_out.clock_out_at
    closing = datetime.combine(record_date, at, tzinfo=clock_in.tzinfo)
    return max(closing, clock_in)
