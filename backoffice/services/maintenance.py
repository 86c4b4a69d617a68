"""
Maintenance sweeps.

Batch jobs that apply the attendance rules across many records: closing
sessions nobody clocked out of, and pre-filling attendance for days that need
no clock-in. Both are safe to re-run and safe against live clock events.
"""

from datetime import date, datetime
from typing import Dict, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.core.exceptions import AppException
from backoffice.models.attendance import Attendance
from backoffice.models.employee import Employee, EmployeeRole
from backoffice.services.attendance_engine import (
    ShiftConfig,
    auto_clock_out_time,
    derive_attendance_status,
    hours_between,
)
from backoffice.services.audit import AuditService
from backoffice.services.day_status import DayStatus, DayStatusResolver
from backoffice.services.leave_service import approved_leave_for

logger = logging.getLogger(__name__)


def auto_clock_out_sweep(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Close every session left open on a day that has already ended.

    Today's open sessions are never touched. Each close is a conditional update
    on ``clock_out IS NULL``, so a clock-out racing the sweep wins or loses
    cleanly and a second run finds nothing to do.
    """
    now = now or datetime.now()
    today = now.date()

    open_records = db.query(Attendance).filter(
        Attendance.clock_in.isnot(None),
        Attendance.clock_out.is_(None),
        Attendance.date < today
    ).order_by(Attendance.date, Attendance.id).all()

    closed = 0
    for record in open_records:
        closing = auto_clock_out_time(record.date, record.clock_in)
        updated = db.query(Attendance).filter(
            Attendance.id == record.id,
            Attendance.clock_out.is_(None)
        ).update(
            {
                "clock_out": closing,
                "total_hours": hours_between(record.clock_in, closing),
                "auto_clock_out": True,
            },
            synchronize_session=False
        )
        closed += updated

    result = {"candidates": len(open_records), "closed": closed}
    AuditService(db).log_operational_event("auto_clock_out", "success", result)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    if closed:
        logger.info(f"Auto clock-out closed {closed} open session(s)", extra=result)
    return result


def auto_mark_attendance(db: Session, day: Optional[date] = None, now: Optional[datetime] = None) -> Dict[str, object]:
    """
    Insert the derived attendance status for active employees with no record on ``day``.

    For today only holidays and weekly offs are marked, since employees may
    still clock in. Once the day has elapsed, leave and absence are marked as
    well. A row inserted concurrently by a live clock-in wins; the sweep skips it.
    """
    now = now or datetime.now()
    day = day or now.date()
    if day > now.date():
        raise AppException("Cannot auto-mark attendance for a future date", error_code="FUTURE_DATE")
    elapsed = day < now.date()

    day_status, holiday = DayStatusResolver(db).resolve_with_holiday(day)
    result = {"date": day.isoformat(), "day_status": day_status.value, "marked": 0, "skipped": 0}
    if day_status == DayStatus.WORKING_DAY and not elapsed:
        return result

    employees = db.query(Employee).filter(
        Employee.is_active.is_(True),
        Employee.role == EmployeeRole.EMPLOYEE.value
    ).order_by(Employee.id).all()
    recorded = {
        row.employee_id
        for row in db.query(Attendance.employee_id).filter(Attendance.date == day).all()
    }

    for employee in employees:
        if employee.id in recorded:
            continue
        leave = approved_leave_for(db, employee.id, day)
        outcome = derive_attendance_status(
            day_status,
            approved_leave=leave,
            shift=ShiftConfig.for_employee(employee),
            holiday_type=holiday.type if holiday else "GOVT",
            now=now
        )
        record = Attendance(
            employee_id=employee.id,
            date=day,
            status=outcome.status.value,
            total_hours=outcome.total_hours,
            auto_marked=True,
            leave_id=leave.id if leave else None
        )
        try:
            with db.begin_nested():
                db.add(record)
        except IntegrityError:
            logger.info(f"Attendance for employee {employee.id} on {day} recorded concurrently; skipping")
            result["skipped"] += 1
            continue
        result["marked"] += 1

    AuditService(db).log_operational_event("auto_mark_attendance", "success", dict(result))
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Auto-marked {result['marked']} attendance record(s) for {day}", extra={"day": str(day)})
    return result
