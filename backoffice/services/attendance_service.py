"""
Attendance Service Layer

Clock-in/clock-out, admin corrections and summaries. Status decisions are
delegated to the attendance engine; day classification to the resolver.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.core.exceptions import AppException, ConflictError, InvalidDateRange, NotFoundError
from backoffice.models.attendance import Attendance, AttendanceStatus
from backoffice.models.employee import Employee
from backoffice.services.attendance_engine import ShiftConfig, derive_attendance_status, hours_between
from backoffice.services.audit import AuditService
from backoffice.services.day_status import DayStatusResolver
from backoffice.services.leave_service import approved_leave_for

logger = logging.getLogger(__name__)


def _get_active_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if not employee or not employee.is_active:
        raise NotFoundError("Employee", employee_id)
    return employee


def _find_record(db: Session, employee_id: int, day: date) -> Optional[Attendance]:
    return db.query(Attendance).filter(
        Attendance.employee_id == employee_id,
        Attendance.date == day
    ).first()


def clock_in(db: Session, employee_id: int, now: Optional[datetime] = None) -> Attendance:
    now = now or datetime.now()
    today = now.date()
    employee = _get_active_employee(db, employee_id)

    record = _find_record(db, employee_id, today)
    if record and record.clock_in:
        raise AppException("Already clocked in today", error_code="ALREADY_CLOCKED_IN")

    day_status, holiday = DayStatusResolver(db).resolve_with_holiday(today)
    leave = approved_leave_for(db, employee_id, today)
    outcome = derive_attendance_status(
        day_status,
        clock_in=now,
        clock_out=None,
        approved_leave=leave,
        shift=ShiftConfig.for_employee(employee),
        holiday_type=holiday.type if holiday else "GOVT",
        now=now
    )

    if record is None:
        record = Attendance(employee_id=employee_id, date=today)
        try:
            with db.begin_nested():
                record.clock_in = now
                record.status = outcome.status.value
                record.total_hours = 0.0
                record.leave_id = leave.id if leave else None
                db.add(record)
        except IntegrityError:
            # A sweep or a parallel request inserted the row first
            raise ConflictError("Attendance for today was recorded concurrently; retry clock-in")
    else:
        # Row pre-filled by a sweep (e.g. holiday auto-mark)
        record.clock_in = now
        record.status = outcome.status.value
        record.auto_marked = False
        record.leave_id = leave.id if leave else None

    try:
        db.commit()
        db.refresh(record)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Employee {employee_id} clocked in ({record.status})")
    return record


def clock_out(db: Session, employee_id: int, now: Optional[datetime] = None) -> Attendance:
    now = now or datetime.now()
    today = now.date()
    employee = _get_active_employee(db, employee_id)

    record = _find_record(db, employee_id, today)
    if not record or not record.clock_in:
        raise AppException("Clock in first", error_code="NOT_CLOCKED_IN")
    if record.clock_out:
        raise AppException("Already clocked out today", error_code="ALREADY_CLOCKED_OUT")

    day_status, holiday = DayStatusResolver(db).resolve_with_holiday(today)
    leave = approved_leave_for(db, employee_id, today)
    outcome = derive_attendance_status(
        day_status,
        clock_in=record.clock_in,
        clock_out=now,
        approved_leave=leave,
        shift=ShiftConfig.for_employee(employee),
        holiday_type=holiday.type if holiday else "GOVT",
        now=now
    )

    # Only close the session if nothing else closed it in the meantime
    updated = db.query(Attendance).filter(
        Attendance.id == record.id,
        Attendance.clock_out.is_(None)
    ).update(
        {"clock_out": now, "total_hours": outcome.total_hours},
        synchronize_session=False
    )
    if updated == 0:
        db.rollback()
        raise ConflictError("Attendance session was already closed")

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(record)
    logger.info(f"Employee {employee_id} clocked out after {record.total_hours:.2f}h")
    return record


def correct_attendance(
    db: Session,
    attendance_id: int,
    corrected_by: Optional[int] = None,
    clock_in_at: Optional[datetime] = None,
    clock_out_at: Optional[datetime] = None,
    status: Optional[AttendanceStatus] = None
) -> Attendance:
    """
    Admin correction. Hours are recomputed from the corrected times; an explicit
    status wins over the derived one.
    """
    record = db.get(Attendance, attendance_id)
    if not record:
        raise NotFoundError("Attendance", attendance_id)

    before_state = _attendance_state(record)

    if clock_in_at is not None:
        record.clock_in = clock_in_at
    if clock_out_at is not None:
        record.clock_out = clock_out_at
    if record.clock_in and record.clock_out:
        if record.clock_out < record.clock_in:
            raise InvalidDateRange(record.clock_in, record.clock_out, message="Clock-out cannot be before clock-in")
        record.total_hours = hours_between(record.clock_in, record.clock_out)

    if status is not None:
        record.status = AttendanceStatus(status).value
    else:
        employee = db.get(Employee, record.employee_id)
        day_status, holiday = DayStatusResolver(db).resolve_with_holiday(record.date)
        outcome = derive_attendance_status(
            day_status,
            clock_in=record.clock_in,
            clock_out=record.clock_out,
            approved_leave=approved_leave_for(db, record.employee_id, record.date),
            shift=ShiftConfig.for_employee(employee),
            holiday_type=holiday.type if holiday else "GOVT"
        )
        record.status = outcome.status.value
        if record.clock_out is not None or record.clock_in is None:
            record.total_hours = outcome.total_hours

    record.corrected_by_admin = True
    record.corrected_by = corrected_by
    record.correction_date = datetime.now()

    AuditService.log(
        db,
        action="correct_attendance",
        entity_type="attendance",
        entity_id=record.id,
        actor_id=corrected_by,
        details={"employee_id": record.employee_id, "date": str(record.date)},
        before_state=before_state,
        after_state=_attendance_state(record)
    )

    try:
        db.commit()
        db.refresh(record)
    except Exception:
        db.rollback()
        raise
    return record


def list_attendance(db: Session, employee_id: int, start: date, end: date) -> List[Attendance]:
    if end < start:
        raise InvalidDateRange(start, end)
    return db.query(Attendance).filter(
        Attendance.employee_id == employee_id,
        Attendance.date >= start,
        Attendance.date <= end
    ).order_by(Attendance.date).all()


def attendance_summary(db: Session, employee_id: int, start: date, end: date) -> Dict[str, Any]:
    """
    Day counts per status, hours worked and overtime beyond the employee's shift.
    """
    employee = db.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee", employee_id)
    shift = ShiftConfig.for_employee(employee)
    records = list_attendance(db, employee_id, start, end)

    counts = {s.value: 0 for s in AttendanceStatus}
    total_hours = 0.0
    overtime_hours = 0.0
    for r in records:
        counts[r.status] = counts.get(r.status, 0) + 1
        total_hours += r.total_hours or 0.0
        overtime_hours += max(0.0, (r.total_hours or 0.0) - shift.hours)

    return {
        "employee_id": employee_id,
        "start_date": start,
        "end_date": end,
        "total_records": len(records),
        "status_counts": counts,
        "total_hours": round(total_hours, 2),
        "avg_hours_per_day": round(total_hours / len(records), 2) if records else 0.0,
        "overtime_hours": round(overtime_hours, 2),
    }


def _attendance_state(record: Attendance) -> Dict[str, Any]:
    return {
        "clock_in": record.clock_in.isoformat() if record.clock_in else None,
        "clock_out": record.clock_out.isoformat() if record.clock_out else None,
        "status": record.status,
        "total_hours": record.total_hours,
    }
