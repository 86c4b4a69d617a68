"""
Payroll Service Layer

This module provides the business logic layer for payroll operations.
It loads the period's data, hands it to the pure computation engine and
persists the resulting record, keeping the router focused on HTTP
request/response handling.

Architecture:
- Router -> Service (this module) -> Engine / Models
- A payroll is created once per (employee, period); a Paid record is final
- Any fatal condition aborts the run before a row is written
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.exceptions import (
    AppException,
    DataFetchTimeout,
    DuplicatePayrollPeriod,
    InvalidDateRange,
    MissingSalaryRule,
    NotFoundError,
    StaleAttendanceData,
)
from backoffice.models.attendance import Attendance
from backoffice.models.employee import Employee
from backoffice.models.payroll import Payroll, PayrollStatus
from backoffice.models.payroll_component import PayrollComponent
from backoffice.models.salary_rule import SalaryRule
from backoffice.services.attendance_engine import ShiftConfig
from backoffice.services.audit import AuditService
from backoffice.services.day_status import DayStatusResolver
from backoffice.services.leave_service import approved_leaves_in_range
from backoffice.services.payroll_engine import PayrollResult, compute_payroll, result_components

logger = logging.getLogger(__name__)


def _find_payroll(db: Session, employee_id: int, period_start: date, period_end: date) -> Optional[Payroll]:
    return db.query(Payroll).filter(
        Payroll.employee_id == employee_id,
        Payroll.period_start == period_start,
        Payroll.period_end == period_end
    ).first()


def _reject_duplicate(db: Session, existing: Payroll, reason: str) -> None:
    AuditService(db).flag_anomaly(
        "rejected_payroll_recomputation",
        details={
            "employee_id": existing.employee_id,
            "period_start": str(existing.period_start),
            "period_end": str(existing.period_end),
            "status": existing.status,
            "reason": reason,
        },
        entity_type="payroll",
        entity_id=existing.id
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    raise DuplicatePayrollPeriod(existing.employee_id, existing.period_start, existing.period_end, existing.status)


def _load_period_data(db: Session, employee_id: int, period_start: date, period_end: date):
    """
    Fetch attendance, approved leave and day statuses for the period.

    The engine's connections carry a statement timeout; a fetch that runs into
    it fails the whole computation.
    """
    try:
        attendance = db.query(Attendance).filter(
            Attendance.employee_id == employee_id,
            Attendance.date >= period_start,
            Attendance.date <= period_end
        ).order_by(Attendance.date).all()
        leaves = approved_leaves_in_range(db, employee_id, period_start, period_end)
        day_statuses = DayStatusResolver(db).resolve_period(period_start, period_end)
    except OperationalError as e:
        db.rollback()
        logger.error(f"Payroll data fetch failed for employee {employee_id}: {e}")
        raise DataFetchTimeout("payroll period data") from e
    return attendance, leaves, day_statuses


def run_payroll(
    db: Session,
    employee_id: int,
    period_start: date,
    period_end: date,
    recompute: bool = False,
    late_basis: Optional[str] = None
) -> Dict[str, Any]:
    """
    Calculate and persist payroll for a single employee.

    Args:
        db: Database session
        employee_id: ID of the employee
        period_start: First day of the pay period
        period_end: Last day of the pay period (inclusive)
        recompute: Replace an existing Pending record instead of rejecting it
        late_basis: Override for the late-deduction basis ("prorated" / "full")

    Returns:
        Dict with the persisted payroll record

    Raises:
        InvalidDateRange, NotFoundError, MissingSalaryRule, StaleAttendanceData,
        DuplicatePayrollPeriod, DataFetchTimeout
    """
    if period_end < period_start:
        raise InvalidDateRange(period_start, period_end)

    employee = db.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee", employee_id)

    existing = _find_payroll(db, employee_id, period_start, period_end)
    if existing is not None:
        if existing.status == PayrollStatus.PAID.value:
            _reject_duplicate(db, existing, "payroll already paid")
        if not recompute:
            _reject_duplicate(db, existing, "payroll already computed")

    rule = db.get(SalaryRule, employee.salary_rule_id) if employee.salary_rule_id else None
    if rule is None or not rule.is_active:
        raise MissingSalaryRule(employee_id)

    attendance, leaves, day_statuses = _load_period_data(db, employee_id, period_start, period_end)

    open_dates = [r.date for r in attendance if r.is_open]
    if open_dates:
        raise StaleAttendanceData(employee_id, open_dates)

    result = compute_payroll(
        employee_id=employee_id,
        period_start=period_start,
        period_end=period_end,
        salary_rule=rule,
        attendance_records=attendance,
        leave_records=leaves,
        day_statuses=day_statuses,
        shift_hours=ShiftConfig.for_employee(employee).hours,
        late_basis=late_basis or settings.late_deduction_basis,
    )

    payroll = _persist_result(db, result, rule, existing)
    logger.info(
        f"Payroll {payroll.id} computed for employee {employee_id} "
        f"({period_start}..{period_end}): net {payroll.net_payable}"
    )
    return _payroll_to_dict(payroll, notes=result.notes)


def _persist_result(db: Session, result: PayrollResult, rule: SalaryRule, existing: Optional[Payroll]) -> Payroll:
    values = dict(
        salary_rule_id=rule.id,
        basic_pay=result.basic_pay,
        overtime_pay=result.overtime_pay,
        bonus=result.bonus,
        leave_deduction=result.leave_deduction,
        late_deduction=result.late_deduction,
        deductions=result.total_deductions,
        net_payable=result.net_payable,
        working_days=result.working_days,
        present_days=result.present_days,
        late_days=result.late_days,
        paid_leave_days=float(result.paid_leave_days),
        unpaid_leave_days=float(result.unpaid_leave_days),
        rule_snapshot=rule.snapshot(),
    )

    if existing is not None:
        # Pending recompute: only succeeds if nobody marked it paid meanwhile
        updated = db.query(Payroll).filter(
            Payroll.id == existing.id,
            Payroll.status == PayrollStatus.PENDING.value
        ).update(values, synchronize_session=False)
        if updated == 0:
            db.rollback()
            raise DuplicatePayrollPeriod(result.employee_id, result.period_start, result.period_end, PayrollStatus.PAID.value)
        db.query(PayrollComponent).filter(PayrollComponent.payroll_id == existing.id).delete(synchronize_session=False)
        for line in result_components(result):
            db.add(PayrollComponent(payroll_id=existing.id, **line))
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(existing)
        return existing

    payroll = Payroll(
        employee_id=result.employee_id,
        period_start=result.period_start,
        period_end=result.period_end,
        status=PayrollStatus.PENDING.value,
        **values
    )
    try:
        with db.begin_nested():
            db.add(payroll)
            db.flush()  # flush to get ID
            for line in result_components(result):
                db.add(PayrollComponent(payroll_id=payroll.id, **line))
    except IntegrityError:
        # A concurrent run for the same key won the unique constraint
        raise DuplicatePayrollPeriod(result.employee_id, result.period_start, result.period_end)

    try:
        db.commit()
        db.refresh(payroll)
    except Exception:
        db.rollback()
        raise
    return payroll


def calculate_bulk_payroll(
    db: Session,
    period_start: date,
    period_end: date
) -> Dict[str, Any]:
    """
    Calculate payroll for all active employees.

    Returns:
        Dict with bulk processing results; per-employee failures are collected
        rather than aborting the batch
    """
    if period_end < period_start:
        raise InvalidDateRange(period_start, period_end)

    employees = db.query(Employee).filter(Employee.is_active.is_(True)).order_by(Employee.id).all()
    if not employees:
        return {
            "processed": 0,
            "message": "No active employees found",
            "payrolls": []
        }

    results = []
    errors = []
    for emp in employees:
        try:
            results.append(run_payroll(db, emp.id, period_start, period_end))
        except AppException as e:
            errors.append({"employee_id": emp.id, "error": e.message, "code": e.error_code})

    return {
        "processed": len(results),
        "errors": len(errors),
        "payrolls": results,
        "error_details": errors if errors else None
    }


def mark_payroll_paid(db: Session, payroll_id: int, paid_by: Optional[int] = None) -> Dict[str, Any]:
    payroll = db.get(Payroll, payroll_id)
    if not payroll:
        raise NotFoundError("Payroll", payroll_id)

    paid_at = datetime.now()
    updated = db.query(Payroll).filter(
        Payroll.id == payroll_id,
        Payroll.status == PayrollStatus.PENDING.value
    ).update({"status": PayrollStatus.PAID.value, "paid_at": paid_at}, synchronize_session=False)
    if updated == 0:
        raise AppException("Payroll is already paid", status_code=409, error_code="PAYROLL_ALREADY_PAID")

    AuditService.log(
        db,
        action="mark_payroll_paid",
        entity_type="payroll",
        entity_id=payroll_id,
        actor_id=paid_by,
        details={"employee_id": payroll.employee_id},
        before_state={"status": PayrollStatus.PENDING.value},
        after_state={"status": PayrollStatus.PAID.value, "net_payable": str(payroll.net_payable)}
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(payroll)
    return _payroll_to_dict(payroll)


def get_employee_payroll_history(db: Session, employee_id: int) -> List[Dict[str, Any]]:
    payrolls = db.query(Payroll).filter(
        Payroll.employee_id == employee_id
    ).order_by(Payroll.period_start.desc()).all()
    return [_payroll_to_dict(p) for p in payrolls]


def get_payroll_details(db: Session, payroll_id: int) -> Dict[str, Any]:
    """
    Get detailed payroll record by ID, including its line items.
    """
    payroll = db.get(Payroll, payroll_id)
    if not payroll:
        raise NotFoundError("Payroll", payroll_id)

    result = _payroll_to_dict(payroll)
    result["components"] = [
        {
            "id": c.id,
            "name": c.name,
            "type": c.component_type,
            "amount": c.amount,
            "description": c.description
        }
        for c in payroll.components
    ]
    result["rule_snapshot"] = payroll.rule_snapshot
    return result


def _payroll_to_dict(payroll: Payroll, notes: Optional[List[str]] = None) -> Dict[str, Any]:
    """Convert Payroll model to dict representation."""
    data = {
        "id": payroll.id,
        "employee_id": payroll.employee_id,
        "salary_rule_id": payroll.salary_rule_id,
        "period_start": payroll.period_start.isoformat(),
        "period_end": payroll.period_end.isoformat(),
        "basic_pay": payroll.basic_pay,
        "overtime_pay": payroll.overtime_pay,
        "bonus": payroll.bonus,
        "leave_deduction": payroll.leave_deduction,
        "late_deduction": payroll.late_deduction,
        "deductions": payroll.deductions,
        "net_payable": payroll.net_payable,
        "working_days": payroll.working_days,
        "present_days": payroll.present_days,
        "late_days": payroll.late_days,
        "paid_leave_days": payroll.paid_leave_days,
        "unpaid_leave_days": payroll.unpaid_leave_days,
        "status": payroll.status,
        "paid_at": payroll.paid_at.isoformat() if payroll.paid_at else None,
        "created_at": payroll.created_at.isoformat() if payroll.created_at else None,
    }
    if notes:
        data["notes"] = notes
    return data
