"""
Leave Service Layer

Leave requests, the approve/reject workflow, and the range lookups the
attendance and payroll engines read from.
"""

from datetime import date, datetime
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from backoffice.core.exceptions import AppException, InvalidDateRange, NotFoundError
from backoffice.models.employee import Employee
from backoffice.models.leave_request import LeaveRequest, LeaveStatus, LeaveType, PayStatus
from backoffice.services.audit import AuditService

logger = logging.getLogger(__name__)


def create_leave_request(
    db: Session,
    employee_id: int,
    start_date: date,
    end_date: date,
    leave_type: LeaveType = LeaveType.PAID,
    pay_status: PayStatus = PayStatus.PAID,
    reason: Optional[str] = None
) -> LeaveRequest:
    if end_date < start_date:
        raise InvalidDateRange(start_date, end_date)
    if not db.get(Employee, employee_id):
        raise NotFoundError("Employee", employee_id)

    leave = LeaveRequest(
        employee_id=employee_id,
        leave_type=LeaveType(leave_type).value,
        pay_status=PayStatus(pay_status).value,
        start_date=start_date,
        end_date=end_date,
        total_days=(end_date - start_date).days + 1,
        reason=reason,
        status=LeaveStatus.PENDING.value
    )
    db.add(leave)
    try:
        db.commit()
        db.refresh(leave)
    except Exception:
        db.rollback()
        raise
    return leave


def decide_leave_request(
    db: Session,
    leave_id: int,
    approve: bool,
    decided_by: Optional[int] = None,
    pay_status: Optional[PayStatus] = None,
    comment: Optional[str] = None
) -> LeaveRequest:
    """
    Approve or reject a pending request. An approver may override the pay status.
    """
    leave = db.get(LeaveRequest, leave_id)
    if not leave:
        raise NotFoundError("Leave request", leave_id)
    if leave.status != LeaveStatus.PENDING.value:
        raise AppException("Leave request already processed", status_code=409, error_code="LEAVE_ALREADY_DECIDED")

    before_state = {"status": leave.status, "pay_status": leave.pay_status}

    leave.status = LeaveStatus.APPROVED.value if approve else LeaveStatus.REJECTED.value
    if approve and pay_status is not None:
        leave.pay_status = PayStatus(pay_status).value
    leave.decided_by = decided_by
    leave.decided_at = datetime.now()

    AuditService.log(
        db,
        action="approve_leave" if approve else "reject_leave",
        entity_type="leave_request",
        entity_id=leave.id,
        actor_id=decided_by,
        details={"employee_id": leave.employee_id, "leave_type": leave.leave_type, "comment": comment},
        before_state=before_state,
        after_state={"status": leave.status, "pay_status": leave.pay_status}
    )

    try:
        db.commit()
        db.refresh(leave)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Leave request {leave.id} {leave.status.lower()} by {decided_by}")
    return leave


def list_leave_requests(
    db: Session,
    employee_id: Optional[int] = None,
    status: Optional[LeaveStatus] = None
) -> List[LeaveRequest]:
    query = db.query(LeaveRequest)
    if employee_id is not None:
        query = query.filter(LeaveRequest.employee_id == employee_id)
    if status is not None:
        query = query.filter(LeaveRequest.status == LeaveStatus(status).value)
    return query.order_by(LeaveRequest.start_date.desc()).all()


def approved_leaves_in_range(db: Session, employee_id: int, start: date, end: date) -> List[LeaveRequest]:
    return db.query(LeaveRequest).filter(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.status == LeaveStatus.APPROVED.value,
        LeaveRequest.start_date <= end,
        LeaveRequest.end_date >= start
    ).order_by(LeaveRequest.start_date).all()


def approved_leave_for(db: Session, employee_id: int, day: date) -> Optional[LeaveRequest]:
    leaves = approved_leaves_in_range(db, employee_id, day, day)
    return leaves[0] if leaves else None
