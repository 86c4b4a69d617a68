from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from backoffice.database import get_db
from backoffice.models.leave_request import LeaveStatus
from backoffice.schemas.leave import LeaveDecisionRequest, LeaveRequestCreate, LeaveRequestResponse
from backoffice.services import leave_service

router = APIRouter(prefix="/leave", tags=["leave"])


@router.post("/request", response_model=LeaveRequestResponse, status_code=201)
def request_leave(request: LeaveRequestCreate, db: Session = Depends(get_db)):
    return leave_service.create_leave_request(
        db,
        employee_id=request.employee_id,
        start_date=request.start_date,
        end_date=request.end_date,
        leave_type=request.leave_type,
        pay_status=request.pay_status,
        reason=request.reason
    )


@router.get("/requests", response_model=List[LeaveRequestResponse])
def list_leave_requests(
    employee_id: Optional[int] = None,
    status: Optional[LeaveStatus] = None,
    db: Session = Depends(get_db)
):
    return leave_service.list_leave_requests(db, employee_id=employee_id, status=status)


@router.post("/requests/{leave_id}/decision", response_model=LeaveRequestResponse)
def decide_leave(leave_id: int, request: LeaveDecisionRequest, db: Session = Depends(get_db)):
    """
    Approve or reject a pending leave request.
    """
    return leave_service.decide_leave_request(
        db,
        leave_id,
        approve=request.approve,
        decided_by=request.decided_by,
        pay_status=request.pay_status,
        comment=request.comment
    )
