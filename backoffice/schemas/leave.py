from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from typing import Optional

from backoffice.models.leave_request import LeaveType, PayStatus

class LeaveRequestCreate(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    leave_type: LeaveType = LeaveType.PAID
    pay_status: PayStatus = PayStatus.PAID
    reason: Optional[str] = None

class LeaveRequestResponse(BaseModel):
    id: int
    employee_id: int
    start_date: date
    end_date: date
    total_days: float
    leave_type: str
    pay_status: str
    status: str
    reason: Optional[str] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class LeaveDecisionRequest(BaseModel):
    approve: bool
    decided_by: Optional[int] = None
    pay_status: Optional[PayStatus] = None
    comment: Optional[str] = None
