"""
Payroll Router

Handles HTTP endpoints for payroll operations.
All business logic is delegated to the payroll service layer.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from backoffice.database import get_db
from backoffice.schemas.payroll import PayrollCalculateRequest, PayrollPeriod, PayrollPayRequest
from backoffice.services import payroll_service


router = APIRouter(
    prefix="/payroll",
    tags=["payroll"]
)


@router.post("/calculate", status_code=201)
def calculate_payroll(request: PayrollCalculateRequest, db: Session = Depends(get_db)):
    """
    Calculate payroll for a single employee and period.

    An existing Pending record is only replaced with ``recompute=true``;
    a Paid record is never replaced.
    """
    return payroll_service.run_payroll(
        db,
        employee_id=request.employee_id,
        period_start=request.period_start,
        period_end=request.period_end,
        recompute=request.recompute
    )


@router.post("/calculate-bulk")
def calculate_bulk_payroll(request: PayrollPeriod, db: Session = Depends(get_db)):
    """
    Calculate payroll for all active employees.
    """
    return payroll_service.calculate_bulk_payroll(db, request.period_start, request.period_end)


@router.get("/history/{employee_id}", response_model=List[dict])
def get_payroll_history(employee_id: int, db: Session = Depends(get_db)):
    return payroll_service.get_employee_payroll_history(db, employee_id)


@router.get("/{payroll_id}")
def get_payroll_details(payroll_id: int, db: Session = Depends(get_db)):
    """
    Get detailed payroll record by ID.
    """
    return payroll_service.get_payroll_details(db, payroll_id)


@router.post("/{payroll_id}/pay")
def mark_payroll_paid(
    payroll_id: int,
    request: Optional[PayrollPayRequest] = None,
    db: Session = Depends(get_db)
):
    paid_by = request.paid_by if request else None
    return payroll_service.mark_payroll_paid(db, payroll_id, paid_by=paid_by)
