from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from backoffice.database import get_db
from backoffice.schemas.attendance import (
    AttendanceCorrection,
    AttendanceResponse,
    AttendanceSummaryResponse,
    ClockRequest,
)
from backoffice.services import attendance_service

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("/clock-in", response_model=AttendanceResponse)
def clock_in(request: ClockRequest, db: Session = Depends(get_db)):
    return attendance_service.clock_in(db, request.employee_id)


@router.post("/clock-out", response_model=AttendanceResponse)
def clock_out(request: ClockRequest, db: Session = Depends(get_db)):
    return attendance_service.clock_out(db, request.employee_id)


@router.put("/{attendance_id}/correct", response_model=AttendanceResponse)
def correct_attendance(attendance_id: int, request: AttendanceCorrection, db: Session = Depends(get_db)):
    """
    Admin correction of a single attendance record.
    """
    return attendance_service.correct_attendance(
        db,
        attendance_id,
        corrected_by=request.corrected_by,
        clock_in_at=request.clock_in,
        clock_out_at=request.clock_out,
        status=request.status
    )


@router.get("/employee/{employee_id}", response_model=List[AttendanceResponse])
def list_attendance(employee_id: int, start: date, end: date, db: Session = Depends(get_db)):
    return attendance_service.list_attendance(db, employee_id, start, end)


@router.get("/summary/{employee_id}", response_model=AttendanceSummaryResponse)
def attendance_summary(employee_id: int, start: date, end: date, db: Session = Depends(get_db)):
    return attendance_service.attendance_summary(db, employee_id, start, end)
