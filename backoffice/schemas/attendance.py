from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from typing import Dict, Optional

from backoffice.models.attendance import AttendanceStatus


class ClockRequest(BaseModel):
    employee_id: int

class AttendanceCorrection(BaseModel):
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    corrected_by: Optional[int] = None

class AttendanceResponse(BaseModel):
    id: int
    employee_id: int
    date: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    total_hours: float
    status: str
    auto_marked: bool
    auto_clock_out: bool
    corrected_by_admin: bool

    model_config = ConfigDict(from_attributes=True)

class AttendanceSummaryResponse(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    total_records: int
    status_counts: Dict[str, int]
    total_hours: float
    avg_hours_per_day: float
    overtime_hours: float
