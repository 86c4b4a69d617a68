from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import List, Optional

from backoffice.models.holiday import HolidayType


class HolidayCreate(BaseModel):
    title: str = Field(..., min_length=1)
    date: date
    type: HolidayType = HolidayType.COMPANY
    created_by: Optional[int] = None

class HolidayResponse(BaseModel):
    id: int
    title: str
    date: date
    type: str
    source: str
    year: Optional[int] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)

class WeeklyOffUpdate(BaseModel):
    weekly_off_days: List[str]
    updated_by: Optional[int] = None

class OfficeScheduleResponse(BaseModel):
    id: int
    weekly_off_days: List[str]
    is_active: bool
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class OverrideCreate(BaseModel):
    start_date: date
    end_date: date
    weekly_off_days: List[str]
    created_by: Optional[int] = None

class OverrideResponse(BaseModel):
    id: int
    start_date: date
    end_date: date
    weekly_off_days: List[str]
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class WeeklyOffResponse(BaseModel):
    date: date
    weekly_off_days: List[str]
    override: bool
    override_id: Optional[int] = None
    override_start_date: Optional[date] = None
    override_end_date: Optional[date] = None

class DayStatusResponse(BaseModel):
    date: date
    weekday: str
    status: str
    holiday: Optional[HolidayResponse] = None
