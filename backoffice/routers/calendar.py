"""
Calendar Router

Holidays, the default weekly-off schedule, temporary overrides and
day-status lookups.
"""

from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from backoffice.database import get_db
from backoffice.models.holiday import HolidaySource
from backoffice.schemas.calendar import (
    DayStatusResponse,
    HolidayCreate,
    HolidayResponse,
    OfficeScheduleResponse,
    OverrideCreate,
    OverrideResponse,
    WeeklyOffResponse,
    WeeklyOffUpdate,
)
from backoffice.services.audit import AuditService
from backoffice.services.calendar_store import CalendarStore, weekday_name
from backoffice.services.day_status import DayStatusResolver

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/holidays", response_model=List[HolidayResponse])
def list_holidays(year: Optional[int] = None, include_inactive: bool = False, db: Session = Depends(get_db)):
    return CalendarStore(db).list_holidays(year=year, include_inactive=include_inactive)


@router.post("/holidays", response_model=HolidayResponse, status_code=201)
def add_holiday(request: HolidayCreate, db: Session = Depends(get_db)):
    holiday = CalendarStore(db).add_holiday(
        title=request.title,
        day=request.date,
        holiday_type=request.type,
        source=HolidaySource.ADMIN,
        created_by=request.created_by
    )
    AuditService.log(
        db,
        action="add_holiday",
        entity_type="holiday",
        entity_id=holiday.id,
        actor_id=request.created_by,
        details={"title": holiday.title, "date": str(holiday.date), "type": holiday.type}
    )
    db.commit()
    return holiday


@router.delete("/holidays/{holiday_id}", response_model=HolidayResponse)
def deactivate_holiday(holiday_id: int, db: Session = Depends(get_db)):
    return CalendarStore(db).deactivate_holiday(holiday_id)


@router.get("/schedule", response_model=OfficeScheduleResponse)
def get_schedule(db: Session = Depends(get_db)):
    store = CalendarStore(db)
    schedule = store.find_active_default_schedule()
    if schedule is None:
        schedule = store.create_default_schedule()
        db.commit()
        db.refresh(schedule)
    return schedule


@router.put("/schedule", response_model=OfficeScheduleResponse)
def set_weekly_off(request: WeeklyOffUpdate, db: Session = Depends(get_db)):
    return CalendarStore(db).set_weekly_off(request.weekly_off_days, updated_by=request.updated_by)


@router.get("/overrides", response_model=List[OverrideResponse])
def list_overrides(include_inactive: bool = False, db: Session = Depends(get_db)):
    return CalendarStore(db).list_overrides(include_inactive=include_inactive)


@router.post("/overrides", response_model=OverrideResponse)
def save_override(request: OverrideCreate, db: Session = Depends(get_db)):
    """
    Create a temporary weekly-off override, or reshape the active one it overlaps.
    """
    return CalendarStore(db).save_override(
        request.start_date,
        request.end_date,
        request.weekly_off_days,
        created_by=request.created_by
    )


@router.delete("/overrides/{override_id}", response_model=OverrideResponse)
def deactivate_override(override_id: int, db: Session = Depends(get_db)):
    return CalendarStore(db).deactivate_override(override_id)


@router.get("/weekly-off", response_model=WeeklyOffResponse)
def get_weekly_off(on: Optional[date] = None, db: Session = Depends(get_db)):
    day = on or date.today()
    return {"date": day, **DayStatusResolver(db).weekly_off_for(day)}


@router.get("/day-status/{day}", response_model=DayStatusResponse)
def get_day_status(day: date, db: Session = Depends(get_db)):
    status, holiday = DayStatusResolver(db).resolve_with_holiday(day)
    return {
        "date": day,
        "weekday": weekday_name(day),
        "status": status.value,
        "holiday": HolidayResponse.model_validate(holiday) if holiday else None,
    }
