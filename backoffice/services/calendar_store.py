"""
Calendar Store

Repository-style access to holidays, the default office schedule and the
temporary overrides. The day-status resolver only reads through the ``find_*``
lookups; the write helpers back the admin CRUD endpoints.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.exceptions import AppException, InvalidDateRange, NotFoundError
from backoffice.models.holiday import Holiday, HolidaySource, HolidayType
from backoffice.models.office_schedule import OfficeSchedule, OfficeScheduleOverride, WEEKDAY_NAMES

logger = logging.getLogger(__name__)


def to_day(value) -> date:
    """Normalize a date or datetime to day granularity."""
    if isinstance(value, datetime):
        return value.date()
    return value


def weekday_name(day: date) -> str:
    # Fixed table, independent of locale
    return WEEKDAY_NAMES[to_day(day).weekday()]


def validate_weekdays(days: Iterable[str]) -> List[str]:
    days = list(days)
    if not days:
        raise AppException("weekly_off_days must contain at least one day", error_code="INVALID_WEEKDAYS")
    invalid = [d for d in days if d not in WEEKDAY_NAMES]
    if invalid:
        raise AppException(f"Invalid days provided: {', '.join(invalid)}", error_code="INVALID_WEEKDAYS")
    # Keep calendar order, drop duplicates
    return [d for d in WEEKDAY_NAMES if d in days]


class CalendarStore:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Lookups used by the resolver
    # ------------------------------------------------------------------
    def find_holiday(self, day) -> Optional[Holiday]:
        return self.db.query(Holiday).filter(
            Holiday.date == to_day(day),
            Holiday.is_active.is_(True)
        ).order_by(Holiday.id).first()

    def find_active_overrides(self, day) -> List[OfficeScheduleOverride]:
        """All active overrides containing ``day``, most recently created first."""
        day = to_day(day)
        return self.db.query(OfficeScheduleOverride).filter(
            OfficeScheduleOverride.is_active.is_(True),
            OfficeScheduleOverride.start_date <= day,
            OfficeScheduleOverride.end_date >= day
        ).order_by(
            OfficeScheduleOverride.created_at.desc(),
            OfficeScheduleOverride.id.desc()
        ).all()

    def find_active_default_schedule(self) -> Optional[OfficeSchedule]:
        return self.db.query(OfficeSchedule).filter(OfficeSchedule.is_active.is_(True)).first()

    def create_default_schedule(self, weekly_off_days: Optional[List[str]] = None, created_by: Optional[int] = None) -> OfficeSchedule:
        """
        Atomic create-if-absent for the single active schedule.

        The partial unique index on ``is_active`` lets only one insert win; a
        loser rolls back its savepoint and returns the row that won. The new
        row is flushed into the caller's transaction; the caller commits.
        """
        existing = self.find_active_default_schedule()
        if existing:
            return existing

        schedule = OfficeSchedule(
            weekly_off_days=list(weekly_off_days or settings.default_weekly_off_days),
            is_active=True,
            created_by=created_by
        )
        try:
            with self.db.begin_nested():
                self.db.add(schedule)
        except IntegrityError:
            logger.info("Default office schedule created concurrently; using the persisted one")
            existing = self.find_active_default_schedule()
            if existing is None:
                raise
            return existing

        logger.info(f"Materialized default office schedule: {schedule.weekly_off_days}")
        return schedule

    # ------------------------------------------------------------------
    # Holidays
    # ------------------------------------------------------------------
    def list_holidays(self, year: Optional[int] = None, include_inactive: bool = False) -> List[Holiday]:
        query = self.db.query(Holiday)
        if year is not None:
            query = query.filter(Holiday.year == year)
        if not include_inactive:
            query = query.filter(Holiday.is_active.is_(True))
        return query.order_by(Holiday.date).all()

    def add_holiday(
        self,
        title: str,
        day: date,
        holiday_type: HolidayType = HolidayType.GOVT,
        source: HolidaySource = HolidaySource.ADMIN,
        created_by: Optional[int] = None,
        commit: bool = True
    ) -> Holiday:
        day = to_day(day)
        holiday = Holiday(
            title=title,
            date=day,
            type=HolidayType(holiday_type).value,
            source=HolidaySource(source).value,
            year=day.year,
            is_active=True,
            created_by=created_by
        )
        self.db.add(holiday)
        if commit:
            self.db.commit()
            self.db.refresh(holiday)
        return holiday

    def deactivate_holiday(self, holiday_id: int) -> Holiday:
        holiday = self.db.get(Holiday, holiday_id)
        if not holiday:
            raise NotFoundError("Holiday", holiday_id)
        holiday.is_active = False
        self.db.commit()
        self.db.refresh(holiday)
        return holiday

    def has_synced_holidays(self, year: int) -> bool:
        return self.db.query(Holiday.id).filter(
            Holiday.year == year,
            Holiday.source == HolidaySource.AUTO.value
        ).first() is not None

    # ------------------------------------------------------------------
    # Default schedule and overrides
    # ------------------------------------------------------------------
    def set_weekly_off(self, weekly_off_days: List[str], updated_by: Optional[int] = None) -> OfficeSchedule:
        days = validate_weekdays(weekly_off_days)
        schedule = self.create_default_schedule(days, created_by=updated_by)
        if schedule.weekly_off_days != days:
            logger.info(
                "Office schedule updated",
                extra={"previous": schedule.weekly_off_days, "new": days, "updated_by": updated_by}
            )
            schedule.weekly_off_days = days
            schedule.created_by = updated_by
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def list_overrides(self, include_inactive: bool = False) -> List[OfficeScheduleOverride]:
        query = self.db.query(OfficeScheduleOverride)
        if not include_inactive:
            query = query.filter(OfficeScheduleOverride.is_active.is_(True))
        return query.order_by(OfficeScheduleOverride.start_date).all()

    def save_override(
        self,
        start_date: date,
        end_date: date,
        weekly_off_days: List[str],
        created_by: Optional[int] = None,
        today: Optional[date] = None
    ) -> OfficeScheduleOverride:
        """
        Create an override, or reshape the active one it overlaps.

        Reusing the overlapping window keeps at most one override in force for
        any date when writes go through this path.
        """
        start_date, end_date = to_day(start_date), to_day(end_date)
        if start_date > end_date:
            raise InvalidDateRange(start_date, end_date)
        today = today or date.today()
        if end_date < today:
            raise InvalidDateRange(start_date, end_date, message="Cannot create override for past dates")
        days = validate_weekdays(weekly_off_days)

        existing = self.db.query(OfficeScheduleOverride).filter(
            OfficeScheduleOverride.is_active.is_(True),
            OfficeScheduleOverride.start_date <= end_date,
            OfficeScheduleOverride.end_date >= start_date
        ).order_by(OfficeScheduleOverride.id.desc()).first()

        if existing:
            existing.start_date = start_date
            existing.end_date = end_date
            existing.weekly_off_days = days
            override = existing
        else:
            override = OfficeScheduleOverride(
                start_date=start_date,
                end_date=end_date,
                weekly_off_days=days,
                is_active=True,
                created_by=created_by
            )
            self.db.add(override)
        self.db.commit()
        self.db.refresh(override)
        return override

    def deactivate_override(self, override_id: int) -> OfficeScheduleOverride:
        override = self.db.get(OfficeScheduleOverride, override_id)
        if not override:
            raise NotFoundError("Override", override_id)
        override.is_active = False
        self.db.commit()
        self.db.refresh(override)
        return override
