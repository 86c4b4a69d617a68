"""
Day-status resolution.

Decides whether a calendar date is a holiday, a weekly off or a working day,
before any individual's attendance is considered. Precedence, first match wins:

1. an active holiday on that date;
2. the active override window containing the date (it alone decides);
3. the active default office schedule, materialized on first use;
4. otherwise a working day.
"""

from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple
import enum
import logging

from sqlalchemy.orm import Session

from backoffice.models.holiday import Holiday
from backoffice.models.office_schedule import OfficeScheduleOverride
from backoffice.services.audit import AuditService
from backoffice.services.calendar_store import CalendarStore, to_day, weekday_name

logger = logging.getLogger(__name__)


class DayStatus(str, enum.Enum):
    HOLIDAY = "HOLIDAY"
    WEEKLY_OFF = "WEEKLY_OFF"
    WORKING_DAY = "WORKING_DAY"


class DayStatusResolver:
    def __init__(self, db: Session, store: Optional[CalendarStore] = None, audit: Optional[AuditService] = None):
        self.store = store or CalendarStore(db)
        self.audit = audit or AuditService(db)

    def resolve(self, day) -> DayStatus:
        day = to_day(day)

        if self.store.find_holiday(day) is not None:
            return DayStatus.HOLIDAY
        return self._resolve_weekly(day)

    def resolve_with_holiday(self, day) -> Tuple[DayStatus, Optional[Holiday]]:
        """Like resolve(), also handing back the holiday so callers can tell GOVT from COMPANY."""
        day = to_day(day)
        holiday = self.store.find_holiday(day)
        if holiday is not None:
            return DayStatus.HOLIDAY, holiday
        return self._resolve_weekly(day), None

    def _resolve_weekly(self, day: date) -> DayStatus:
        # No holiday on this date: the override in force, else the default schedule
        override = self._override_in_force(day)
        if override is not None:
            if weekday_name(day) in override.weekly_off_days:
                return DayStatus.WEEKLY_OFF
            return DayStatus.WORKING_DAY

        if weekday_name(day) in self.default_weekly_off_days():
            return DayStatus.WEEKLY_OFF

        return DayStatus.WORKING_DAY

    def resolve_period(self, start: date, end: date) -> Dict[date, DayStatus]:
        start, end = to_day(start), to_day(end)
        statuses = {}
        current = start
        while current <= end:
            statuses[current] = self.resolve(current)
            current += timedelta(days=1)
        return statuses

    def weekly_off_for(self, day) -> dict:
        """Effective weekly-off days on ``day`` and where they come from."""
        day = to_day(day)
        override = self._override_in_force(day)
        if override is not None:
            return {
                "weekly_off_days": list(override.weekly_off_days),
                "override": True,
                "override_id": override.id,
                "override_start_date": override.start_date,
                "override_end_date": override.end_date,
            }
        return {"weekly_off_days": self.default_weekly_off_days(), "override": False}

    def default_weekly_off_days(self) -> List[str]:
        schedule = self.store.find_active_default_schedule()
        if schedule is None:
            schedule = self.store.create_default_schedule()
        return list(schedule.weekly_off_days)

    def _override_in_force(self, day: date) -> Optional[OfficeScheduleOverride]:
        overrides = self.store.find_active_overrides(day)
        if not overrides:
            return None

        chosen = overrides[0]
        distinct_sets = {frozenset(o.weekly_off_days) for o in overrides}
        if len(distinct_sets) > 1:
            logger.warning(
                f"Ambiguous office schedule overrides on {day}: using override {chosen.id}",
                extra={"day": str(day), "override_ids": [o.id for o in overrides], "chosen": chosen.id}
            )
            self.audit.flag_anomaly(
                "ambiguous_override",
                details={
                    "day": str(day),
                    "override_ids": [o.id for o in overrides],
                    "chosen_override_id": chosen.id,
                },
                entity_type="office_schedule_override",
                entity_id=chosen.id
            )
        return chosen
