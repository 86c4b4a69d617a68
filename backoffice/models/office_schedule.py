from sqlalchemy import Column, Integer, Date, Boolean, DateTime, ForeignKey, JSON, Index, text
from sqlalchemy.sql import func
from backoffice.database import Base

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class OfficeSchedule(Base):
    """Default weekly-off configuration. At most one row may be active."""
    __tablename__ = "office_schedules"
    __table_args__ = (
        Index(
            "uq_office_schedules_single_active",
            "is_active",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    weekly_off_days = Column(JSON, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class OfficeScheduleOverride(Base):
    """Time-bounded replacement of the weekly-off days, inclusive on both ends."""
    __tablename__ = "office_schedule_overrides"

    id = Column(Integer, primary_key=True, index=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    weekly_off_days = Column(JSON, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
