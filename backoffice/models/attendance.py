from sqlalchemy import Column, Integer, String, Date, Float, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from backoffice.database import Base
import enum

class AttendanceStatus(str, enum.Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LEAVE = "Leave"
    LATE = "Late"
    GOVT_HOLIDAY = "Govt Holiday"
    OFF_DAY = "Off Day"  # company holiday
    WEEKLY_OFF = "Weekly Off"

WORKED_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)

class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    clock_in = Column(DateTime, nullable=True)
    clock_out = Column(DateTime, nullable=True)
    total_hours = Column(Float, default=0.0, nullable=False)
    status = Column(String, default=AttendanceStatus.ABSENT.value, nullable=False, index=True)

    # Written by a sweep rather than a live request
    auto_marked = Column(Boolean, default=False, nullable=False)
    auto_clock_out = Column(Boolean, default=False, nullable=False)

    corrected_by_admin = Column(Boolean, default=False, nullable=False)
    corrected_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    correction_date = Column(DateTime, nullable=True)

    leave_id = Column(Integer, ForeignKey("leave_requests.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee", foreign_keys=[employee_id])

    @property
    def is_open(self) -> bool:
        return self.clock_in is not None and self.clock_out is None
