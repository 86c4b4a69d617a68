from sqlalchemy import Column, Integer, String, Date, Float, ForeignKey, DateTime
from sqlalchemy.sql import func
from backoffice.database import Base
import enum

class LeaveStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

class PayStatus(str, enum.Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"
    HALF_PAID = "HalfPaid"

class LeaveType(str, enum.Enum):
    SICK = "Sick"
    CASUAL = "Casual"
    MATERNITY = "Maternity"
    PATERNITY = "Paternity"
    PAID = "Paid"
    UNPAID = "Unpaid"
    HALF_PAID = "HalfPaid"
    BEREAVEMENT = "Bereavement"
    COMP_OFF = "CompOff"
    STUDY = "Study"
    HALF_DAY = "HalfDay"

class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type = Column(String, default=LeaveType.PAID.value, nullable=False)
    pay_status = Column(String, default=PayStatus.PAID.value, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Float, nullable=False)
    reason = Column(String, nullable=True)
    status = Column(String, default=LeaveStatus.PENDING.value, nullable=False, index=True)
    decided_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    decided_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def covers(self, day) -> bool:
        return self.start_date <= day <= self.end_date
