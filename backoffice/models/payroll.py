from sqlalchemy import Column, Integer, String, Numeric, Float, Date, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backoffice.database import Base
import enum

class PayrollStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"

class Payroll(Base):
    __tablename__ = "payrolls"
    __table_args__ = (
        UniqueConstraint("employee_id", "period_start", "period_end", name="uq_payroll_employee_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    salary_rule_id = Column(Integer, ForeignKey("salary_rules.id"), nullable=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    basic_pay = Column(Numeric(12, 2), nullable=False)
    overtime_pay = Column(Numeric(12, 2), default=0, nullable=False)
    bonus = Column(Numeric(12, 2), default=0, nullable=False)
    leave_deduction = Column(Numeric(12, 2), default=0, nullable=False)
    late_deduction = Column(Numeric(12, 2), default=0, nullable=False)
    deductions = Column(Numeric(12, 2), default=0, nullable=False)
    net_payable = Column(Numeric(12, 2), nullable=False)

    working_days = Column(Integer, default=0, nullable=False)
    present_days = Column(Integer, default=0, nullable=False)
    late_days = Column(Integer, default=0, nullable=False)
    paid_leave_days = Column(Float, default=0.0, nullable=False)
    unpaid_leave_days = Column(Float, default=0.0, nullable=False)

    rule_snapshot = Column(JSON, nullable=True)
    status = Column(String, default=PayrollStatus.PENDING.value, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    components = relationship("PayrollComponent", back_populates="payroll", cascade="all, delete-orphan")
