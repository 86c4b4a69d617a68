from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime
from sqlalchemy.sql import func
from backoffice.database import Base
import enum

class SalaryType(str, enum.Enum):
    HOURLY = "Hourly"
    MONTHLY = "Monthly"
    PROJECT = "Project"

class SalaryRule(Base):
    __tablename__ = "salary_rules"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    salary_type = Column(String, default=SalaryType.MONTHLY.value, nullable=False)

    rate = Column(Numeric(12, 2), nullable=False)
    overtime_rate = Column(Numeric(12, 2), default=0, nullable=False)
    bonus = Column(Numeric(12, 2), default=0, nullable=False)

    # Leave rule
    leave_rule_enabled = Column(Boolean, default=False, nullable=False)
    per_day_deduction = Column(Numeric(12, 2), default=0, nullable=False)

    # Late rule
    late_rule_enabled = Column(Boolean, default=False, nullable=False)
    late_days_threshold = Column(Integer, default=3, nullable=False)
    equivalent_leave_days = Column(Numeric(6, 2), default=0.5, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def snapshot(self) -> dict:
        """Plain copy of the terms, stored on each payroll so later edits don't rewrite history."""
        return {
            "id": self.id,
            "title": self.title,
            "salary_type": self.salary_type,
            "rate": str(self.rate),
            "overtime_rate": str(self.overtime_rate),
            "bonus": str(self.bonus),
            "leave_rule": {
                "enabled": self.leave_rule_enabled,
                "per_day_deduction": str(self.per_day_deduction),
            },
            "late_rule": {
                "enabled": self.late_rule_enabled,
                "late_days_threshold": self.late_days_threshold,
                "equivalent_leave_days": str(self.equivalent_leave_days),
            },
        }
