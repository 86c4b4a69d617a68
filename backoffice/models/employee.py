"""
Employee Model.
Carries the salary rule assignment and the shift used for late/overtime checks.
"""
from sqlalchemy import Column, Integer, String, Float, Time, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from backoffice.database import Base


class EmployeeRole(str, enum.Enum):
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, default=EmployeeRole.EMPLOYEE.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    salary_rule_id = Column(Integer, ForeignKey("salary_rules.id"), nullable=True)

    # Per-employee shift; NULL falls back to the configured defaults
    shift_start = Column(Time, nullable=True)
    shift_hours = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    salary_rule = relationship("SalaryRule")

    def __repr__(self):
        return f"<Employee {self.email} ({self.role})>"
