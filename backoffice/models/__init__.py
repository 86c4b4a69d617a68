# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    employee, holiday, office_schedule, salary_rule,
    attendance, leave_request, payroll, payroll_component, audit_log
)

# Explicit class exports for cleaner imports
from .employee import Employee, EmployeeRole
from .holiday import Holiday, HolidayType, HolidaySource
from .office_schedule import OfficeSchedule, OfficeScheduleOverride
from .salary_rule import SalaryRule, SalaryType
from .attendance import Attendance, AttendanceStatus
from .leave_request import LeaveRequest, LeaveStatus, LeaveType, PayStatus
from .payroll import Payroll, PayrollStatus
from .payroll_component import PayrollComponent, ComponentType
from .audit_log import AuditLog

__all__ = [
    "Employee",
    "EmployeeRole",
    "Holiday",
    "HolidayType",
    "HolidaySource",
    "OfficeSchedule",
    "OfficeScheduleOverride",
    "SalaryRule",
    "SalaryType",
    "Attendance",
    "AttendanceStatus",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "PayStatus",
    "Payroll",
    "PayrollStatus",
    "PayrollComponent",
    "ComponentType",
    "AuditLog",
]
