from fastapi import APIRouter
from backoffice.routers import (
    attendance, calendar, employees, leave, maintenance, payroll, salary_rules
)

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(calendar.router, tags=["Calendar"])
api_router.include_router(employees.router, tags=["Employees"])
api_router.include_router(salary_rules.router, tags=["Salary Rules"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(attendance.router, tags=["Attendance"])
api_router.include_router(payroll.router, tags=["Payroll"])
api_router.include_router(maintenance.router, tags=["Maintenance"])
