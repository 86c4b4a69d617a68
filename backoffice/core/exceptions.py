from datetime import date
from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} {entity_id} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )

class ConflictError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            details=details
        )

class InvalidDateRange(AppException):
    def __init__(self, start: date, end: date, message: Optional[str] = None):
        super().__init__(
            message=message or f"End date {end} is before start date {start}",
            status_code=400,
            error_code="INVALID_DATE_RANGE",
            details={"start": str(start), "end": str(end)}
        )

class MissingSalaryRule(AppException):
    def __init__(self, employee_id: int):
        super().__init__(
            message=f"No active salary rule assigned to employee {employee_id}",
            status_code=422,
            error_code="MISSING_SALARY_RULE",
            details={"employee_id": employee_id}
        )

class DuplicatePayrollPeriod(AppException):
    def __init__(self, employee_id: int, period_start: date, period_end: date, status: Optional[str] = None):
        reason = f" (already {status})" if status else ""
        super().__init__(
            message=f"Payroll for employee {employee_id} covering {period_start}..{period_end} already exists{reason}",
            status_code=409,
            error_code="DUPLICATE_PAYROLL_PERIOD",
            details={
                "employee_id": employee_id,
                "period_start": str(period_start),
                "period_end": str(period_end),
                "status": status,
            }
        )

class StaleAttendanceData(AppException):
    """Raised when a period still holds an open clock-in session."""
    def __init__(self, employee_id: int, open_dates):
        super().__init__(
            message=(
                f"Employee {employee_id} has open attendance sessions on "
                f"{', '.join(str(d) for d in open_dates)}; run the auto-clock-out sweep first"
            ),
            status_code=409,
            error_code="STALE_ATTENDANCE_DATA",
            details={"employee_id": employee_id, "open_dates": [str(d) for d in open_dates]}
        )

class DataFetchTimeout(AppException):
    def __init__(self, what: str):
        super().__init__(
            message=f"Timed out while loading {what}",
            status_code=504,
            error_code="DATA_FETCH_TIMEOUT",
            details={"source": what}
        )
