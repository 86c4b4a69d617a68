import os
import logging
from datetime import time
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _parse_clock(value: str) -> time:
    hours, minutes = value.strip().split(":")
    return time(int(hours), int(minutes))


class ShiftSettings(BaseModel):
    start: time = Field(default_factory=lambda: _parse_clock(os.getenv("SHIFT_START", "09:00")))
    hours: float = float(os.getenv("SHIFT_HOURS", "8"))
    late_threshold_minutes: int = int(os.getenv("LATE_THRESHOLD_MINUTES", "0"))
    grace_period_minutes: int = int(os.getenv("GRACE_PERIOD_MINUTES", "15"))


class AutoClockOutSettings(BaseModel):
    enabled: bool = os.getenv("AUTO_CLOCK_OUT_ENABLED", "true").lower() == "true"
    clock_out_at: time = Field(default_factory=lambda: _parse_clock(os.getenv("AUTO_CLOCK_OUT_TIME", "18:00")))


class HolidaySyncSettings(BaseModel):
    api_key: Optional[str] = Field(default=os.getenv("CALENDARIFIC_API_KEY"))
    country: str = os.getenv("HOLIDAY_COUNTRY", "BD")
    timeout_seconds: float = float(os.getenv("HOLIDAY_SYNC_TIMEOUT", "15"))


class Config(BaseModel):
    app_name: str = "HR Back Office"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")
    # Upper bound for any single fetch issued by the engine
    db_statement_timeout_ms: int = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "10000"))

    # Calendar
    default_weekly_off_days: List[str] = Field(
        default_factory=lambda: [
            d.strip()
            for d in os.getenv("DEFAULT_WEEKLY_OFF_DAYS", "Friday,Saturday").split(",")
            if d.strip()
        ]
    )

    # Attendance
    shift: ShiftSettings = ShiftSettings()
    auto_clock_out: AutoClockOutSettings = AutoClockOutSettings()

    # Payroll: "prorated" uses the computed basic pay, "full" the rule's rate
    late_deduction_basis: str = os.getenv("PAYROLL_LATE_DEDUCTION_BASIS", "prorated")

    holiday_sync: HolidaySyncSettings = HolidaySyncSettings()

settings = Config()

# --- Startup Validation ---
_logger = logging.getLogger(__name__)
if settings.late_deduction_basis not in ("prorated", "full"):
    raise RuntimeError(
        f"FATAL: PAYROLL_LATE_DEDUCTION_BASIS must be 'prorated' or 'full', got '{settings.late_deduction_basis}'."
    )
if settings.environment != "development" and not settings.holiday_sync.api_key:
    _logger.warning("CALENDARIFIC_API_KEY is not set; holiday sync will be skipped.")
