from sqlalchemy import Column, Integer, String, Date, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from backoffice.database import Base
import enum

class HolidayType(str, enum.Enum):
    GOVT = "GOVT"
    COMPANY = "COMPANY"

class HolidaySource(str, enum.Enum):
    AUTO = "AUTO"
    ADMIN = "ADMIN"

class Holiday(Base):
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    date = Column(Date, index=True, nullable=False)
    type = Column(String, default=HolidayType.GOVT.value, nullable=False)
    source = Column(String, default=HolidaySource.ADMIN.value, nullable=False)
    year = Column(Integer, index=True)
    # Holidays are deactivated, never deleted, so payroll history stays explainable
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
