from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import time
from typing import Optional

from backoffice.models.employee import EmployeeRole


class EmployeeCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    role: EmployeeRole = EmployeeRole.EMPLOYEE
    salary_rule_id: Optional[int] = None
    shift_start: Optional[time] = None
    shift_hours: Optional[float] = Field(None, gt=0, le=24)

class EmployeeUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[EmployeeRole] = None
    is_active: Optional[bool] = None
    shift_start: Optional[time] = None
    shift_hours: Optional[float] = Field(None, gt=0, le=24)

class SalaryRuleAssignment(BaseModel):
    salary_rule_id: Optional[int] = None
    assigned_by: Optional[int] = None

class EmployeeResponse(BaseModel):
    id: int
    full_name: str
    email: str
    role: str
    is_active: bool
    salary_rule_id: Optional[int] = None
    shift_start: Optional[time] = None
    shift_hours: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)
