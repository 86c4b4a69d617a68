from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from backoffice.models.salary_rule import SalaryType


class SalaryRuleCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    salary_type: SalaryType = SalaryType.MONTHLY
    rate: Decimal = Field(..., ge=0, decimal_places=2)
    overtime_rate: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    bonus: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)

    leave_rule_enabled: bool = False
    per_day_deduction: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)

    late_rule_enabled: bool = False
    late_days_threshold: int = Field(3, ge=1)
    equivalent_leave_days: Decimal = Field(Decimal("0.5"), ge=0, decimal_places=2)

    created_by: Optional[int] = None

class SalaryRuleUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    salary_type: Optional[SalaryType] = None
    rate: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    overtime_rate: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    bonus: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    leave_rule_enabled: Optional[bool] = None
    per_day_deduction: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    late_rule_enabled: Optional[bool] = None
    late_days_threshold: Optional[int] = Field(None, ge=1)
    equivalent_leave_days: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_active: Optional[bool] = None
    updated_by: Optional[int] = None

class SalaryRuleResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    salary_type: str
    rate: Decimal
    overtime_rate: Decimal
    bonus: Decimal
    leave_rule_enabled: bool
    per_day_deduction: Decimal
    late_rule_enabled: bool
    late_days_threshold: int
    equivalent_leave_days: Decimal
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
