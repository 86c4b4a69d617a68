from pydantic import BaseModel
from datetime import date
from typing import Optional


class PayrollPeriod(BaseModel):
    period_start: date
    period_end: date

class PayrollCalculateRequest(PayrollPeriod):
    employee_id: int
    recompute: bool = False

class PayrollPayRequest(BaseModel):
    paid_by: Optional[int] = None
