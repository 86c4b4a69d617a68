"""
Payroll computation engine.

Turns one pay period's attendance, approved leave and a salary rule into
payslip figures. Everything here is a pure function of its arguments: the
caller fetches the data, this module only does arithmetic.

All money is handled as ``Decimal``. Intermediate terms are never rounded;
the net payable is rounded half-up to cents once, at the very end.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from backoffice.models.attendance import AttendanceStatus, WORKED_STATUSES
from backoffice.models.leave_request import LeaveStatus, PayStatus
from backoffice.models.salary_rule import SalaryType
from backoffice.services.day_status import DayStatus

CENT = Decimal("0.01")
ZERO = Decimal("0")

LATE_BASIS_PRORATED = "prorated"
LATE_BASIS_FULL = "full"

# Share of a leave day that is paid, per pay status
PAID_WEIGHT = {
    PayStatus.PAID: Decimal("1"),
    PayStatus.HALF_PAID: Decimal("0.5"),
    PayStatus.UNPAID: ZERO,
}


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PayrollResult:
    employee_id: int
    period_start: date
    period_end: date
    salary_type: SalaryType

    working_days: int
    present_days: int
    late_days: int
    paid_leave_days: Decimal
    unpaid_leave_days: Decimal
    leave_days: int
    regular_hours: Decimal
    overtime_hours: Decimal

    # Unrounded terms
    basic_pay_raw: Decimal
    overtime_pay_raw: Decimal
    bonus_raw: Decimal
    leave_deduction_raw: Decimal
    late_deduction_raw: Decimal
    net_payable: Decimal

    notes: List[str] = field(default_factory=list)

    @property
    def basic_pay(self) -> Decimal:
        return round_money(self.basic_pay_raw)

    @property
    def overtime_pay(self) -> Decimal:
        return round_money(self.overtime_pay_raw)

    @property
    def bonus(self) -> Decimal:
        return round_money(self.bonus_raw)

    @property
    def leave_deduction(self) -> Decimal:
        return round_money(self.leave_deduction_raw)

    @property
    def late_deduction(self) -> Decimal:
        return round_money(self.late_deduction_raw)

    @property
    def total_deductions(self) -> Decimal:
        return round_money(self.leave_deduction_raw + self.late_deduction_raw)


@dataclass(frozen=True)
class AttendanceTally:
    present_days: int
    late_days: int
    regular_hours: Decimal
    overtime_hours: Decimal
    worked_dates: FrozenSet[date] = frozenset()


@dataclass(frozen=True)
class LeaveTally:
    paid_days: Decimal
    unpaid_days: Decimal
    total_days: int


def _period_days(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def count_working_days(day_statuses: Mapping[date, DayStatus], start: date, end: date) -> int:
    return sum(
        1 for d in _period_days(start, end)
        if day_statuses.get(d, DayStatus.WORKING_DAY) == DayStatus.WORKING_DAY
    )


def tally_attendance(records: Iterable, start: date, end: date, shift_hours) -> AttendanceTally:
    """Present/Late days and hours split at the shift length, one record per date."""
    shift_hours = to_decimal(shift_hours)
    present = late = 0
    regular = overtime = ZERO
    seen = set()
    for record in records:
        if not (start <= record.date <= end) or record.date in seen:
            continue
        status = AttendanceStatus(record.status)
        if status not in WORKED_STATUSES:
            continue
        seen.add(record.date)
        present += 1
        if status == AttendanceStatus.LATE:
            late += 1
        hours = max(ZERO, to_decimal(record.total_hours))
        regular += min(hours, shift_hours)
        overtime += max(ZERO, hours - shift_hours)
    return AttendanceTally(present, late, regular, overtime, frozenset(seen))


def tally_leave(
    leaves: Iterable,
    day_statuses: Mapping[date, DayStatus],
    start: date,
    end: date,
    worked_dates: Iterable[date] = ()
) -> LeaveTally:
    """
    Approved leave on the period's working days. A date covered by several
    leaves counts once, at its best-paid status. Dates the employee actually
    worked are paid as attendance and never count as leave.
    """
    worked = set(worked_dates)
    weight_by_day: Dict[date, Decimal] = {}
    for leave in leaves:
        if LeaveStatus(leave.status) != LeaveStatus.APPROVED:
            continue
        weight = PAID_WEIGHT[PayStatus(leave.pay_status)]
        first = max(leave.start_date, start)
        last = min(leave.end_date, end)
        for d in _period_days(first, last):
            if day_statuses.get(d, DayStatus.WORKING_DAY) != DayStatus.WORKING_DAY or d in worked:
                continue
            weight_by_day[d] = max(weight, weight_by_day.get(d, ZERO))

    paid = sum(weight_by_day.values(), ZERO)
    unpaid = sum((Decimal("1") - w for w in weight_by_day.values()), ZERO)
    return LeaveTally(paid, unpaid, len(weight_by_day))


def compute_basic_pay(
    salary_type: SalaryType,
    rate: Decimal,
    working_days: int,
    payable_days: Decimal,
    regular_hours: Decimal
) -> Decimal:
    if salary_type == SalaryType.PROJECT:
        return rate
    if salary_type == SalaryType.HOURLY:
        return rate * regular_hours
    # Monthly
    if working_days == 0:
        return rate
    payable_days = min(payable_days, Decimal(working_days))
    return rate * payable_days / Decimal(working_days)


def compute_payroll(
    employee_id: int,
    period_start: date,
    period_end: date,
    salary_rule,
    attendance_records: Iterable,
    leave_records: Iterable,
    day_statuses: Mapping[date, DayStatus],
    shift_hours=8,
    late_basis: str = LATE_BASIS_PRORATED,
) -> PayrollResult:
    """
    Compute one payslip.

    ``salary_rule`` needs the SalaryRule attributes (``salary_type``, ``rate``,
    ``overtime_rate``, ``bonus``, leave and late rule fields); attendance
    records need ``date``, ``status`` and ``total_hours``; leave records need
    ``status``, ``pay_status``, ``start_date`` and ``end_date``. ORM rows
    satisfy all three. ``day_statuses`` maps each date of the period to its
    resolved day status.
    """
    if late_basis not in (LATE_BASIS_PRORATED, LATE_BASIS_FULL):
        raise ValueError(f"Unknown late deduction basis: {late_basis}")

    salary_type = SalaryType(salary_rule.salary_type)
    rate = to_decimal(salary_rule.rate)
    notes: List[str] = []

    working_days = count_working_days(day_statuses, period_start, period_end)
    attendance = tally_attendance(attendance_records, period_start, period_end, shift_hours)
    leave = tally_leave(leave_records, day_statuses, period_start, period_end, attendance.worked_dates)

    # 1-2. basic pay
    payable_days = Decimal(attendance.present_days) + leave.paid_days
    basic = compute_basic_pay(salary_type, rate, working_days, payable_days, attendance.regular_hours)
    if salary_type == SalaryType.MONTHLY and working_days == 0:
        notes.append("No working days in period; monthly rate paid in full")

    # 3. overtime
    if salary_type == SalaryType.PROJECT:
        overtime_pay = ZERO
    else:
        overtime_pay = to_decimal(salary_rule.overtime_rate) * attendance.overtime_hours

    bonus = to_decimal(salary_rule.bonus)

    # 4. leave deduction
    leave_deduction = ZERO
    if salary_rule.leave_rule_enabled:
        leave_deduction = to_decimal(salary_rule.per_day_deduction) * leave.unpaid_days

    # 5. late deduction, excess lateness priced as unpaid days
    late_deduction = ZERO
    # At least one late day is needed, whatever the threshold says
    late_threshold = max(1, int(salary_rule.late_days_threshold or 0))
    if salary_rule.late_rule_enabled and attendance.late_days >= late_threshold:
        if working_days > 0:
            basis = basic if late_basis == LATE_BASIS_PRORATED else rate
            late_deduction = to_decimal(salary_rule.equivalent_leave_days) * basis / Decimal(working_days)
        else:
            notes.append("Late rule triggered but period has no working days; no late deduction")

    # 6. net, floored at zero and rounded once
    net = basic + overtime_pay + bonus - leave_deduction - late_deduction
    if net < ZERO:
        notes.append("Deductions exceed earnings; net payable floored at zero")
        net = ZERO

    return PayrollResult(
        employee_id=employee_id,
        period_start=period_start,
        period_end=period_end,
        salary_type=salary_type,
        working_days=working_days,
        present_days=attendance.present_days,
        late_days=attendance.late_days,
        paid_leave_days=leave.paid_days,
        unpaid_leave_days=leave.unpaid_days,
        leave_days=leave.total_days,
        regular_hours=attendance.regular_hours,
        overtime_hours=attendance.overtime_hours,
        basic_pay_raw=basic,
        overtime_pay_raw=overtime_pay,
        bonus_raw=bonus,
        leave_deduction_raw=leave_deduction,
        late_deduction_raw=late_deduction,
        net_payable=round_money(net),
        notes=notes,
    )


def result_components(result: PayrollResult) -> List[Dict[str, object]]:
    """Payslip line items for a computed result."""
    lines = [
        {"name": "Basic Pay", "component_type": "earning", "amount": result.basic_pay,
         "description": f"{result.salary_type.value} rate"},
    ]
    if result.overtime_pay_raw:
        lines.append({"name": "Overtime", "component_type": "earning", "amount": result.overtime_pay,
                      "description": f"{result.overtime_hours} overtime hours"})
    if result.bonus_raw:
        lines.append({"name": "Bonus", "component_type": "earning", "amount": result.bonus,
                      "description": None})
    if result.leave_deduction_raw:
        lines.append({"name": "Leave Deduction", "component_type": "deduction", "amount": result.leave_deduction,
                      "description": f"{result.unpaid_leave_days} unpaid leave days"})
    if result.late_deduction_raw:
        lines.append({"name": "Late Deduction", "component_type": "deduction", "amount": result.late_deduction,
                      "description": f"{result.late_days} late days"})
    return lines
