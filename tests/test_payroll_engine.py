import pytest
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from backoffice.models.attendance import AttendanceStatus
from backoffice.models.leave_request import LeaveStatus, PayStatus
from backoffice.models.salary_rule import SalaryType
from backoffice.services.day_status import DayStatus
from backoffice.services.payroll_engine import compute_payroll, result_components

# June 2025 starts on a Sunday; with Friday/Saturday off it has 22 working days
JUNE_START = date(2025, 6, 1)
JUNE_END = date(2025, 6, 30)


def _statuses(start, end, holidays=()):
    statuses = {}
    current = start
    while current <= end:
        if current in holidays:
            statuses[current] = DayStatus.HOLIDAY
        elif current.weekday() in (4, 5):
            statuses[current] = DayStatus.WEEKLY_OFF
        else:
            statuses[current] = DayStatus.WORKING_DAY
        current += timedelta(days=1)
    return statuses


def _working_days(statuses):
    return sorted(d for d, s in statuses.items() if s == DayStatus.WORKING_DAY)


def _rule(**overrides):
    data = {
        "salary_type": SalaryType.MONTHLY.value,
        "rate": Decimal("30000"),
        "overtime_rate": Decimal("0"),
        "bonus": Decimal("0"),
        "leave_rule_enabled": False,
        "per_day_deduction": Decimal("0"),
        "late_rule_enabled": False,
        "late_days_threshold": 3,
        "equivalent_leave_days": Decimal("0.5"),
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def _attendance(day, hours=8.0, status=AttendanceStatus.PRESENT):
    return SimpleNamespace(date=day, total_hours=hours, status=status.value)


def _leave(start, end=None, pay_status=PayStatus.PAID, status=LeaveStatus.APPROVED):
    return SimpleNamespace(start_date=start, end_date=end or start, pay_status=pay_status.value, status=status.value)


def _compute(rule, attendance=(), leaves=(), statuses=None, start=JUNE_START, end=JUNE_END, **kwargs):
    statuses = statuses if statuses is not None else _statuses(start, end)
    return compute_payroll(1, start, end, rule, list(attendance), list(leaves), statuses, **kwargs)


def test_monthly_prorated_with_paid_and_unpaid_leave():
    """Monthly 30000, 20 present, 1 paid + 1 unpaid leave day, 1000/day leave deduction."""
    statuses = _statuses(JUNE_START, JUNE_END)
    days = _working_days(statuses)
    assert len(days) == 22

    rule = _rule(leave_rule_enabled=True, per_day_deduction=Decimal("1000"))
    result = _compute(
        rule,
        attendance=[_attendance(d) for d in days[:20]],
        leaves=[_leave(days[20], pay_status=PayStatus.PAID), _leave(days[21], pay_status=PayStatus.UNPAID)],
        statuses=statuses
    )

    assert result.working_days == 22
    assert result.present_days == 20
    assert result.paid_leave_days == Decimal("1")
    assert result.unpaid_leave_days == Decimal("1")
    assert result.basic_pay == Decimal("28636.36")
    assert result.leave_deduction == Decimal("1000.00")
    assert result.net_payable == Decimal("27636.36")


def test_hourly_regular_and_overtime_hours():
    """200/h, 300/h overtime: ten 8h days, two of which ran to 10h."""
    days = _working_days(_statuses(JUNE_START, JUNE_END))[:10]
    attendance = [_attendance(d, 8.0) for d in days[:8]] + [_attendance(d, 10.0) for d in days[8:]]
    rule = _rule(salary_type=SalaryType.HOURLY.value, rate=Decimal("200"), overtime_rate=Decimal("300"))

    result = _compute(rule, attendance=attendance)

    assert result.regular_hours == Decimal("80")
    assert result.overtime_hours == Decimal("4")
    assert result.basic_pay == Decimal("16000.00")
    assert result.overtime_pay == Decimal("1200.00")
    assert result.net_payable == Decimal("17200.00")


def test_project_pay_is_flat_and_ignores_overtime():
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    rule = _rule(salary_type=SalaryType.PROJECT.value, rate=Decimal("50000"), overtime_rate=Decimal("500"),
                 bonus=Decimal("2500"))

    result = _compute(rule, attendance=[_attendance(d, 12.0) for d in days[:3]])

    assert result.basic_pay == Decimal("50000.00")
    assert result.overtime_pay == Decimal("0.00")
    assert result.net_payable == Decimal("52500.00")


def test_late_rule_below_threshold_has_no_effect():
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    attendance = [_attendance(d) for d in days[:20]] + [
        _attendance(d, status=AttendanceStatus.LATE) for d in days[20:]
    ]
    rule = _rule(rate=Decimal("22000"), late_rule_enabled=True, late_days_threshold=3)

    result = _compute(rule, attendance=attendance)

    assert result.late_days == 2
    assert result.late_deduction == Decimal("0.00")
    assert result.net_payable == Decimal("22000.00")


def test_zero_late_threshold_needs_at_least_one_late_day():
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    rule = _rule(rate=Decimal("22000"), late_rule_enabled=True, late_days_threshold=0)

    on_time = _compute(rule, attendance=[_attendance(d) for d in days])
    assert on_time.late_deduction == Decimal("0.00")
    assert on_time.net_payable == Decimal("22000.00")

    once_late = _compute(rule, attendance=[_attendance(d) for d in days[1:]] + [
        _attendance(days[0], status=AttendanceStatus.LATE)
    ])
    assert once_late.late_deduction == Decimal("500.00")


@pytest.mark.parametrize("basis, expected_deduction, expected_net", [
    ("prorated", Decimal("454.55"), Decimal("19545.45")),
    ("full", Decimal("500.00"), Decimal("19500.00")),
])
def test_late_deduction_basis(basis, expected_deduction, expected_net):
    """20 of 22 days attended, 3 of them late: half a day's pay is deducted."""
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    attendance = [_attendance(d) for d in days[:17]] + [
        _attendance(d, status=AttendanceStatus.LATE) for d in days[17:20]
    ]
    rule = _rule(rate=Decimal("22000"), late_rule_enabled=True, late_days_threshold=3,
                 equivalent_leave_days=Decimal("0.5"))

    result = _compute(rule, attendance=attendance, late_basis=basis)

    assert result.present_days == 20
    assert result.late_days == 3
    assert result.basic_pay == Decimal("20000.00")
    assert result.late_deduction == expected_deduction
    assert result.net_payable == expected_net


def test_unknown_late_basis_rejected():
    with pytest.raises(ValueError):
        _compute(_rule(), late_basis="weekly")


def test_half_paid_leave_counts_half_toward_pay_and_half_as_unpaid():
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    rule = _rule(rate=Decimal("22000"), leave_rule_enabled=True, per_day_deduction=Decimal("1000"))

    result = _compute(
        rule,
        attendance=[_attendance(d) for d in days[:21]],
        leaves=[_leave(days[21], pay_status=PayStatus.HALF_PAID)]
    )

    assert result.paid_leave_days == Decimal("0.5")
    assert result.unpaid_leave_days == Decimal("0.5")
    assert result.basic_pay == Decimal("21500.00")
    assert result.leave_deduction == Decimal("500.00")
    assert result.net_payable == Decimal("21000.00")


def test_leave_only_counted_on_working_days():
    # Thursday 5 June to Saturday 7 June: only the Thursday is a working day
    rule = _rule(leave_rule_enabled=True, per_day_deduction=Decimal("100"))
    result = _compute(rule, leaves=[_leave(date(2025, 6, 5), date(2025, 6, 7), pay_status=PayStatus.UNPAID)])

    assert result.unpaid_leave_days == Decimal("1")
    assert result.leave_days == 1
    assert result.leave_deduction == Decimal("100.00")


def test_pending_and_rejected_leave_ignored():
    rule = _rule(leave_rule_enabled=True, per_day_deduction=Decimal("100"))
    leaves = [
        _leave(date(2025, 6, 2), pay_status=PayStatus.UNPAID, status=LeaveStatus.PENDING),
        _leave(date(2025, 6, 3), pay_status=PayStatus.UNPAID, status=LeaveStatus.REJECTED),
    ]
    result = _compute(rule, leaves=leaves)
    assert result.leave_days == 0
    assert result.leave_deduction == Decimal("0.00")


def test_overlapping_leaves_count_once_at_best_pay():
    day = date(2025, 6, 2)
    rule = _rule(leave_rule_enabled=True, per_day_deduction=Decimal("100"))
    result = _compute(rule, leaves=[
        _leave(day, pay_status=PayStatus.UNPAID),
        _leave(day, pay_status=PayStatus.PAID),
    ])
    assert result.paid_leave_days == Decimal("1")
    assert result.unpaid_leave_days == Decimal("0")


def test_payable_days_capped_at_working_days():
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    # Present every working day and also on paid leave for one of them
    result = _compute(_rule(), attendance=[_attendance(d) for d in days], leaves=[_leave(days[0])])
    assert result.basic_pay == Decimal("30000.00")


def test_paid_leave_on_a_worked_day_does_not_cover_an_absence():
    """21 days worked, one absence, and paid leave approved for a day already worked."""
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    result = _compute(_rule(), attendance=[_attendance(d) for d in days[:21]], leaves=[_leave(days[0])])

    assert result.present_days == 21
    assert result.paid_leave_days == Decimal("0")
    assert result.leave_days == 0
    assert result.basic_pay == Decimal("28636.36")


def test_unpaid_leave_on_a_worked_day_is_not_deducted():
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    rule = _rule(leave_rule_enabled=True, per_day_deduction=Decimal("1000"))
    result = _compute(
        rule,
        attendance=[_attendance(d) for d in days],
        leaves=[_leave(days[0], pay_status=PayStatus.UNPAID)]
    )

    assert result.unpaid_leave_days == Decimal("0")
    assert result.leave_deduction == Decimal("0.00")
    assert result.net_payable == Decimal("30000.00")


def test_leave_spanning_a_late_day_only_counts_unworked_days():
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    attendance = [_attendance(days[0], status=AttendanceStatus.LATE)]
    result = _compute(_rule(), attendance=attendance, leaves=[_leave(days[0], days[1])])

    assert result.present_days == 1
    assert result.paid_leave_days == Decimal("1")


def test_monthly_with_no_working_days_pays_full_rate():
    start, end = date(2025, 6, 6), date(2025, 6, 7)  # Friday, Saturday
    rule = _rule(late_rule_enabled=True, late_days_threshold=0)

    result = _compute(rule, start=start, end=end)

    assert result.working_days == 0
    assert result.basic_pay == Decimal("30000.00")
    assert result.late_deduction == Decimal("0.00")
    assert any("no working days" in note.lower() for note in result.notes)


def test_holidays_reduce_working_days():
    holidays = {date(2025, 6, 2), date(2025, 6, 3)}
    statuses = _statuses(JUNE_START, JUNE_END, holidays=holidays)
    result = _compute(_rule(), statuses=statuses)
    assert result.working_days == 20


def test_net_floored_at_zero():
    rule = _rule(salary_type=SalaryType.PROJECT.value, rate=Decimal("100"),
                 leave_rule_enabled=True, per_day_deduction=Decimal("1000"))

    result = _compute(rule, leaves=[_leave(date(2025, 6, 2), pay_status=PayStatus.UNPAID)])

    assert result.net_payable == Decimal("0.00")
    assert result.leave_deduction == Decimal("1000.00")
    assert any("floored" in note for note in result.notes)


def test_net_rounds_half_up_once():
    rule = _rule(salary_type=SalaryType.PROJECT.value, rate=Decimal("100.005"))
    assert _compute(rule).net_payable == Decimal("100.01")


def test_inputs_rounding_identically_give_identical_net():
    first = _compute(_rule(salary_type=SalaryType.PROJECT.value, rate=Decimal("1000"), bonus=Decimal("100.001")))
    second = _compute(_rule(salary_type=SalaryType.PROJECT.value, rate=Decimal("1000"), bonus=Decimal("100.004")))
    assert first.net_payable == second.net_payable == Decimal("1100.00")


def test_net_computed_from_unrounded_terms():
    # 1000 over 3 working days with 1 attended: 333.333...
    start, end = date(2025, 6, 1), date(2025, 6, 3)
    rule = _rule(rate=Decimal("1000"), bonus=Decimal("0.004"))
    result = _compute(rule, attendance=[_attendance(start)], start=start, end=end)

    assert result.basic_pay == Decimal("333.33")
    # 333.3333 + 0.004 = 333.3373 -> 333.34, whereas rounded terms would give 333.33
    assert result.net_payable == Decimal("333.34")


def test_attendance_outside_period_and_duplicates_ignored():
    day = date(2025, 6, 2)
    attendance = [
        _attendance(day),
        _attendance(day),
        _attendance(date(2025, 7, 1)),
        _attendance(date(2025, 6, 3), status=AttendanceStatus.ABSENT),
    ]
    result = _compute(_rule(), attendance=attendance)
    assert result.present_days == 1


def test_result_components_itemise_non_zero_terms():
    days = _working_days(_statuses(JUNE_START, JUNE_END))
    rule = _rule(leave_rule_enabled=True, per_day_deduction=Decimal("1000"), bonus=Decimal("500"))
    result = _compute(
        rule,
        attendance=[_attendance(d) for d in days[:21]],
        leaves=[_leave(days[21], pay_status=PayStatus.UNPAID)]
    )

    lines = {line["name"]: line for line in result_components(result)}
    assert set(lines) == {"Basic Pay", "Bonus", "Leave Deduction"}
    assert lines["Leave Deduction"]["component_type"] == "deduction"
    assert lines["Bonus"]["amount"] == Decimal("500.00")
