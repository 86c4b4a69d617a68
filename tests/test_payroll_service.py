import pytest
from datetime import date, timedelta
from decimal import Decimal
from sqlalchemy.exc import OperationalError

from backoffice.core.exceptions import (
    DataFetchTimeout,
    DuplicatePayrollPeriod,
    InvalidDateRange,
    MissingSalaryRule,
    NotFoundError,
    StaleAttendanceData,
)
from backoffice.models.attendance import AttendanceStatus
from backoffice.models.audit_log import AuditLog
from backoffice.models.leave_request import PayStatus
from backoffice.models.payroll import Payroll, PayrollStatus
from backoffice.models.salary_rule import SalaryType
from backoffice.services import leave_service, payroll_service
from backoffice.services.day_status import DayStatusResolver

JUNE_START = date(2025, 6, 1)
JUNE_END = date(2025, 6, 30)


def _june_working_days():
    days = []
    current = JUNE_START
    while current <= JUNE_END:
        if current.weekday() not in (4, 5):
            days.append(current)
        current += timedelta(days=1)
    return days


@pytest.fixture
def monthly_employee(make_rule, make_employee, record_attendance, approved_leave):
    """30000/month, 20 days present, one paid and one unpaid leave day in June 2025."""
    rule = make_rule(leave_rule_enabled=True, per_day_deduction=Decimal("1000"))
    employee = make_employee(rule=rule)
    days = _june_working_days()
    for day in days[:20]:
        record_attendance(employee, day)
    approved_leave(employee, days[20], pay_status=PayStatus.PAID)
    approved_leave(employee, days[21], pay_status=PayStatus.UNPAID)
    return employee


def test_run_payroll_persists_record(db_session, monthly_employee):
    result = payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END)

    assert result["status"] == PayrollStatus.PENDING.value
    assert result["working_days"] == 22
    assert result["basic_pay"] == Decimal("28636.36")
    assert result["leave_deduction"] == Decimal("1000.00")
    assert result["net_payable"] == Decimal("27636.36")

    payroll = db_session.get(Payroll, result["id"])
    assert payroll.rule_snapshot["salary_type"] == SalaryType.MONTHLY.value
    assert {c.name for c in payroll.components} == {"Basic Pay", "Leave Deduction"}


def test_hourly_payroll_from_attendance(db_session, make_rule, make_employee, record_attendance):
    rule = make_rule(salary_type=SalaryType.HOURLY.value, rate=Decimal("200"), overtime_rate=Decimal("300"))
    employee = make_employee(rule=rule)
    days = _june_working_days()[:10]
    for day in days[:8]:
        record_attendance(employee, day, hours=8.0)
    for day in days[8:]:
        record_attendance(employee, day, hours=10.0)

    result = payroll_service.run_payroll(db_session, employee.id, JUNE_START, JUNE_END)

    assert result["basic_pay"] == Decimal("16000.00")
    assert result["overtime_pay"] == Decimal("1200.00")
    assert result["net_payable"] == Decimal("17200.00")


def test_recomputing_paid_payroll_rejected_and_record_unchanged(db_session, monthly_employee, record_attendance):
    first = payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END)
    payroll_service.mark_payroll_paid(db_session, first["id"], paid_by=99)

    # New data that would change the figures
    record_attendance(monthly_employee, _june_working_days()[20], status=AttendanceStatus.PRESENT)

    with pytest.raises(DuplicatePayrollPeriod):
        payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END, recompute=True)

    payroll = db_session.get(Payroll, first["id"])
    db_session.refresh(payroll)
    assert payroll.status == PayrollStatus.PAID.value
    assert payroll.net_payable == Decimal("27636.36")
    assert db_session.query(Payroll).count() == 1

    audit = db_session.query(AuditLog).filter(
        AuditLog.action == "anomaly_rejected_payroll_recomputation"
    ).first()
    assert audit is not None
    assert audit.entity_id == first["id"]


def test_pending_payroll_requires_recompute_flag(db_session, monthly_employee):
    first = payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END)

    with pytest.raises(DuplicatePayrollPeriod):
        payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END)

    # A bonus granted before the payroll was paid out
    monthly_employee.salary_rule.bonus = Decimal("500")
    db_session.commit()
    second = payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END, recompute=True)

    assert second["id"] == first["id"]
    assert second["bonus"] == Decimal("500.00")
    assert second["net_payable"] == Decimal("28136.36")
    payroll = db_session.get(Payroll, first["id"])
    db_session.refresh(payroll)
    assert payroll.rule_snapshot["bonus"] == "500.00"
    assert {c.name for c in payroll.components} == {"Basic Pay", "Bonus", "Leave Deduction"}
    assert db_session.query(Payroll).count() == 1


def test_unique_constraint_maps_to_duplicate(db_session, monthly_employee, monkeypatch):
    payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END)

    # Simulate a concurrent run that checked before the first insert landed
    monkeypatch.setattr(payroll_service, "_find_payroll", lambda *args: None)

    with pytest.raises(DuplicatePayrollPeriod):
        payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END)
    assert db_session.query(Payroll).count() == 1


def test_open_session_blocks_payroll(db_session, make_rule, make_employee, record_attendance):
    employee = make_employee(rule=make_rule())
    record_attendance(employee, date(2025, 6, 2))
    record_attendance(employee, date(2025, 6, 3), open_session=True)

    with pytest.raises(StaleAttendanceData) as exc:
        payroll_service.run_payroll(db_session, employee.id, JUNE_START, JUNE_END)

    assert exc.value.details["open_dates"] == ["2025-06-03"]
    assert db_session.query(Payroll).count() == 0


def test_missing_salary_rule(db_session, make_employee):
    employee = make_employee()
    with pytest.raises(MissingSalaryRule):
        payroll_service.run_payroll(db_session, employee.id, JUNE_START, JUNE_END)


def test_inactive_salary_rule_counts_as_missing(db_session, make_rule, make_employee):
    employee = make_employee(rule=make_rule(is_active=False))
    with pytest.raises(MissingSalaryRule):
        payroll_service.run_payroll(db_session, employee.id, JUNE_START, JUNE_END)


def test_unknown_employee(db_session):
    with pytest.raises(NotFoundError):
        payroll_service.run_payroll(db_session, 4242, JUNE_START, JUNE_END)


def test_reversed_period(db_session, monthly_employee):
    with pytest.raises(InvalidDateRange):
        payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_END, JUNE_START)


def test_fetch_timeout_aborts_before_writing(db_session, monthly_employee, monkeypatch):
    def timed_out(self, start, end):
        raise OperationalError("SELECT ...", {}, Exception("canceling statement due to statement timeout"))

    monkeypatch.setattr(DayStatusResolver, "resolve_period", timed_out)

    with pytest.raises(DataFetchTimeout) as exc:
        payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END)
    assert exc.value.status_code == 504
    assert db_session.query(Payroll).count() == 0


def test_late_basis_override(db_session, make_rule, make_employee, record_attendance):
    rule = make_rule(rate=Decimal("22000"), late_rule_enabled=True, late_days_threshold=3)
    employee = make_employee(rule=rule)
    days = _june_working_days()
    for day in days[:17]:
        record_attendance(employee, day)
    for day in days[17:20]:
        record_attendance(employee, day, status=AttendanceStatus.LATE)

    result = payroll_service.run_payroll(db_session, employee.id, JUNE_START, JUNE_END, late_basis="full")

    assert result["late_deduction"] == Decimal("500.00")
    assert result["net_payable"] == Decimal("19500.00")


def test_mark_paid_twice_conflicts(db_session, monthly_employee):
    from backoffice.core.exceptions import AppException

    result = payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END)
    paid = payroll_service.mark_payroll_paid(db_session, result["id"])
    assert paid["status"] == PayrollStatus.PAID.value
    assert paid["paid_at"] is not None

    with pytest.raises(AppException) as exc:
        payroll_service.mark_payroll_paid(db_session, result["id"])
    assert exc.value.status_code == 409


def test_bulk_payroll_collects_errors(db_session, monthly_employee, make_employee):
    no_rule = make_employee()

    summary = payroll_service.calculate_bulk_payroll(db_session, JUNE_START, JUNE_END)

    assert summary["processed"] == 1
    assert summary["errors"] == 1
    assert summary["error_details"][0]["employee_id"] == no_rule.id
    assert summary["error_details"][0]["code"] == "MISSING_SALARY_RULE"


def test_history_and_details(db_session, monthly_employee):
    result = payroll_service.run_payroll(db_session, monthly_employee.id, JUNE_START, JUNE_END)

    history = payroll_service.get_employee_payroll_history(db_session, monthly_employee.id)
    assert [p["id"] for p in history] == [result["id"]]

    details = payroll_service.get_payroll_details(db_session, result["id"])
    assert details["rule_snapshot"]["leave_rule"]["enabled"] is True
    assert {c["name"] for c in details["components"]} == {"Basic Pay", "Leave Deduction"}

    with pytest.raises(NotFoundError):
        payroll_service.get_payroll_details(db_session, 987654)


def test_leave_approved_after_clock_in_does_not_double_count(db_session, make_rule, make_employee, record_attendance):
    rule = make_rule(leave_rule_enabled=True, per_day_deduction=Decimal("1000"))
    employee = make_employee(rule=rule)
    days = _june_working_days()
    for day in days[:21]:
        record_attendance(employee, day)

    # Unpaid leave for a day already worked, approved after the fact
    leave = leave_service.create_leave_request(
        db_session, employee.id, days[0], days[0], pay_status=PayStatus.UNPAID
    )
    leave_service.decide_leave_request(db_session, leave.id, approve=True, decided_by=1)

    result = payroll_service.run_payroll(db_session, employee.id, JUNE_START, JUNE_END)

    assert result["present_days"] == 21
    assert result["basic_pay"] == Decimal("28636.36")
    assert result["leave_deduction"] == Decimal("0.00")
    assert result["net_payable"] == Decimal("28636.36")
