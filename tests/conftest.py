import pytest
import os
import itertools
from datetime import datetime, time, timedelta
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from backoffice.database import Base, configure_sqlite, get_db
from backoffice.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = configure_sqlite(create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False)

@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """
    Clean database session per test. Service-level commits only release a
    SAVEPOINT; the outer transaction is rolled back afterwards.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def make_rule(db_session):
    """Factory for salary rules; defaults to a 30000/month rule with no extras."""
    from backoffice.models.salary_rule import SalaryRule, SalaryType

    def _make_rule(**overrides):
        data = {
            "title": "Standard Monthly",
            "salary_type": SalaryType.MONTHLY.value,
            "rate": Decimal("30000"),
            "overtime_rate": Decimal("0"),
            "bonus": Decimal("0"),
        }
        data.update(overrides)
        rule = SalaryRule(**data)
        db_session.add(rule)
        db_session.commit()
        return rule
    return _make_rule

@pytest.fixture(scope="function")
def make_employee(db_session):
    """Factory for employees on a 09:00, 8 hour shift."""
    from backoffice.models.employee import Employee, EmployeeRole
    counter = itertools.count(1)

    def _make_employee(rule=None, role=EmployeeRole.EMPLOYEE, **overrides):
        n = next(counter)
        data = {
            "full_name": f"Employee {n}",
            "email": f"employee{n}@example.com",
            "role": role.value,
            "salary_rule_id": rule.id if rule else None,
            "shift_start": time(9, 0),
            "shift_hours": 8.0,
        }
        data.update(overrides)
        employee = Employee(**data)
        db_session.add(employee)
        db_session.commit()
        return employee
    return _make_employee

@pytest.fixture(scope="function")
def record_attendance(db_session):
    """Factory for closed attendance records."""
    from backoffice.models.attendance import Attendance, AttendanceStatus

    def _record(employee, day, hours=8.0, status=AttendanceStatus.PRESENT, start=time(9, 0), open_session=False):
        clock_in = datetime.combine(day, start)
        row = Attendance(
            employee_id=employee.id,
            date=day,
            clock_in=clock_in,
            clock_out=None if open_session else clock_in + timedelta(hours=hours),
            total_hours=0.0 if open_session else hours,
            status=status.value
        )
        db_session.add(row)
        db_session.commit()
        return row
    return _record

@pytest.fixture(scope="function")
def approved_leave(db_session):
    """Factory for already-approved leave requests."""
    from backoffice.models.leave_request import LeaveRequest, LeaveStatus, PayStatus

    def _approved_leave(employee, start, end=None, pay_status=PayStatus.PAID):
        end = end or start
        leave = LeaveRequest(
            employee_id=employee.id,
            leave_type=pay_status.value,
            pay_status=pay_status.value,
            start_date=start,
            end_date=end,
            total_days=(end - start).days + 1,
            status=LeaveStatus.APPROVED.value
        )
        db_session.add(leave)
        db_session.commit()
        return leave
    return _approved_leave

@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
