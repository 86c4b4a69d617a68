from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.core.exceptions import ConflictError, NotFoundError
from backoffice.models.employee import Employee, EmployeeRole
from backoffice.services.audit import AuditService
from backoffice.services.salary_rule_service import get_salary_rule

logger = logging.getLogger(__name__)


def create_employee(db: Session, data: Dict[str, Any]) -> Employee:
    data = dict(data)
    data["role"] = EmployeeRole(data.get("role", EmployeeRole.EMPLOYEE)).value
    if data.get("salary_rule_id") is not None:
        get_salary_rule(db, data["salary_rule_id"])

    employee = Employee(**data)
    try:
        with db.begin_nested():
            db.add(employee)
    except IntegrityError:
        raise ConflictError(f"Email {data.get('email')} is already registered")

    try:
        db.commit()
        db.refresh(employee)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Employee {employee.id} created")
    return employee


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee", employee_id)
    return employee


def list_employees(db: Session, include_inactive: bool = False) -> List[Employee]:
    query = db.query(Employee)
    if not include_inactive:
        query = query.filter(Employee.is_active.is_(True))
    return query.order_by(Employee.id).all()


def update_employee(db: Session, employee_id: int, changes: Dict[str, Any]) -> Employee:
    employee = get_employee(db, employee_id)
    for field, value in changes.items():
        if field == "role" and value is not None:
            value = EmployeeRole(value).value
        setattr(employee, field, value)
    try:
        db.commit()
        db.refresh(employee)
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email is already registered")
    except Exception:
        db.rollback()
        raise
    return employee


def assign_salary_rule(
    db: Session,
    employee_id: int,
    rule_id: Optional[int],
    assigned_by: Optional[int] = None
) -> Employee:
    """Point an employee at a salary rule; ``None`` unassigns."""
    employee = get_employee(db, employee_id)
    if rule_id is not None:
        get_salary_rule(db, rule_id)

    previous = employee.salary_rule_id
    employee.salary_rule_id = rule_id
    AuditService.log(
        db,
        action="assign_salary_rule",
        entity_type="employee",
        entity_id=employee.id,
        actor_id=assigned_by,
        details={},
        before_state={"salary_rule_id": previous},
        after_state={"salary_rule_id": rule_id}
    )
    try:
        db.commit()
        db.refresh(employee)
    except Exception:
        db.rollback()
        raise
    return employee
