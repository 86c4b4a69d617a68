"""
Salary rule management.

Rules are edited in place; payroll records keep a snapshot of the terms they
were computed with, so edits never rewrite history. Rules are deactivated
rather than deleted.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from backoffice.core.exceptions import NotFoundError
from backoffice.models.salary_rule import SalaryRule, SalaryType
from backoffice.services.audit import AuditService

logger = logging.getLogger(__name__)


def create_salary_rule(db: Session, data: Dict[str, Any], created_by: Optional[int] = None) -> SalaryRule:
    data = dict(data)
    data["salary_type"] = SalaryType(data.get("salary_type", SalaryType.MONTHLY)).value
    rule = SalaryRule(created_by=created_by, **data)
    db.add(rule)
    try:
        db.flush()
        AuditService.log(
            db,
            action="create_salary_rule",
            entity_type="salary_rule",
            entity_id=rule.id,
            actor_id=created_by,
            details={"title": rule.title},
            after_state=rule.snapshot()
        )
        db.commit()
        db.refresh(rule)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Salary rule {rule.id} created ({rule.salary_type})")
    return rule


def get_salary_rule(db: Session, rule_id: int) -> SalaryRule:
    rule = db.get(SalaryRule, rule_id)
    if not rule:
        raise NotFoundError("Salary rule", rule_id)
    return rule


def list_salary_rules(db: Session, include_inactive: bool = False) -> List[SalaryRule]:
    query = db.query(SalaryRule)
    if not include_inactive:
        query = query.filter(SalaryRule.is_active.is_(True))
    return query.order_by(SalaryRule.id).all()


def update_salary_rule(db: Session, rule_id: int, changes: Dict[str, Any], updated_by: Optional[int] = None) -> SalaryRule:
    rule = get_salary_rule(db, rule_id)
    before_state = rule.snapshot()

    for field, value in changes.items():
        if field == "salary_type" and value is not None:
            value = SalaryType(value).value
        setattr(rule, field, value)

    try:
        db.flush()
        AuditService.log(
            db,
            action="update_salary_rule",
            entity_type="salary_rule",
            entity_id=rule.id,
            actor_id=updated_by,
            details={"fields": sorted(changes)},
            before_state=before_state,
            after_state=rule.snapshot()
        )
        db.commit()
        db.refresh(rule)
    except Exception:
        db.rollback()
        raise
    return rule


def deactivate_salary_rule(db: Session, rule_id: int, updated_by: Optional[int] = None) -> SalaryRule:
    return update_salary_rule(db, rule_id, {"is_active": False}, updated_by=updated_by)
