from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from backoffice.database import get_db
from backoffice.schemas.salary_rule import SalaryRuleCreate, SalaryRuleResponse, SalaryRuleUpdate
from backoffice.services import salary_rule_service

router = APIRouter(prefix="/salary-rules", tags=["salary rules"])


@router.get("", response_model=List[SalaryRuleResponse])
def list_salary_rules(include_inactive: bool = False, db: Session = Depends(get_db)):
    return salary_rule_service.list_salary_rules(db, include_inactive=include_inactive)


@router.post("", response_model=SalaryRuleResponse, status_code=201)
def create_salary_rule(request: SalaryRuleCreate, db: Session = Depends(get_db)):
    data = request.model_dump(exclude={"created_by"})
    return salary_rule_service.create_salary_rule(db, data, created_by=request.created_by)


@router.get("/{rule_id}", response_model=SalaryRuleResponse)
def get_salary_rule(rule_id: int, db: Session = Depends(get_db)):
    return salary_rule_service.get_salary_rule(db, rule_id)


@router.patch("/{rule_id}", response_model=SalaryRuleResponse)
def update_salary_rule(rule_id: int, request: SalaryRuleUpdate, db: Session = Depends(get_db)):
    changes = request.model_dump(exclude_unset=True, exclude={"updated_by"})
    return salary_rule_service.update_salary_rule(db, rule_id, changes, updated_by=request.updated_by)


@router.delete("/{rule_id}", response_model=SalaryRuleResponse)
def deactivate_salary_rule(rule_id: int, db: Session = Depends(get_db)):
    """Rules are deactivated, never deleted; payroll history keeps its snapshot."""
    return salary_rule_service.deactivate_salary_rule(db, rule_id)
