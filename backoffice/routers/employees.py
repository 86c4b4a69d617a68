from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from backoffice.database import get_db
from backoffice.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate, SalaryRuleAssignment
from backoffice.services import employee_service

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=List[EmployeeResponse])
def list_employees(include_inactive: bool = False, db: Session = Depends(get_db)):
    return employee_service.list_employees(db, include_inactive=include_inactive)


@router.post("", response_model=EmployeeResponse, status_code=201)
def create_employee(request: EmployeeCreate, db: Session = Depends(get_db)):
    return employee_service.create_employee(db, request.model_dump())


@router.get("/{employee_id}", response_model=EmployeeResponse)
def get_employee(employee_id: int, db: Session = Depends(get_db)):
    return employee_service.get_employee(db, employee_id)


@router.patch("/{employee_id}", response_model=EmployeeResponse)
def update_employee(employee_id: int, request: EmployeeUpdate, db: Session = Depends(get_db)):
    return employee_service.update_employee(db, employee_id, request.model_dump(exclude_unset=True))


@router.put("/{employee_id}/salary-rule", response_model=EmployeeResponse)
def assign_salary_rule(employee_id: int, request: SalaryRuleAssignment, db: Session = Depends(get_db)):
    return employee_service.assign_salary_rule(
        db, employee_id, request.salary_rule_id, assigned_by=request.assigned_by
    )
