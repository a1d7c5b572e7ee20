from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import EmployeeCreate, EmployeeListResponse, EmployeeMarkLeftRequest, EmployeeRead
from app.security import require_user
from app.services.employees import create_employee, get_employee, list_employees, mark_employee_left

router = APIRouter(tags=["employees"], dependencies=[Depends(require_user)])


@router.post("/api/employees", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
def create_employee_endpoint(payload: EmployeeCreate, db: Session = Depends(get_db)) -> EmployeeRead:
    return create_employee(db, payload)


@router.get("/api/employees", response_model=EmployeeListResponse)
def list_employees_endpoint(
    status_filter: str | None = Query(default=None, alias="status", max_length=32),
    search: str | None = Query(default=None, max_length=255),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> EmployeeListResponse:
    employees, total = list_employees(db, status=status_filter, search=search, skip=skip, limit=limit)
    return EmployeeListResponse(
        employees=[EmployeeRead.model_validate(employee) for employee in employees],
        total=total,
    )


@router.get("/api/employees/{employee_id}", response_model=EmployeeRead)
def get_employee_endpoint(employee_id: str, db: Session = Depends(get_db)) -> EmployeeRead:
    return get_employee(db, employee_id)


@router.post("/api/employees/{employee_id}/mark-left", response_model=EmployeeRead)
def mark_employee_left_endpoint(
    employee_id: str,
    payload: EmployeeMarkLeftRequest,
    db: Session = Depends(get_db),
) -> EmployeeRead:
    return mark_employee_left(db, employee_id, reason=payload.reason)
