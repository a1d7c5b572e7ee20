from __future__ import annotations

import logging
import secrets
import string
import time
from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import ApiError, not_found, validation_failed
from app.models import Employee
from app.schemas import EmployeeCreate

logger = logging.getLogger("app.employees")

DEFAULT_EMPLOYEE_STATUS = "active"
LEFT_EMPLOYEE_STATUS = "left"
_BASE36_ALPHABET = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_employee_id() -> str:
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(4))
    return f"SEC-{timestamp}{suffix}"


def normalize_employee_payload(raw: dict[str, Any]) -> dict[str, Any]:
    """Collapse the legacy field spellings into the stored column names.

    `dob` -> `date_of_birth`, `employment_status` -> `status`,
    `name` or `first_name` + `last_name` -> `full_name`.
    """
    data = {key: value for key, value in raw.items() if value is not None}

    dob = data.pop("dob", None)
    if dob is not None and "date_of_birth" not in data:
        data["date_of_birth"] = dob

    employment_status = data.pop("employment_status", None)
    if "status" not in data and employment_status:
        data["status"] = employment_status
    data["status"] = (data.get("status") or DEFAULT_EMPLOYEE_STATUS).strip().lower()

    name = data.pop("name", None)
    first_name = data.pop("first_name", None)
    last_name = data.pop("last_name", None)
    full_name = (data.get("full_name") or name or f"{first_name or ''} {last_name or ''}").strip()
    data["full_name"] = full_name
    return data


def create_employee(db: Session, payload: EmployeeCreate) -> Employee:
    data = normalize_employee_payload(payload.model_dump())
    if not data["full_name"]:
        raise validation_failed("VALIDATION_ERROR", "Employee name is required.")

    employee = Employee(employee_id=generate_employee_id(), **data)
    db.add(employee)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ApiError(status_code=409, code="DUPLICATE_EMPLOYEE_ID", message="Employee id collision, retry.") from exc
    db.refresh(employee)
    logger.info("employee_created", extra={"employee_id": employee.employee_id})
    return employee


def get_employee(db: Session, employee_id: str) -> Employee:
    employee = db.scalar(select(Employee).where(Employee.employee_id == employee_id))
    if employee is None:
        raise not_found("EMPLOYEE_NOT_FOUND", f"Employee with ID {employee_id} not found")
    return employee


def ensure_employees_exist(db: Session, employee_ids: Iterable[str]) -> None:
    wanted = set(employee_ids)
    if not wanted:
        return
    found = set(db.scalars(select(Employee.employee_id).where(Employee.employee_id.in_(wanted))).all())
    missing = sorted(wanted - found)
    if missing:
        raise not_found("EMPLOYEE_NOT_FOUND", f"Employees not found: {', '.join(missing)}")


def list_employees(
    db: Session,
    *,
    status: str | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> tuple[list[Employee], int]:
    filters = []
    if status:
        filters.append(Employee.status == status.strip().lower())
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(or_(Employee.full_name.ilike(pattern), Employee.employee_id.ilike(pattern)))

    stmt = select(Employee).where(*filters).order_by(Employee.id.desc()).offset(skip).limit(limit)
    total = db.scalar(select(func.count()).select_from(Employee).where(*filters)) or 0
    return list(db.scalars(stmt).all()), int(total)


def mark_employee_left(db: Session, employee_id: str, *, reason: str | None) -> Employee:
    employee = get_employee(db, employee_id)
    employee.status = LEFT_EMPLOYEE_STATUS
    employee.cause_of_discharge = reason
    db.commit()
    db.refresh(employee)
    logger.info("employee_marked_left", extra={"employee_id": employee_id})
    return employee
