from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import (
    DeleteResponse,
    RestrictedItemCreate,
    RestrictedItemRead,
    RestrictedItemUpdate,
    RestrictedTransactionRead,
    SerialUnitCreate,
    SerialUnitIssueRequest,
    SerialUnitRead,
)
from app.security import require_superuser, require_user
from app.services.restricted_inventory import (
    create_item,
    create_serial_unit,
    delete_item,
    get_item,
    get_serial_unit,
    issue_serial,
    list_items,
    list_serial_units,
    list_transactions,
    return_serial,
    update_item,
)

router = APIRouter(
    prefix="/api/restricted-inventory",
    tags=["restricted-inventory"],
    dependencies=[Depends(require_user)],
)


@router.get("/items", response_model=list[RestrictedItemRead])
def list_items_endpoint(db: Session = Depends(get_db)) -> list[RestrictedItemRead]:
    return list_items(db)


@router.post("/items", response_model=RestrictedItemRead, status_code=status.HTTP_201_CREATED)
def create_item_endpoint(payload: RestrictedItemCreate, db: Session = Depends(get_db)) -> RestrictedItemRead:
    return create_item(db, payload)


@router.get("/items/{item_code}", response_model=RestrictedItemRead)
def get_item_endpoint(item_code: str, db: Session = Depends(get_db)) -> RestrictedItemRead:
    return get_item(db, item_code)


@router.put("/items/{item_code}", response_model=RestrictedItemRead)
def update_item_endpoint(
    item_code: str,
    payload: RestrictedItemUpdate,
    db: Session = Depends(get_db),
) -> RestrictedItemRead:
    return update_item(db, item_code, payload)


@router.delete(
    "/items/{item_code}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_superuser)],
)
def delete_item_endpoint(item_code: str, db: Session = Depends(get_db)) -> DeleteResponse:
    delete_item(db, item_code)
    return DeleteResponse(message="Deleted", details={"item_code": item_code})


@router.get("/items/{item_code}/serial-units", response_model=list[SerialUnitRead])
def list_serial_units_endpoint(item_code: str, db: Session = Depends(get_db)) -> list[SerialUnitRead]:
    return list_serial_units(db, item_code)


@router.post(
    "/items/{item_code}/serial-units",
    response_model=SerialUnitRead,
    status_code=status.HTTP_201_CREATED,
)
def create_serial_unit_endpoint(
    item_code: str,
    payload: SerialUnitCreate,
    db: Session = Depends(get_db),
) -> SerialUnitRead:
    return create_serial_unit(db, item_code, payload)


@router.get("/serial-units/{serial_unit_id}", response_model=SerialUnitRead)
def get_serial_unit_endpoint(serial_unit_id: int, db: Session = Depends(get_db)) -> SerialUnitRead:
    return get_serial_unit(db, serial_unit_id)


@router.post("/serial-units/{serial_unit_id}/issue", response_model=SerialUnitRead)
def issue_serial_endpoint(
    serial_unit_id: int,
    payload: SerialUnitIssueRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> SerialUnitRead:
    request.state.employee_id = payload.employee_id
    return issue_serial(db, serial_unit_id, payload.employee_id)


@router.post("/serial-units/{serial_unit_id}/return", response_model=SerialUnitRead)
def return_serial_endpoint(serial_unit_id: int, db: Session = Depends(get_db)) -> SerialUnitRead:
    return return_serial(db, serial_unit_id)


@router.get("/transactions", response_model=list[RestrictedTransactionRead])
def list_transactions_endpoint(
    item_code: str | None = Query(default=None, max_length=64),
    employee_id: str | None = Query(default=None, max_length=32),
    serial_unit_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> list[RestrictedTransactionRead]:
    return list_transactions(db, item_code=item_code, employee_id=employee_id, serial_unit_id=serial_unit_id)
