from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import conflict, not_found
from app.models import (
    RestrictedInventoryItem,
    RestrictedSerialUnit,
    RestrictedTransaction,
    SerialUnitStatus,
)
from app.schemas import RestrictedItemCreate, RestrictedItemUpdate, SerialUnitCreate
from app.services import custody
from app.services.concurrency import lock_for_update, run_with_retry
from app.services.employees import get_employee

logger = logging.getLogger("app.restricted_inventory")


def list_items(db: Session) -> list[RestrictedInventoryItem]:
    return list(db.scalars(select(RestrictedInventoryItem).order_by(RestrictedInventoryItem.item_code.asc())).all())


def get_item(db: Session, item_code: str) -> RestrictedInventoryItem:
    item = db.scalar(select(RestrictedInventoryItem).where(RestrictedInventoryItem.item_code == item_code))
    if item is None:
        raise not_found("ITEM_NOT_FOUND", "Item not found")
    return item


def create_item(db: Session, payload: RestrictedItemCreate) -> RestrictedInventoryItem:
    item = RestrictedInventoryItem(**payload.model_dump())
    db.add(item)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise conflict("DUPLICATE_ITEM_CODE", f"Item code {payload.item_code} already exists.") from exc
    db.refresh(item)
    logger.info("restricted_item_created", extra={"item_code": item.item_code})
    return item


def update_item(db: Session, item_code: str, payload: RestrictedItemUpdate) -> RestrictedInventoryItem:
    changes = payload.model_dump(exclude_unset=True)

    def _unit_of_work() -> RestrictedInventoryItem:
        item = get_item(db, item_code)
        for field, value in changes.items():
            setattr(item, field, value)
        db.commit()
        return item

    item = run_with_retry(db, _unit_of_work, operation="restricted_item_update")
    db.refresh(item)
    logger.info("restricted_item_updated", extra={"item_code": item_code})
    return item


def delete_item(db: Session, item_code: str) -> None:
    item = get_item(db, item_code)
    unit_count = db.scalar(
        select(func.count()).select_from(RestrictedSerialUnit).where(RestrictedSerialUnit.item_code == item_code)
    )
    if unit_count:
        # Serial units are referenced by the ledger, which is never deleted.
        raise conflict("ITEM_HAS_SERIAL_UNITS", f"Item {item_code} still has {unit_count} serial unit(s).")
    db.delete(item)
    db.commit()
    logger.info("restricted_item_deleted", extra={"item_code": item_code})


def list_serial_units(db: Session, item_code: str) -> list[RestrictedSerialUnit]:
    get_item(db, item_code)
    return list(
        db.scalars(
            select(RestrictedSerialUnit)
            .where(RestrictedSerialUnit.item_code == item_code)
            .order_by(RestrictedSerialUnit.serial_number.asc())
        ).all()
    )


def create_serial_unit(db: Session, item_code: str, payload: SerialUnitCreate) -> RestrictedSerialUnit:
    get_item(db, item_code)
    unit = RestrictedSerialUnit(
        item_code=item_code,
        serial_number=payload.serial_number,
        notes=payload.notes,
        status=SerialUnitStatus.IN_STOCK,
        issued_to_employee_id=None,
    )
    db.add(unit)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise conflict(
            "DUPLICATE_SERIAL_NUMBER",
            f"Serial number {payload.serial_number} already exists for item {item_code}.",
        ) from exc
    db.refresh(unit)
    logger.info("serial_unit_created", extra={"item_code": item_code, "serial_unit_id": unit.id})
    return unit


def get_serial_unit(db: Session, serial_unit_id: int) -> RestrictedSerialUnit:
    unit = db.get(RestrictedSerialUnit, serial_unit_id)
    if unit is None:
        raise not_found("SERIAL_UNIT_NOT_FOUND", "Serial unit not found")
    return unit


def _apply_custody_change(db: Session, serial_unit_id: int, transition_for) -> RestrictedSerialUnit:
    # Unit update and ledger append share one transaction under the unit's row lock.
    unit = db.scalar(lock_for_update(select(RestrictedSerialUnit).where(RestrictedSerialUnit.id == serial_unit_id)))
    if unit is None:
        raise not_found("SERIAL_UNIT_NOT_FOUND", "Serial unit not found")

    transition = transition_for(custody.custody_state_of(unit))
    custody.apply_state(unit, transition.after)
    db.add(
        RestrictedTransaction(
            item_code=unit.item_code,
            employee_id=transition.ledger_employee_id,
            serial_unit_id=unit.id,
            action=transition.action,
        )
    )
    db.commit()
    return unit


def issue_serial(db: Session, serial_unit_id: int, employee_id: str) -> RestrictedSerialUnit:
    get_employee(db, employee_id)
    unit = run_with_retry(
        db,
        lambda: _apply_custody_change(db, serial_unit_id, lambda state: custody.issue(state, employee_id)),
        operation="serial_unit_issue",
    )
    db.refresh(unit)
    logger.info(
        "serial_unit_issued",
        extra={"serial_unit_id": serial_unit_id, "item_code": unit.item_code, "employee_id": employee_id},
    )
    return unit


def return_serial(db: Session, serial_unit_id: int) -> RestrictedSerialUnit:
    unit = run_with_retry(
        db,
        lambda: _apply_custody_change(db, serial_unit_id, custody.return_unit),
        operation="serial_unit_return",
    )
    db.refresh(unit)
    logger.info("serial_unit_returned", extra={"serial_unit_id": serial_unit_id, "item_code": unit.item_code})
    return unit


def list_transactions(
    db: Session,
    *,
    item_code: str | None = None,
    employee_id: str | None = None,
    serial_unit_id: int | None = None,
) -> list[RestrictedTransaction]:
    stmt = select(RestrictedTransaction).order_by(RestrictedTransaction.id.desc())
    if item_code:
        stmt = stmt.where(RestrictedTransaction.item_code == item_code)
    if employee_id:
        stmt = stmt.where(RestrictedTransaction.employee_id == employee_id)
    if serial_unit_id is not None:
        stmt = stmt.where(RestrictedTransaction.serial_unit_id == serial_unit_id)
    return list(db.scalars(stmt).all())
