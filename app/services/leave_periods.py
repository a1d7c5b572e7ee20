from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import conflict, not_found, validation_failed
from app.models import Employee, LeavePeriod
from app.schemas import LeavePeriodAlert, LeavePeriodCreate, LeavePeriodUpdate
from app.services.concurrency import lock_for_update, run_with_retry
from app.services.dates import days_until, neighbour_days
from app.services.employees import get_employee
from app.settings import get_settings

logger = logging.getLogger("app.leave_periods")

ALERT_MESSAGE = "Leave period ending soon"


@dataclass(frozen=True, slots=True)
class LeaveEntry:
    employee_id: str
    day: date
    leave_type: str
    note: str | None = None


class ReconcileOutcome(str, enum.Enum):
    EXTENDED_FORWARD = "extended_forward"
    EXTENDED_BACKWARD = "extended_backward"
    CREATED = "created"
    ALREADY_COVERED = "already_covered"


def default_reason(leave_type: str) -> str:
    return f"Auto-created from attendance ({leave_type})"


def _lock_employee(db: Session, employee_id: str) -> None:
    # The employee row is the mutual-exclusion key for every period of that employee.
    locked = db.scalar(lock_for_update(select(Employee.id).where(Employee.employee_id == employee_id)))
    if locked is None:
        raise not_found("EMPLOYEE_NOT_FOUND", f"Employee with ID {employee_id} not found")


def _find_period(db: Session, entry: LeaveEntry, *conditions) -> LeavePeriod | None:
    return db.scalars(
        select(LeavePeriod)
        .where(
            LeavePeriod.employee_id == entry.employee_id,
            LeavePeriod.leave_type == entry.leave_type,
            *conditions,
        )
        .order_by(LeavePeriod.id.asc())
        .limit(1)
    ).first()


def _reconcile_in_transaction(db: Session, entry: LeaveEntry) -> ReconcileOutcome:
    _lock_employee(db, entry.employee_id)
    yesterday, tomorrow = neighbour_days(entry.day)

    covering = _find_period(db, entry, LeavePeriod.from_date <= entry.day, LeavePeriod.to_date >= entry.day)
    if covering is not None:
        db.commit()
        return ReconcileOutcome.ALREADY_COVERED

    extend_forward = _find_period(db, entry, LeavePeriod.to_date == yesterday)
    if extend_forward is not None:
        # Forward wins; a period starting tomorrow is left for a later pass.
        extend_forward.to_date = entry.day
        db.commit()
        return ReconcileOutcome.EXTENDED_FORWARD

    extend_backward = _find_period(db, entry, LeavePeriod.from_date == tomorrow)
    if extend_backward is not None:
        extend_backward.from_date = entry.day
        db.commit()
        return ReconcileOutcome.EXTENDED_BACKWARD

    db.add(
        LeavePeriod(
            employee_id=entry.employee_id,
            from_date=entry.day,
            to_date=entry.day,
            leave_type=entry.leave_type,
            reason=entry.note or default_reason(entry.leave_type),
        )
    )
    db.commit()
    return ReconcileOutcome.CREATED


def reconcile_leave_entry(db: Session, entry: LeaveEntry) -> ReconcileOutcome:
    outcome = run_with_retry(
        db,
        lambda: _reconcile_in_transaction(db, entry),
        operation="leave_period_reconcile",
    )
    logger.info(
        "leave_period_reconciled",
        extra={
            "employee_id": entry.employee_id,
            "day": entry.day,
            "leave_type": entry.leave_type,
            "outcome": outcome.value,
        },
    )
    return outcome


def auto_create_leave_periods(db: Session, entries: Sequence[LeaveEntry]) -> list[ReconcileOutcome]:
    """Fold each queued leave day into the employee's leave periods, in queue order.

    Every entry is its own transaction. The first failing entry propagates;
    entries before it stay committed and entries after it are not attempted.
    """
    outcomes: list[ReconcileOutcome] = []
    for entry in entries:
        try:
            outcomes.append(reconcile_leave_entry(db, entry))
        except Exception:
            logger.exception(
                "leave_period_reconcile_failed",
                extra={
                    "employee_id": entry.employee_id,
                    "day": entry.day,
                    "leave_type": entry.leave_type,
                    "committed_entries": len(outcomes),
                },
            )
            raise
    return outcomes


def list_leave_periods(
    db: Session,
    *,
    employee_id: str | None = None,
    active_on: date | None = None,
) -> list[LeavePeriod]:
    stmt = select(LeavePeriod).order_by(LeavePeriod.id.desc())
    if employee_id is not None:
        stmt = stmt.where(LeavePeriod.employee_id == employee_id)
    if active_on is not None:
        stmt = stmt.where(LeavePeriod.from_date <= active_on, LeavePeriod.to_date >= active_on)
    return list(db.scalars(stmt).all())


def get_leave_period(db: Session, leave_period_id: int) -> LeavePeriod:
    period = db.get(LeavePeriod, leave_period_id)
    if period is None:
        raise not_found("LEAVE_PERIOD_NOT_FOUND", "Leave period not found")
    return period


def _ensure_no_overlap(
    db: Session,
    *,
    employee_id: str,
    leave_type: str,
    from_date: date,
    to_date: date,
    exclude_id: int | None = None,
) -> None:
    stmt = select(LeavePeriod.id).where(
        LeavePeriod.employee_id == employee_id,
        LeavePeriod.leave_type == leave_type,
        LeavePeriod.from_date <= to_date,
        LeavePeriod.to_date >= from_date,
    )
    if exclude_id is not None:
        stmt = stmt.where(LeavePeriod.id != exclude_id)
    clash = db.scalar(stmt.limit(1))
    if clash is not None:
        raise conflict(
            "LEAVE_PERIOD_OVERLAP",
            f"Leave period overlaps existing period {clash} for the same leave type.",
        )


def create_leave_period(db: Session, payload: LeavePeriodCreate) -> LeavePeriod:
    get_employee(db, payload.employee_id)
    leave_type = payload.leave_type.strip()

    def _unit_of_work() -> LeavePeriod:
        _lock_employee(db, payload.employee_id)
        _ensure_no_overlap(
            db,
            employee_id=payload.employee_id,
            leave_type=leave_type,
            from_date=payload.from_date,
            to_date=payload.to_date,
        )
        period = LeavePeriod(
            employee_id=payload.employee_id,
            from_date=payload.from_date,
            to_date=payload.to_date,
            leave_type=leave_type,
            reason=payload.reason,
        )
        db.add(period)
        db.commit()
        return period

    period = run_with_retry(db, _unit_of_work, operation="leave_period_create")
    db.refresh(period)
    logger.info("leave_period_created", extra={"leave_period_id": period.id, "employee_id": period.employee_id})
    return period


def update_leave_period(db: Session, leave_period_id: int, payload: LeavePeriodUpdate) -> LeavePeriod:
    changes = payload.model_dump(exclude_unset=True)

    def _unit_of_work() -> LeavePeriod:
        period = get_leave_period(db, leave_period_id)
        _lock_employee(db, period.employee_id)
        # Re-read under the lock; the identity map may hold a stale copy.
        period = db.scalar(lock_for_update(select(LeavePeriod).where(LeavePeriod.id == leave_period_id)))
        if period is None:
            raise not_found("LEAVE_PERIOD_NOT_FOUND", "Leave period not found")
        from_date = changes.get("from_date") or period.from_date
        to_date = changes.get("to_date") or period.to_date
        leave_type = (changes.get("leave_type") or period.leave_type).strip()
        if to_date < from_date:
            raise validation_failed("INVALID_DATE_RANGE", "to_date must be greater than or equal to from_date")
        _ensure_no_overlap(
            db,
            employee_id=period.employee_id,
            leave_type=leave_type,
            from_date=from_date,
            to_date=to_date,
            exclude_id=period.id,
        )
        period.from_date = from_date
        period.to_date = to_date
        period.leave_type = leave_type
        if "reason" in changes:
            period.reason = changes["reason"]
        db.commit()
        return period

    period = run_with_retry(db, _unit_of_work, operation="leave_period_update")
    db.refresh(period)
    logger.info("leave_period_updated", extra={"leave_period_id": period.id})
    return period


def delete_leave_period(db: Session, leave_period_id: int) -> None:
    period = get_leave_period(db, leave_period_id)
    db.delete(period)
    db.commit()
    logger.info("leave_period_deleted", extra={"leave_period_id": leave_period_id})


def leave_period_alerts(
    db: Session,
    *,
    as_of: date | None = None,
    employee_id: str | None = None,
) -> list[LeavePeriodAlert]:
    reference_day = as_of or date.today()
    window_days = get_settings().leave_alert_window_days
    stmt = (
        select(LeavePeriod)
        .where(LeavePeriod.to_date.between(reference_day, reference_day + timedelta(days=window_days)))
        .order_by(LeavePeriod.to_date.asc(), LeavePeriod.id.asc())
    )
    if employee_id is not None:
        stmt = stmt.where(LeavePeriod.employee_id == employee_id)

    alerts: list[LeavePeriodAlert] = []
    for period in db.scalars(stmt).all():
        days_remaining = days_until(period.to_date, as_of=reference_day)
        alerts.append(
            LeavePeriodAlert(
                leave_period_id=period.id,
                employee_id=period.employee_id,
                from_date=period.from_date,
                to_date=period.to_date,
                leave_type=period.leave_type,
                reason=period.reason,
                last_day=period.to_date,
                days_remaining=days_remaining,
                message=ALERT_MESSAGE,
            )
        )
    return alerts
