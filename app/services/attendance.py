from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import validation_failed
from app.models import AttendanceRecord, AttendanceStatus
from app.schemas import AttendanceRecordInput
from app.services.concurrency import lock_for_update, run_with_retry
from app.services.employees import ensure_employees_exist, get_employee
from app.services.leave_periods import LeaveEntry, auto_create_leave_periods

logger = logging.getLogger("app.attendance")

# Every mutable column is written on each upsert; omitted inputs become NULL.
MUTABLE_FIELDS: tuple[str, ...] = (
    "status",
    "note",
    "overtime_minutes",
    "overtime_rate",
    "late_minutes",
    "late_deduction",
    "leave_type",
    "fine_amount",
)


def _record_values(record: AttendanceRecordInput) -> dict[str, Any]:
    return {field: getattr(record, field) for field in MUTABLE_FIELDS}


def _ensure_range(from_date: date, to_date: date) -> None:
    if to_date < from_date:
        raise validation_failed("INVALID_DATE_RANGE", "to_date must be greater than or equal to from_date")


def _upsert_batch(
    db: Session,
    attendance_date: date,
    records: Sequence[AttendanceRecordInput],
) -> list[LeaveEntry]:
    leave_entries: list[LeaveEntry] = []
    for record in records:
        existing = db.scalar(
            lock_for_update(
                select(AttendanceRecord).where(
                    AttendanceRecord.employee_id == record.employee_id,
                    AttendanceRecord.attendance_date == attendance_date,
                )
            )
        )
        values = _record_values(record)
        if existing is None:
            db.add(AttendanceRecord(employee_id=record.employee_id, attendance_date=attendance_date, **values))
            # Flush so a repeated employee later in the same batch finds this row.
            db.flush()
        else:
            for field, value in values.items():
                setattr(existing, field, value)

        if record.status == AttendanceStatus.LEAVE and record.leave_type:
            leave_entries.append(
                LeaveEntry(
                    employee_id=record.employee_id,
                    day=attendance_date,
                    leave_type=record.leave_type,
                    note=record.note,
                )
            )
    db.commit()
    return leave_entries


def bulk_upsert_attendance(
    db: Session,
    *,
    attendance_date: date,
    records: Sequence[AttendanceRecordInput],
) -> int:
    """Upsert one day's attendance, keyed by (employee_id, date), then reconcile leave periods.

    The attendance rows are written as a single transaction: either the whole
    batch lands or none of it does. Leave-period reconciliation runs afterwards,
    one transaction per queued leave day.
    """
    ensure_employees_exist(db, (record.employee_id for record in records))

    leave_entries = run_with_retry(
        db,
        lambda: _upsert_batch(db, attendance_date, records),
        operation="attendance_bulk_upsert",
    )
    logger.info(
        "attendance_bulk_upsert",
        extra={
            "attendance_date": attendance_date,
            "upserted": len(records),
            "leave_entries": len(leave_entries),
        },
    )

    if leave_entries:
        auto_create_leave_periods(db, leave_entries)
    return len(records)


def find_by_date(db: Session, attendance_date: date) -> list[AttendanceRecord]:
    return list(
        db.scalars(
            select(AttendanceRecord)
            .where(AttendanceRecord.attendance_date == attendance_date)
            .order_by(AttendanceRecord.employee_id.asc())
        ).all()
    )


def find_by_range(db: Session, *, from_date: date, to_date: date) -> list[AttendanceRecord]:
    _ensure_range(from_date, to_date)
    return list(
        db.scalars(
            select(AttendanceRecord)
            .where(AttendanceRecord.attendance_date.between(from_date, to_date))
            .order_by(AttendanceRecord.attendance_date.asc(), AttendanceRecord.employee_id.asc())
        ).all()
    )


def find_by_employee(
    db: Session,
    *,
    employee_id: str,
    from_date: date,
    to_date: date,
) -> list[AttendanceRecord]:
    _ensure_range(from_date, to_date)
    get_employee(db, employee_id)
    return list(
        db.scalars(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.attendance_date.between(from_date, to_date),
            )
            .order_by(AttendanceRecord.attendance_date.asc())
        ).all()
    )


def attendance_summary(db: Session, *, from_date: date, to_date: date) -> dict[str, Any]:
    records = find_by_range(db, from_date=from_date, to_date=to_date)
    by_status = Counter(record.status.value for record in records)
    return {
        "from_date": from_date,
        "to_date": to_date,
        "total_records": len(records),
        "by_status": dict(by_status),
    }
