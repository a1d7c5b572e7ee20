from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import (
    AttendanceBulkUpsertRequest,
    AttendanceBulkUpsertResponse,
    AttendanceDayResponse,
    AttendanceRecordRead,
    AttendanceSummaryResponse,
    IsoDate,
)
from app.security import require_user
from app.services.attendance import (
    attendance_summary,
    bulk_upsert_attendance,
    find_by_date,
    find_by_employee,
    find_by_range,
)

router = APIRouter(tags=["attendance"], dependencies=[Depends(require_user)])


@router.get("/api/attendance", response_model=AttendanceDayResponse)
def list_attendance_for_date(
    attendance_date: IsoDate = Query(alias="date"),
    db: Session = Depends(get_db),
) -> AttendanceDayResponse:
    records = find_by_date(db, attendance_date)
    return AttendanceDayResponse(
        attendance_date=attendance_date,
        records=[AttendanceRecordRead.model_validate(record) for record in records],
    )


@router.put("/api/attendance", response_model=AttendanceBulkUpsertResponse)
def bulk_upsert_attendance_endpoint(
    payload: AttendanceBulkUpsertRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> AttendanceBulkUpsertResponse:
    upserted = bulk_upsert_attendance(db, attendance_date=payload.attendance_date, records=payload.records)
    request.state.flags = {"attendance_date": payload.attendance_date.isoformat(), "upserted": upserted}
    return AttendanceBulkUpsertResponse(upserted=upserted)


@router.get("/api/attendance/range", response_model=list[AttendanceRecordRead])
def list_attendance_for_range(
    from_date: IsoDate = Query(),
    to_date: IsoDate = Query(),
    db: Session = Depends(get_db),
) -> list[AttendanceRecordRead]:
    return find_by_range(db, from_date=from_date, to_date=to_date)


@router.get("/api/attendance/summary", response_model=AttendanceSummaryResponse)
def attendance_summary_endpoint(
    from_date: IsoDate = Query(),
    to_date: IsoDate = Query(),
    db: Session = Depends(get_db),
) -> AttendanceSummaryResponse:
    return AttendanceSummaryResponse(**attendance_summary(db, from_date=from_date, to_date=to_date))


@router.get("/api/attendance/employee/{employee_id}", response_model=list[AttendanceRecordRead])
def list_attendance_for_employee(
    employee_id: str,
    from_date: IsoDate = Query(),
    to_date: IsoDate = Query(),
    db: Session = Depends(get_db),
) -> list[AttendanceRecordRead]:
    return find_by_employee(db, employee_id=employee_id, from_date=from_date, to_date=to_date)
