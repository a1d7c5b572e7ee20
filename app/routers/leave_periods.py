from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas import DeleteResponse, IsoDate, LeavePeriodAlert, LeavePeriodCreate, LeavePeriodRead, LeavePeriodUpdate
from app.security import require_superuser, require_user
from app.services.leave_periods import (
    create_leave_period,
    delete_leave_period,
    leave_period_alerts,
    list_leave_periods,
    update_leave_period,
)

router = APIRouter(tags=["leave-periods"], dependencies=[Depends(require_user)])


@router.get("/api/leave-periods", response_model=list[LeavePeriodRead])
def list_leave_periods_endpoint(
    employee_id: str | None = Query(default=None, max_length=32),
    active_on: IsoDate | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[LeavePeriodRead]:
    return list_leave_periods(db, employee_id=employee_id, active_on=active_on)


@router.post("/api/leave-periods", response_model=LeavePeriodRead, status_code=status.HTTP_201_CREATED)
def create_leave_period_endpoint(payload: LeavePeriodCreate, db: Session = Depends(get_db)) -> LeavePeriodRead:
    return create_leave_period(db, payload)


@router.get("/api/leave-periods/alerts", response_model=list[LeavePeriodAlert])
def leave_period_alerts_endpoint(
    as_of: IsoDate | None = Query(default=None),
    employee_id: str | None = Query(default=None, max_length=32),
    db: Session = Depends(get_db),
) -> list[LeavePeriodAlert]:
    return leave_period_alerts(db, as_of=as_of, employee_id=employee_id)


@router.put("/api/leave-periods/{leave_period_id}", response_model=LeavePeriodRead)
def update_leave_period_endpoint(
    leave_period_id: int,
    payload: LeavePeriodUpdate,
    db: Session = Depends(get_db),
) -> LeavePeriodRead:
    return update_leave_period(db, leave_period_id, payload)


@router.delete(
    "/api/leave-periods/{leave_period_id}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_superuser)],
)
def delete_leave_period_endpoint(leave_period_id: int, db: Session = Depends(get_db)) -> DeleteResponse:
    delete_leave_period(db, leave_period_id)
    return DeleteResponse(message="Deleted", details={"leave_period_id": leave_period_id})
