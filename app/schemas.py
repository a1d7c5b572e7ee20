from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints, field_validator, model_validator

from app.models import AttendanceStatus, CustodyAction, SerialUnitStatus
from app.services.dates import parse_iso_date

# Calendar dates on the wire are strict YYYY-MM-DD; pydantic alone also accepts timestamps.
IsoDate = Annotated[date, BeforeValidator(parse_iso_date)]


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class EmployeeCreate(BaseModel):
    """Accepts the legacy field spellings; see services.employees.normalize_employee_payload."""

    full_name: str | None = Field(default=None, max_length=255)
    name: str | None = Field(default=None, max_length=255)
    first_name: str | None = Field(default=None, max_length=127)
    last_name: str | None = Field(default=None, max_length=127)
    status: str | None = Field(default=None, max_length=32)
    employment_status: str | None = Field(default=None, max_length=32)
    date_of_birth: date | None = None
    dob: date | None = None
    rank: str | None = Field(default=None, max_length=64)
    unit: str | None = Field(default=None, max_length=128)
    phone: str | None = Field(default=None, max_length=32)


class EmployeeRead(BaseModel):
    id: int
    employee_id: str
    full_name: str
    status: str
    date_of_birth: date | None
    rank: str | None
    unit: str | None
    phone: str | None
    cause_of_discharge: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EmployeeMarkLeftRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class EmployeeListResponse(BaseModel):
    employees: list[EmployeeRead]
    total: int


class AttendanceRecordInput(BaseModel):
    employee_id: str = Field(min_length=1, max_length=32)
    status: AttendanceStatus
    note: str | None = Field(default=None, max_length=1000)
    overtime_minutes: int | None = Field(default=None, ge=0)
    overtime_rate: float | None = Field(default=None, ge=0)
    late_minutes: int | None = Field(default=None, ge=0)
    late_deduction: float | None = Field(default=None, ge=0)
    leave_type: str | None = Field(default=None, max_length=50)
    fine_amount: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_leave_type(self) -> "AttendanceRecordInput":
        if self.leave_type is not None:
            self.leave_type = self.leave_type.strip() or None
        if self.status == AttendanceStatus.LEAVE and not self.leave_type:
            raise ValueError("leave_type is required when status is leave")
        return self


class AttendanceBulkUpsertRequest(BaseModel):
    attendance_date: IsoDate = Field(alias="date")
    records: list[AttendanceRecordInput]

    model_config = ConfigDict(populate_by_name=True)


class AttendanceBulkUpsertResponse(BaseModel):
    upserted: int


class AttendanceRecordRead(BaseModel):
    id: int
    employee_id: str
    attendance_date: date = Field(serialization_alias="date")
    status: AttendanceStatus
    note: str | None
    overtime_minutes: int | None
    overtime_rate: float | None
    late_minutes: int | None
    late_deduction: float | None
    leave_type: str | None
    fine_amount: float | None

    model_config = ConfigDict(from_attributes=True)


class AttendanceDayResponse(BaseModel):
    attendance_date: date = Field(serialization_alias="date")
    records: list[AttendanceRecordRead]


class AttendanceSummaryResponse(BaseModel):
    from_date: date
    to_date: date
    total_records: int
    by_status: dict[str, int]


class LeavePeriodCreate(BaseModel):
    employee_id: str = Field(min_length=1, max_length=32)
    from_date: date
    to_date: date
    leave_type: str = Field(min_length=1, max_length=50)
    reason: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def validate_range(self) -> "LeavePeriodCreate":
        if self.to_date < self.from_date:
            raise ValueError("to_date must be greater than or equal to from_date")
        return self


class LeavePeriodUpdate(BaseModel):
    from_date: date | None = None
    to_date: date | None = None
    leave_type: str | None = Field(default=None, min_length=1, max_length=50)
    reason: str | None = Field(default=None, max_length=1000)


class LeavePeriodRead(BaseModel):
    id: int
    employee_id: str
    from_date: date
    to_date: date
    leave_type: str
    reason: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeavePeriodAlert(BaseModel):
    leave_period_id: int
    employee_id: str
    from_date: date
    to_date: date
    leave_type: str
    reason: str | None
    last_day: date
    days_remaining: int
    message: str


class RestrictedItemCreate(BaseModel):
    item_code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    category: str | None = Field(default=None, max_length=128)
    description: str | None = None


class RestrictedItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: str | None = Field(default=None, max_length=128)
    description: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("name cannot be null")
        return value


class RestrictedItemRead(BaseModel):
    id: int
    item_code: str
    name: str
    category: str | None
    description: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SerialUnitCreate(BaseModel):
    serial_number: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]
    notes: str | None = Field(default=None, max_length=1000)


class SerialUnitIssueRequest(BaseModel):
    employee_id: str = Field(min_length=1, max_length=32)


class SerialUnitRead(BaseModel):
    id: int
    item_code: str
    serial_number: str
    status: SerialUnitStatus
    issued_to_employee_id: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RestrictedTransactionRead(BaseModel):
    id: int
    item_code: str
    employee_id: str | None
    serial_unit_id: int
    action: CustodyAction
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeleteResponse(BaseModel):
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
